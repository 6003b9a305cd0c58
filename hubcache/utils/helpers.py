"""
공통 유틸리티 함수 모듈

허브 캐시 시스템에서 공통으로 사용되는 헬퍼 함수들을 제공합니다.
"""

import asyncio
import inspect
import os
import uuid
from pathlib import Path
from typing import Any, Callable, Union

from ..utils.logging import get_logger

logger = get_logger(__name__)


def generate_attempt_id() -> str:
    """
    다운로드 시도별 고유 ID 생성

    임시 파일 이름에 사용되며, 동시에 같은 blob을 받는 시도끼리 겹치지 않습니다.

    Returns:
        str: 프로세스 ID와 난수로 구성된 ID
    """
    random_str = uuid.uuid4().hex[:12]
    return f"{os.getpid()}-{random_str}"


async def retry_with_backoff(
    func: Callable,
    max_retries: int = 3,
    initial_delay: float = 1.0,
    backoff_factor: float = 2.0,
    max_delay: float = 60.0,
    exceptions: tuple = (Exception,)
) -> Any:
    """
    지수 백오프를 사용한 재시도 함수

    Args:
        func: 재시도할 함수
        max_retries: 최대 재시도 횟수
        initial_delay: 초기 지연 시간 (초)
        backoff_factor: 백오프 배수
        max_delay: 최대 지연 시간 (초)
        exceptions: 재시도할 예외 타입들

    Returns:
        Any: 함수 실행 결과

    Raises:
        Exception: 모든 재시도 실패 시 마지막 예외
    """
    for attempt in range(max_retries + 1):
        try:
            if inspect.iscoroutinefunction(func):
                return await func()
            return func()
        except exceptions as e:
            if attempt == max_retries:
                logger.error(f"재시도 {max_retries}회 모두 실패: {e}")
                raise

            delay = min(initial_delay * (backoff_factor ** attempt), max_delay)
            logger.warning(f"재시도 {attempt + 1}/{max_retries} 실패, {delay:.1f}초 후 재시도: {e}")
            await asyncio.sleep(delay)


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    디렉토리 존재 확인 및 생성

    Args:
        path: 디렉토리 경로

    Returns:
        Path: 디렉토리 경로 객체
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def format_file_size(size_bytes: int) -> str:
    """
    파일 크기를 사람이 읽기 쉬운 형태로 변환

    Args:
        size_bytes: 바이트 단위 크기

    Returns:
        str: 형식화된 크기 문자열
    """
    if size_bytes == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    size_value = float(size_bytes)

    while size_value >= 1024 and i < len(size_names) - 1:
        size_value = size_value / 1024
        i += 1

    return f"{size_value:.1f} {size_names[i]}"
