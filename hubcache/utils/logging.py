"""
로깅 시스템 모듈

한국어 레벨명과 액세스 토큰 마스킹을 지원하는 허브 캐시 로깅 시스템을 제공합니다.
"""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Iterable, Optional

from ..config.settings import Settings

ROOT_LOGGER_NAME = "hubcache"

# 허브 사용자 액세스 토큰 형식
TOKEN_PATTERN = re.compile(r"hf_[A-Za-z0-9]{6,}")
MASKED_TOKEN = "hf_***"


class KoreanFormatter(logging.Formatter):
    """레벨명을 한국어로 출력하는 포맷터"""

    LEVEL_MAPPING = {
        'DEBUG': '디버그',
        'INFO': '정보',
        'WARNING': '경고',
        'ERROR': '오류',
        'CRITICAL': '치명적'
    }

    def format(self, record: logging.LogRecord) -> str:
        # 로그 레벨을 한국어로 변환
        original_levelname = record.levelname
        record.levelname = self.LEVEL_MAPPING.get(original_levelname, original_levelname)

        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname


class TokenMaskingFilter(logging.Filter):
    """
    로그 메시지에서 액세스 토큰을 가리는 필터

    오류 메시지나 요청 URL에 토큰이 섞여 들어와도 파일이나 콘솔에 남지 않도록,
    토큰 형식 문자열과 설정에 지정된 토큰 값을 모두 치환합니다.
    """

    def __init__(self, secrets: Iterable[Optional[str]] = ()):
        super().__init__()
        self.secrets = [secret for secret in secrets if secret]

    def mask(self, text: str) -> str:
        for secret in self.secrets:
            text = text.replace(secret, MASKED_TOKEN)
        return TOKEN_PATTERN.sub(MASKED_TOKEN, text)

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = self.mask(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def setup_logging(settings: Settings) -> logging.Logger:
    """
    허브 캐시 로깅 시스템 설정

    hubcache 네임스페이스 전체(hub.client, hub.blob_store 등)가 이 로거의 핸들러를 공유합니다.

    Args:
        settings: 시스템 설정 객체

    Returns:
        logging.Logger: 설정된 루트 로거
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, settings.log_level.upper()))

    # 기존 핸들러 제거 (중복 방지)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)

    formatter = KoreanFormatter(
        fmt=settings.log_format,
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    token_filter = TokenMaskingFilter([settings.hf_token])

    handlers = [logging.StreamHandler()]

    if settings.log_file:
        log_file_path = Path(settings.log_file)
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        handlers.append(logging.handlers.RotatingFileHandler(
            filename=log_file_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        ))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(token_filter)
        logger.addHandler(handler)

    # 프로파게이션 비활성화 (중복 출력 방지)
    logger.propagate = False

    logger.info(f"로깅 시스템 초기화: 허브 {settings.hub_url}, 캐시 {settings.cache_root}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """hubcache 네임스페이스 아래의 로거 반환"""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
