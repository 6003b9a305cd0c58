"""
Prometheus 메트릭 모듈

캐시 적중, 다운로드량, 오류 등 캐시 활동 메트릭을 수집합니다.
"""

import platform
import sys
import time
from contextlib import contextmanager
from typing import Any, Iterator

from prometheus_client import CollectorRegistry, Counter, Histogram, Info

from ..utils.logging import get_logger

# 메트릭 레지스트리
REGISTRY = CollectorRegistry()

logger = get_logger(__name__)

# 파일 요청 관련 메트릭
FILE_REQUESTS = Counter(
    'hubcache_file_requests_total',
    '파일 캐시 요청 수',
    ['result'],
    registry=REGISTRY
)

# 다운로드 관련 메트릭
DOWNLOADED_BYTES = Counter(
    'hubcache_downloaded_bytes_total',
    '네트워크로 받은 총 바이트 수',
    registry=REGISTRY
)

DOWNLOAD_DURATION = Histogram(
    'hubcache_download_duration_seconds',
    'blob 다운로드 시간 (초)',
    registry=REGISTRY
)

# 오류 관련 메트릭
ERROR_COUNT = Counter(
    'hubcache_errors_total',
    '허브 캐시 오류 총 수',
    ['error_type', 'component'],
    registry=REGISTRY
)

SYSTEM_INFO = Info(
    'hubcache_system_info',
    '허브 캐시 시스템 정보',
    registry=REGISTRY
)

SYSTEM_INFO.info({
    'version': '0.1.0',
    'python_version': f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
    'platform': platform.system()
})


def record_file_request(result: str) -> None:
    """
    파일 요청 결과 기록

    Args:
        result: fast_path, blob_hit, downloaded, not_found, error 중 하나
    """
    FILE_REQUESTS.labels(result=result).inc()
    logger.debug(f"파일 요청 메트릭 기록: {result}")


def record_downloaded_bytes(num_bytes: int) -> None:
    """다운로드 바이트 수 기록"""
    DOWNLOADED_BYTES.inc(num_bytes)


@contextmanager
def track_download_duration() -> Iterator[None]:
    """blob 다운로드 시간을 측정하는 컨텍스트 매니저"""
    start_time = time.time()
    try:
        yield
    finally:
        DOWNLOAD_DURATION.observe(time.time() - start_time)


def record_error(error_type: str, component: str) -> None:
    """
    오류 발생 기록

    Args:
        error_type: 오류 타입
        component: 오류가 발생한 컴포넌트
    """
    ERROR_COUNT.labels(error_type=error_type, component=component).inc()
    logger.debug(f"오류 기록: {component} - {error_type}")


def get_metrics_summary() -> dict[str, Any]:
    """
    메트릭 요약 정보 반환

    Returns:
        메트릭 요약 딕셔너리
    """
    requests_by_result = {}
    for metric in FILE_REQUESTS.collect():
        for sample in metric.samples:
            if sample.name.endswith('_total'):
                requests_by_result[sample.labels['result']] = sample.value

    return {
        "file_requests": requests_by_result,
        "downloaded_bytes": REGISTRY.get_sample_value('hubcache_downloaded_bytes_total') or 0.0,
        "timestamp": time.time()
    }
