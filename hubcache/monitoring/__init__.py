"""
모니터링 시스템

캐시 활동에 대한 Prometheus 메트릭을 제공합니다.
"""

from .metrics import (
    DOWNLOAD_DURATION,
    DOWNLOADED_BYTES,
    ERROR_COUNT,
    FILE_REQUESTS,
    REGISTRY,
    get_metrics_summary,
    record_downloaded_bytes,
    record_error,
    record_file_request,
    track_download_duration,
)

__all__ = [
    "REGISTRY",
    "FILE_REQUESTS",
    "DOWNLOADED_BYTES",
    "DOWNLOAD_DURATION",
    "ERROR_COUNT",
    "record_file_request",
    "record_downloaded_bytes",
    "record_error",
    "track_download_duration",
    "get_metrics_summary",
]
