"""
유틸리티 패키지

공통으로 사용되는 유틸리티 함수들을 포함합니다.
"""

from .logging import get_logger, setup_logging
from .helpers import ensure_directory, format_file_size, generate_attempt_id, retry_with_backoff

__all__ = [
    "setup_logging",
    "get_logger",
    "generate_attempt_id",
    "retry_with_backoff",
    "ensure_directory",
    "format_file_size",
]
