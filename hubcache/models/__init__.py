"""
데이터 모델 패키지

허브 캐시 시스템의 핵심 데이터 모델들을 정의합니다.
"""

from .base import (
    ContentDescriptor,
    FileSyncResult,
    HeadResponse,
    ListedFile,
    RepoId,
    SyncReport,
)
from .enums import FileSyncStatus, RepoType

__all__ = [
    "RepoId",
    "ContentDescriptor",
    "HeadResponse",
    "ListedFile",
    "FileSyncResult",
    "SyncReport",
    "RepoType",
    "FileSyncStatus",
]
