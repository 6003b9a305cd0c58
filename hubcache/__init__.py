"""
허브 캐시

원격 저장소 허브에서 받은 파일을 etag 기반 blob으로 한 번만 저장하고,
브랜치/태그/커밋별 스냅샷 포인터로 공유하는 로컬 캐시입니다.
"""

from .config import Settings, get_settings
from .exceptions import (
    CacheIOException,
    ConfigurationException,
    EntryNotFoundException,
    HubCacheException,
    MalformedResponseException,
    RemoteApiException,
    RepositorySyncException,
    TransferException,
)
from .hub import HubDownloader, ensure_file_cached, snapshot_download
from .models import ContentDescriptor, RepoId, RepoType, SyncReport

__version__ = "0.1.0"

__all__ = [
    "HubDownloader",
    "ensure_file_cached",
    "snapshot_download",
    "Settings",
    "get_settings",
    "RepoId",
    "RepoType",
    "ContentDescriptor",
    "SyncReport",
    "HubCacheException",
    "EntryNotFoundException",
    "MalformedResponseException",
    "RemoteApiException",
    "CacheIOException",
    "ConfigurationException",
    "RepositorySyncException",
    "TransferException",
]
