"""
허브 캐시 핵심 모듈

원격 저장소 허브의 파일을 콘텐츠 주소 기반 로컬 캐시에 받고,
리비전별 스냅샷 포인터로 노출하는 기능을 제공합니다.
"""

from .blob_store import BlobStore
from .client import ByteResponse, HubClientBase, HubHttpClient, check_credentials
from .downloader import HubDownloader, ensure_file_cached, snapshot_download
from .locator import (
    REGEX_COMMIT_HASH,
    blob_path,
    is_commit_hash,
    normalize_etag,
    repo_folder_name,
    snapshot_pointer_path,
    storage_folder,
    to_repo_id,
)
from .resolver import DescriptorResolver
from .snapshot_linker import SnapshotLinker
from .sync import RepositorySync

__all__ = [
    "HubDownloader",
    "ensure_file_cached",
    "snapshot_download",
    "HubClientBase",
    "HubHttpClient",
    "ByteResponse",
    "check_credentials",
    "DescriptorResolver",
    "BlobStore",
    "SnapshotLinker",
    "RepositorySync",
    "REGEX_COMMIT_HASH",
    "is_commit_hash",
    "normalize_etag",
    "to_repo_id",
    "repo_folder_name",
    "storage_folder",
    "snapshot_pointer_path",
    "blob_path",
]
