"""
허브 다운로더 오케스트레이터 모듈

파일 단위 캐시(ensure_file_cached)와 저장소 전체 동기화(synchronize_repository)를
제공하는 메인 인터페이스입니다.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Tuple

from ..config.settings import Settings
from ..exceptions import EntryNotFoundException, HubCacheException, RemoteApiException
from ..models.base import SyncReport
from ..monitoring.metrics import record_error, record_file_request
from ..utils.logging import get_logger
from .blob_store import BlobStore
from .client import (
    ENTRY_NOT_FOUND_ERROR_CODE,
    HEADER_X_ERROR_CODE,
    ByteResponse,
    HubClientBase,
    HubHttpClient,
)
from .locator import (
    RepoDesignation,
    storage_folder,
    to_repo_id,
    validate_relative_path,
    validate_revision,
)
from .resolver import DescriptorResolver
from .snapshot_linker import SnapshotLinker
from .sync import RepositorySync

logger = get_logger(__name__)


class HubDownloader:
    """허브 다운로더 오케스트레이터"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[HubClientBase] = None,
        access_token: Optional[str] = None
    ):
        """
        허브 다운로더 초기화

        Args:
            settings: 시스템 설정 (None이면 기본 설정 사용)
            client: 허브 클라이언트 (None이면 aiohttp 클라이언트 생성)
            access_token: 액세스 토큰 (없으면 설정의 HF_TOKEN 사용)
        """
        if settings is None:
            from ..config.settings import get_settings
            settings = get_settings()
        settings.validate_configuration()

        self.settings = settings
        self.logger = logger

        self._owns_client = client is None
        self.client = client or HubHttpClient(settings, access_token)
        self.resolver = DescriptorResolver(self.client, max_retries=settings.metadata_max_retries)

        self.logger.info(f"허브 다운로더 초기화 완료: {self.client.hub_url} (캐시: {settings.cache_root})")

    def storage_folder(self, repo: RepoDesignation) -> Path:
        """저장소 캐시 루트 디렉토리"""
        return storage_folder(self.settings.cache_root, to_repo_id(repo))

    async def ensure_file_cached(
        self,
        repo: RepoDesignation,
        path: str,
        revision: Optional[str] = None,
        raw: bool = False
    ) -> Path:
        """
        파일이 로컬 캐시에 있도록 보장

        Args:
            repo: 저장소 지정값
            path: 저장소 내 파일 경로
            revision: 브랜치, 태그 또는 커밋 해시 (None이면 기본 브랜치)
            raw: True면 LFS 포인터 파일 자체를 캐시 (스냅샷을 거치지 않음)

        Returns:
            스냅샷 포인터 경로 (blob을 가리키는 심볼릭 링크), raw 모드면 blob 경로

        Raises:
            ConfigurationException: 저장소, 경로, 리비전이 올바르지 않을 때 (네트워크 요청 전)
            EntryNotFoundException: 원격에 파일이 없을 때
            MalformedResponseException: 메타데이터 응답에 태그나 크기가 없을 때
            RemoteApiException: 원격 서비스 오류
            CacheIOException: 로컬 파일 시스템 오류
        """
        repo_id = to_repo_id(repo)
        relative_path = validate_relative_path(path)
        revision = validate_revision(revision or self.settings.default_revision)

        storage = storage_folder(self.settings.cache_root, repo_id)
        linker = SnapshotLinker(storage)

        # raw 파일은 해석된 파일과 같은 포인터 경로를 쓸 수 없으므로 스냅샷을 건너뜀
        satisfied = None if raw else linker.find_satisfied(revision, relative_path)
        if satisfied is not None:
            record_file_request("fast_path")
            return satisfied

        try:
            descriptor = await self.resolver.resolve(repo_id, relative_path, revision, raw)
        except HubCacheException as e:
            self._record_failure(e, "resolver")
            raise

        if descriptor is None:
            record_file_request("not_found")
            raise EntryNotFoundException(repo_id, relative_path, revision)

        snapshot_revision = descriptor.commit_hash or revision
        pointer = None if raw else linker.pointer_path(snapshot_revision, relative_path)
        store = BlobStore(storage)
        blob_hit = store.has_blob(descriptor.etag)

        source_url = descriptor.direct_location or self.client.file_url(
            repo_id, relative_path, snapshot_revision, raw
        )

        try:
            blob = await store.ensure_blob(
                descriptor,
                lambda: self.client.get_bytes(source_url),
                pointer_path=pointer
            )
            if pointer is not None:
                linker.link(pointer, blob)
                if descriptor.commit_hash:
                    linker.update_ref(revision, descriptor.commit_hash)
        except HubCacheException as e:
            self._record_failure(e, "blob_store")
            raise

        result = pointer or blob
        record_file_request("blob_hit" if blob_hit else "downloaded")
        self.logger.info(f"파일 캐시 완료: {repo_id}/{relative_path}@{revision} -> {result}")
        return result

    async def synchronize_repository(
        self,
        repo: RepoDesignation,
        revision: Optional[str] = None,
        continue_on_error: Optional[bool] = None
    ) -> SyncReport:
        """
        저장소의 한 리비전 전체를 캐시에 동기화

        Args:
            repo: 저장소 지정값
            revision: 브랜치, 태그 또는 커밋 해시 (None이면 기본 브랜치)
            continue_on_error: 파일 실패 시 계속 진행 여부 (None이면 설정값 사용)

        Returns:
            동기화 보고서
        """
        repo_id = to_repo_id(repo)
        revision = validate_revision(revision or self.settings.default_revision)
        if continue_on_error is None:
            continue_on_error = self.settings.sync_continue_on_error

        return await RepositorySync(self).run(repo_id, revision, continue_on_error)

    @asynccontextmanager
    async def open_remote_file(
        self,
        repo: RepoDesignation,
        path: str,
        revision: Optional[str] = None,
        raw: bool = False,
        byte_range: Optional[Tuple[int, int]] = None,
        no_content_disposition: bool = False
    ) -> AsyncIterator[Optional[ByteResponse]]:
        """
        캐시를 거치지 않고 원격 파일 스트림 열기

        Args:
            repo: 저장소 지정값
            path: 저장소 내 파일 경로
            revision: 리비전 (None이면 기본 브랜치)
            raw: True면 git 원본 엔드포인트 사용
            byte_range: (시작, 끝) 바이트 범위 (양 끝 포함)
            no_content_disposition: True면 Content-Disposition 헤더 없이 응답 요청

        Yields:
            바이트 응답, 파일이 없으면 None

        Raises:
            RemoteApiException: 404(EntryNotFound) 외의 실패 응답
        """
        repo_id = to_repo_id(repo)
        relative_path = validate_relative_path(path)
        revision = validate_revision(revision or self.settings.default_revision)
        url = self.client.file_url(repo_id, relative_path, revision, raw, no_content_disposition)

        async with self.client.get_bytes(url, byte_range) as response:
            if response.status == 404 and response.headers.get(HEADER_X_ERROR_CODE.lower()) == ENTRY_NOT_FOUND_ERROR_CODE:
                yield None
                return
            if not response.ok:
                raise RemoteApiException(response.status, response.error_message, response.url)
            yield response

    def _record_failure(self, error: HubCacheException, component: str) -> None:
        record_file_request("error")
        record_error(type(error).__name__, component)
        self.logger.error(f"파일 캐시 실패: {error.message}")

    async def close(self) -> None:
        """리소스 정리"""
        if self._owns_client:
            await self.client.close()
        self.logger.debug("허브 다운로더 리소스 정리 완료")

    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        await self.close()


# 편의 함수들
async def ensure_file_cached(
    repo: RepoDesignation,
    path: str,
    revision: Optional[str] = None,
    settings: Optional[Settings] = None,
    raw: bool = False,
    access_token: Optional[str] = None
) -> Path:
    """
    편의 함수: 파일 하나를 캐시에 받기

    Args:
        repo: 저장소 지정값
        path: 저장소 내 파일 경로
        revision: 리비전
        settings: 시스템 설정
        raw: LFS 포인터 파일 자체를 받을지 여부
        access_token: 액세스 토큰

    Returns:
        스냅샷 포인터 경로
    """
    async with HubDownloader(settings, access_token=access_token) as downloader:
        return await downloader.ensure_file_cached(repo, path, revision, raw=raw)


async def snapshot_download(
    repo: RepoDesignation,
    revision: Optional[str] = None,
    settings: Optional[Settings] = None,
    continue_on_error: Optional[bool] = None,
    access_token: Optional[str] = None
) -> SyncReport:
    """
    편의 함수: 저장소 리비전 전체를 캐시에 받기

    Args:
        repo: 저장소 지정값
        revision: 리비전
        settings: 시스템 설정
        continue_on_error: 파일 실패 시 계속 진행 여부
        access_token: 액세스 토큰

    Returns:
        동기화 보고서
    """
    async with HubDownloader(settings, access_token=access_token) as downloader:
        return await downloader.synchronize_repository(repo, revision, continue_on_error)
