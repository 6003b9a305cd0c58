"""
콘텐츠 주소 기반 blob 저장소 모듈

etag마다 불변 파일 하나를 저장합니다. 바이트는 시도별 고유 임시 파일에 먼저 기록하고,
전체 본문을 받은 뒤 한 번의 원자적 rename으로 최종 blob 경로에 놓습니다.
최종 경로에 파일이 있다면 그 파일은 항상 완전합니다.
"""

import asyncio
import os
from pathlib import Path
from typing import AsyncContextManager, Callable, Optional

import aiohttp

from ..exceptions import CacheIOException, RemoteApiException, TransferException
from ..models.base import ContentDescriptor
from ..monitoring.metrics import record_downloaded_bytes, track_download_duration
from ..utils.helpers import ensure_directory, format_file_size, generate_attempt_id
from ..utils.logging import get_logger
from .client import ByteResponse
from .locator import blob_path

logger = get_logger(__name__)

INCOMPLETE_SUFFIX = ".incomplete"

ByteSource = Callable[[], AsyncContextManager[ByteResponse]]


class BlobStore:
    """blob 저장소"""

    def __init__(self, storage: Path):
        """
        blob 저장소 초기화

        Args:
            storage: 저장소 캐시 루트 (StorageFolder)
        """
        self.storage = storage
        self.logger = logger

    def blob_path(self, etag: str) -> Path:
        return blob_path(self.storage, etag)

    def has_blob(self, etag: str) -> bool:
        """etag에 해당하는 완전한 blob이 있는지 확인"""
        return self.blob_path(etag).is_file()

    def incomplete_path(self, etag: str) -> Path:
        """시도별 고유 임시 파일 경로"""
        return self.blob_path(etag).with_name(f"{etag}.{generate_attempt_id()}{INCOMPLETE_SUFFIX}")

    async def ensure_blob(
        self,
        descriptor: ContentDescriptor,
        byte_source: ByteSource,
        pointer_path: Optional[Path] = None
    ) -> Path:
        """
        blob이 존재하도록 보장

        Args:
            descriptor: 콘텐츠 기술자
            byte_source: 호출 시 ByteResponse 컨텍스트 매니저를 돌려주는 함수
            pointer_path: 나중에 만들 스냅샷 포인터 경로 (상위 디렉토리를 미리 생성)

        Returns:
            blob 경로

        Raises:
            RemoteApiException: 바이트 요청이 실패 상태를 반환했을 때
            CacheIOException: 디렉토리 생성, 기록, rename 실패 또는 크기 불일치
            TransferException: 연결이 끊기거나 시간이 초과되었을 때
        """
        final_path = self.blob_path(descriptor.etag)
        if final_path.is_file():
            self.logger.debug(f"blob 캐시 적중: {final_path}")
            return final_path

        try:
            ensure_directory(final_path.parent)
            if pointer_path is not None:
                ensure_directory(pointer_path.parent)
        except OSError as e:
            raise CacheIOException(final_path.parent, f"디렉토리 생성 실패: {e}") from e

        temp_path = self.incomplete_path(descriptor.etag)
        self.logger.info(f"blob 다운로드 시작: {descriptor.etag} ({format_file_size(descriptor.size)}) -> {temp_path.name}")

        try:
            with track_download_duration():
                written = await self._stream_to_file(byte_source, temp_path)

            if written != descriptor.size:
                raise CacheIOException(
                    temp_path,
                    f"크기 불일치: 예상 {descriptor.size} 바이트, 수신 {written} 바이트"
                )

            self._commit(temp_path, final_path)
        except Exception:
            self._discard(temp_path)
            raise

        record_downloaded_bytes(written)
        self.logger.info(f"blob 저장 완료: {final_path}")
        return final_path

    async def _stream_to_file(self, byte_source: ByteSource, temp_path: Path) -> int:
        """응답 본문을 임시 파일로 스트리밍하고 기록한 바이트 수를 반환"""
        url = None
        written = 0
        try:
            async with byte_source() as response:
                url = response.url
                if not response.ok:
                    raise RemoteApiException(response.status, response.error_message, response.url)
                if response.body is None:
                    raise CacheIOException(temp_path, f"응답 본문을 읽을 수 없습니다: {response.url}")

                with open(temp_path, 'wb') as f:
                    async for chunk in response.body:
                        f.write(chunk)
                        written += len(chunk)
                    f.flush()
                    os.fsync(f.fileno())
        # ClientOSError도 OSError이므로 전송 오류를 먼저 구분
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransferException(url, f"{written} 바이트 수신 후 중단: {e}") from e
        except OSError as e:
            raise CacheIOException(temp_path, f"임시 파일 기록 실패: {e}") from e

        return written

    def _commit(self, temp_path: Path, final_path: Path) -> None:
        """임시 파일을 최종 blob 경로로 원자적으로 이동"""
        if final_path.is_file():
            # 다른 시도가 먼저 같은 etag를 완료함. 내용이 같으므로 기존 blob 유지
            self.logger.debug(f"blob이 이미 존재하여 임시 파일 폐기: {final_path}")
            temp_path.unlink()
            return

        try:
            os.replace(temp_path, final_path)
        except OSError as e:
            raise CacheIOException(final_path, f"blob rename 실패: {e}") from e

    def _discard(self, temp_path: Path) -> None:
        """실패한 시도의 임시 파일 정리"""
        try:
            temp_path.unlink(missing_ok=True)
        except OSError as e:
            self.logger.warning(f"임시 파일 정리 실패: {temp_path} - {e}")
