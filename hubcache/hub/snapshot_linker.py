"""
스냅샷 포인터 연결 모듈

리비전별 스냅샷 포인터를 blob에 대한 상대 심볼릭 링크로 만들고,
이미 받은 커밋 해시 리비전에 대한 빠른 경로 검사를 제공합니다.
"""

import os
from pathlib import Path
from typing import Optional

from ..exceptions import CacheIOException
from ..utils.helpers import ensure_directory, generate_attempt_id
from ..utils.logging import get_logger
from .locator import is_commit_hash, ref_path, snapshot_pointer_path

logger = get_logger(__name__)


class SnapshotLinker:
    """스냅샷 포인터 관리자"""

    def __init__(self, storage: Path):
        """
        스냅샷 포인터 관리자 초기화

        Args:
            storage: 저장소 캐시 루트 (StorageFolder)
        """
        self.storage = storage
        self.logger = logger

    def pointer_path(self, revision: str, relative_path: str) -> Path:
        return snapshot_pointer_path(self.storage, revision, relative_path)

    def find_satisfied(self, revision: str, relative_path: str) -> Optional[Path]:
        """
        빠른 경로 검사

        커밋 해시 리비전의 콘텐츠는 바뀌지 않으므로, 포인터가 이미 있고 blob을 가리키면
        메타데이터 조회와 다운로드를 모두 건너뛸 수 있습니다.

        Args:
            revision: 요청된 리비전
            relative_path: 저장소 내 파일 경로

        Returns:
            포인터 경로, 빠른 경로를 쓸 수 없으면 None
        """
        if not is_commit_hash(revision):
            return None

        pointer = self.pointer_path(revision, relative_path)
        # exists()는 링크를 따라가므로 끊어진 포인터는 다시 연결됨
        if pointer.exists():
            self.logger.debug(f"커밋 스냅샷 적중: {pointer}")
            return pointer
        return None

    def link(self, pointer: Path, blob: Path) -> Path:
        """
        스냅샷 포인터를 blob에 연결

        blob rename이 끝난 뒤에만 호출해야 합니다. 기존 포인터는 원자적으로 교체됩니다.

        Args:
            pointer: 스냅샷 포인터 경로
            blob: 완전한 blob 경로

        Returns:
            포인터 경로

        Raises:
            CacheIOException: 링크 생성 실패 시
        """
        if not blob.is_file():
            raise CacheIOException(blob, "존재하지 않는 blob에는 포인터를 만들 수 없습니다")

        target = os.path.relpath(blob, pointer.parent)
        if pointer.is_symlink() and os.readlink(pointer) == target:
            return pointer

        temp_link = pointer.with_name(f".{pointer.name}.{generate_attempt_id()}.link")
        try:
            ensure_directory(pointer.parent)
            os.symlink(target, temp_link)
            os.replace(temp_link, pointer)
        except OSError as e:
            try:
                temp_link.unlink(missing_ok=True)
            except OSError:
                self.logger.warning(f"임시 링크 정리 실패: {temp_link}")
            raise CacheIOException(pointer, f"스냅샷 포인터 생성 실패: {e}") from e

        self.logger.debug(f"스냅샷 포인터 연결: {pointer} -> {target}")
        return pointer

    def update_ref(self, revision: str, commit_hash: str) -> None:
        """
        심볼릭 리비전(브랜치/태그)이 가리키는 커밋 해시를 refs에 기록

        Args:
            revision: 브랜치 또는 태그 이름
            commit_hash: 해석된 커밋 해시
        """
        if revision == commit_hash:
            return

        ref = ref_path(self.storage, revision)
        try:
            if ref.is_file() and ref.read_text(encoding='utf-8') == commit_hash:
                return

            ensure_directory(ref.parent)
            temp_ref = ref.with_name(f".{ref.name}.{generate_attempt_id()}.tmp")
            temp_ref.write_text(commit_hash, encoding='utf-8')
            os.replace(temp_ref, ref)
        except OSError as e:
            raise CacheIOException(ref, f"ref 기록 실패: {e}") from e

        self.logger.debug(f"ref 갱신: {revision} -> {commit_hash}")

