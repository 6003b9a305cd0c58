"""
저장소 동기화 모듈

리비전을 커밋 해시로 한 번 해석한 뒤, 그 커밋의 파일 목록을 순서대로 캐시에 받습니다.

실패 정책:
    - 기본(continue_on_error=False): 첫 번째 파일 실패에서 즉시 중단하고 그 예외를 그대로 전파
    - continue_on_error=True: 모든 파일을 시도한 뒤, 실패가 있으면 RepositorySyncException 발생
"""

from datetime import datetime
from typing import TYPE_CHECKING

from ..exceptions import RepositorySyncException
from ..models.base import FileSyncResult, RepoId, SyncReport
from ..models.enums import FileSyncStatus
from ..utils.logging import get_logger
from .snapshot_linker import SnapshotLinker

if TYPE_CHECKING:
    from .downloader import HubDownloader

logger = get_logger(__name__)


class RepositorySync:
    """저장소 동기화 오케스트레이터"""

    def __init__(self, downloader: "HubDownloader"):
        """
        동기화 오케스트레이터 초기화

        Args:
            downloader: 파일 단위 캐시를 수행할 다운로더
        """
        self.downloader = downloader
        self.client = downloader.client
        self.logger = logger

    async def run(self, repo_id: RepoId, revision: str, continue_on_error: bool = False) -> SyncReport:
        """
        저장소 동기화 실행

        Args:
            repo_id: 저장소 식별자
            revision: 브랜치, 태그 또는 커밋 해시
            continue_on_error: 파일 실패 시 나머지 파일 계속 처리 여부

        Returns:
            동기화 보고서

        Raises:
            HubCacheException: 기본 정책에서 파일 하나라도 실패했을 때 (해당 예외)
            RepositorySyncException: continue_on_error 정책에서 실패가 있었을 때
        """
        commit_hash = await self.client.resolve_revision_to_commit(repo_id, revision)
        self.logger.info(f"저장소 동기화 시작: {repo_id}@{revision} (커밋 {commit_hash})")

        SnapshotLinker(self.downloader.storage_folder(repo_id)).update_ref(revision, commit_hash)

        report = SyncReport(repo_id=repo_id, revision=revision, commit_hash=commit_hash)

        # 목록 조회와 파일별 다운로드 모두 해석된 커밋 해시를 사용
        async for entry in self.client.list_files_recursive(repo_id, commit_hash):
            try:
                local_path = await self.downloader.ensure_file_cached(repo_id, entry.path, commit_hash)
            except Exception as e:
                report.results.append(
                    FileSyncResult(path=entry.path, status=FileSyncStatus.FAILED, error=str(e))
                )
                if not continue_on_error:
                    self.logger.error(f"파일 동기화 실패, 동기화 중단: {entry.path} - {e}")
                    raise
                self.logger.warning(f"파일 동기화 실패, 계속 진행: {entry.path} - {e}")
                continue

            report.results.append(
                FileSyncResult(path=entry.path, status=FileSyncStatus.CACHED, local_path=str(local_path))
            )

        report.completed_at = datetime.now()

        if report.failed:
            raise RepositorySyncException(repo_id, revision, report.failed, report)

        self.logger.info(
            f"저장소 동기화 완료: {repo_id}@{revision} - {len(report.succeeded)}개 파일"
        )
        return report
