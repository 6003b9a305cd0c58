"""
공통 테스트 픽스처

네트워크 없이 허브를 흉내 내는 인메모리 클라이언트와 테스트용 설정을 제공합니다.
"""

import hashlib
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import aiohttp
import pytest

from hubcache.config.settings import Settings
from hubcache.exceptions import RemoteApiException
from hubcache.hub.client import ByteResponse, HubClientBase
from hubcache.hub.locator import is_commit_hash
from hubcache.models.base import HeadResponse, ListedFile, RepoId
from hubcache.models.enums import RepoType

HUB_URL = "https://hub.example.com"
COMMIT = "deadbeef" * 5
OTHER_COMMIT = "cafebabe" * 5
REPO = RepoId(kind=RepoType.MODEL, name="hello-world")


class FakeHubClient(HubClientBase):
    """호출 횟수를 기록하는 인메모리 허브 클라이언트"""

    def __init__(self, settings: Settings, chunk_size: int = 16):
        super().__init__(settings)
        self.chunk_size = chunk_size
        self.commits: Dict[str, str] = {"main": COMMIT}
        self.entries: Dict[Tuple[str, str, str], Dict[str, Any]] = {}
        self.raw_entries: Dict[Tuple[str, str, str], Dict[str, Any]] = {}
        self.bodies: Dict[str, bytes] = {}
        self.broken_urls: Dict[str, int] = {}
        self.head_calls: List[Tuple[str, str, str]] = []
        self.get_calls: List[str] = []
        self.resolve_calls: List[Tuple[str, str]] = []
        self.list_calls: List[Tuple[str, str]] = []

    def add_file(
        self,
        path: str,
        content: bytes,
        etag: Optional[str] = None,
        revision: str = "main",
        commit: str = COMMIT,
        repo_id: RepoId = REPO,
        direct_location: Optional[str] = None,
        raw: bool = False
    ) -> str:
        """파일을 등록하고 바이트를 받을 URL을 반환"""
        etag = etag or f'"{hashlib.sha256(content).hexdigest()}"'
        url = direct_location or self.file_url(repo_id, path, commit, raw)
        entry = {
            "etag": etag,
            "size": len(content),
            "commit": commit,
            "url": url,
            "direct": direct_location is not None,
        }
        table = self.raw_entries if raw else self.entries
        for rev in (revision, commit):
            table[(str(repo_id), rev, path)] = entry
        self.commits[revision] = commit
        self.bodies[url] = content
        return url

    async def head_file_info(self, repo_id: RepoId, path: str, revision: str, raw: bool = False) -> HeadResponse:
        self.head_calls.append((str(repo_id), path, revision))
        table = self.raw_entries if raw else self.entries
        entry = table.get((str(repo_id), revision, path))
        if entry is None:
            return HeadResponse(
                status=404,
                url=self.file_url(repo_id, path, revision, raw),
                headers={"x-error-code": "EntryNotFound", "x-error-message": "Entry not found"},
            )

        return HeadResponse(
            status=200,
            url=entry["url"] if entry["direct"] else self.file_url(repo_id, path, revision, raw),
            headers={
                "etag": entry["etag"],
                "content-length": str(entry["size"]),
                "x-repo-commit": entry["commit"],
            },
        )

    @asynccontextmanager
    async def get_bytes(self, url: str, byte_range: Optional[Tuple[int, int]] = None) -> AsyncIterator[ByteResponse]:
        self.get_calls.append(url)
        content = self.bodies.get(url)
        if content is None:
            yield ByteResponse(
                status=404,
                url=url,
                headers={"x-error-code": "EntryNotFound"},
                error_message="Entry not found",
            )
            return

        status = 200
        if byte_range:
            content = content[byte_range[0]:byte_range[1] + 1]
            status = 206

        yield ByteResponse(status=status, url=url, body=self._chunks(url, content))

    async def _chunks(self, url: str, content: bytes) -> AsyncIterator[bytes]:
        fail_after = self.broken_urls.get(url)
        for offset in range(0, len(content), self.chunk_size):
            if fail_after is not None and offset >= fail_after:
                raise aiohttp.ClientPayloadError("연결이 끊어졌습니다")
            yield content[offset:offset + self.chunk_size]

    async def resolve_revision_to_commit(self, repo_id: RepoId, revision: str) -> str:
        self.resolve_calls.append((str(repo_id), revision))
        if revision in self.commits:
            return self.commits[revision]
        if is_commit_hash(revision):
            return revision
        raise RemoteApiException(404, "Revision not found", revision)

    async def list_files_recursive(self, repo_id: RepoId, revision: str) -> AsyncIterator[ListedFile]:
        self.list_calls.append((str(repo_id), revision))
        for (repo, rev, path), entry in self.entries.items():
            if repo == str(repo_id) and rev == revision:
                yield ListedFile(path=path, size=entry["size"])


@pytest.fixture
def settings(tmp_path):
    """테스트용 설정 픽스처"""
    return Settings(
        hub_url=HUB_URL,
        hf_token=None,
        hf_hub_cache=str(tmp_path / "hub"),
        metadata_max_retries=0,
        log_level="DEBUG"
    )


@pytest.fixture
def fake_client(settings):
    """인메모리 허브 클라이언트 픽스처"""
    return FakeHubClient(settings)
