"""
허브 다운로더 테스트

파일 단위 캐시의 전체 흐름(기술자 해석, blob 저장, 포인터 연결)을 인메모리 클라이언트로 테스트합니다.
"""

import os
from unittest.mock import patch

import pytest

from hubcache.config.settings import Settings
from hubcache.exceptions import (
    ConfigurationException,
    EntryNotFoundException,
    RemoteApiException,
    TransferException,
)
from hubcache.hub.downloader import HubDownloader, ensure_file_cached
from hubcache.hub.locator import is_commit_hash
from hubcache.models.base import RepoId
from hubcache.models.enums import RepoType
from hubcache.monitoring.metrics import REGISTRY

from conftest import COMMIT, HUB_URL, OTHER_COMMIT, FakeHubClient

README = b"# hello-world\n\nThis file is fifty-five bytes long!!!!!\n"
LFS_POINTER = b"version https://git-lfs.github.com/spec/v1\noid sha256:abc\nsize 55\n"


def file_requests(result):
    return REGISTRY.get_sample_value("hubcache_file_requests_total", {"result": result}) or 0.0


def errors(error_type, component):
    labels = {"error_type": error_type, "component": component}
    return REGISTRY.get_sample_value("hubcache_errors_total", labels) or 0.0


class TestEnsureFileCached:
    """ensure_file_cached 테스트"""

    @pytest.fixture
    def downloader(self, settings, fake_client):
        return HubDownloader(settings, client=fake_client)

    @pytest.mark.asyncio
    async def test_end_to_end_layout(self, settings, fake_client, downloader):
        """첫 다운로드 후 blob, 포인터, ref 구조 확인"""
        assert len(README) == 55
        fake_client.add_file("README.md", README, etag='"abc123"')

        pointer = await downloader.ensure_file_cached("hello-world", "/README.md", "main")

        storage = settings.cache_root / "models--hello-world"
        blob = storage / "blobs" / "abc123"
        assert pointer == storage / "snapshots" / COMMIT / "README.md"
        assert blob.read_bytes() == README
        assert pointer.is_symlink()
        assert os.readlink(pointer) == os.path.join("..", "..", "blobs", "abc123")
        assert pointer.read_bytes() == README
        assert (storage / "refs" / "main").read_text(encoding="utf-8") == COMMIT
        assert fake_client.get_calls == [fake_client.file_url(RepoId(name="hello-world"), "README.md", COMMIT)]

    @pytest.mark.asyncio
    async def test_default_revision(self, fake_client, downloader):
        fake_client.add_file("README.md", README)

        await downloader.ensure_file_cached("hello-world", "README.md")

        assert fake_client.head_calls == [("hello-world", "README.md", "main")]

    @pytest.mark.asyncio
    async def test_idempotent(self, fake_client, downloader):
        """반복 호출은 같은 경로를 돌려주고 바이트는 한 번만 받음"""
        fake_client.add_file("README.md", README, etag='"abc123"')

        first = await downloader.ensure_file_cached("hello-world", "README.md", "main")
        second = await downloader.ensure_file_cached("hello-world", "README.md", "main")

        assert first == second
        assert len(fake_client.get_calls) == 1
        assert len(fake_client.head_calls) == 2

    @pytest.mark.asyncio
    async def test_dedup_across_revisions(self, settings, fake_client, downloader):
        """같은 etag는 리비전이 달라도 blob 하나를 공유"""
        fake_client.add_file("README.md", README, etag='"abc123"', revision="main", commit=COMMIT)
        fake_client.add_file("README.md", README, etag='"abc123"', revision="v1.0", commit=OTHER_COMMIT)

        main_pointer = await downloader.ensure_file_cached("hello-world", "README.md", "main")
        tag_pointer = await downloader.ensure_file_cached("hello-world", "README.md", "v1.0")

        blobs = list((settings.cache_root / "models--hello-world" / "blobs").iterdir())
        assert len(fake_client.get_calls) == 1
        assert [b.name for b in blobs] == ["abc123"]
        assert main_pointer != tag_pointer
        assert main_pointer.resolve() == tag_pointer.resolve()

    @pytest.mark.asyncio
    async def test_commit_revision_short_circuit(self, fake_client, downloader):
        """이미 받은 커밋 해시 리비전은 네트워크 요청 없음"""
        fake_client.add_file("README.md", README)
        pointer = await downloader.ensure_file_cached("hello-world", "README.md", COMMIT)
        head_calls = len(fake_client.head_calls)
        fast_path_before = file_requests("fast_path")

        again = await downloader.ensure_file_cached("hello-world", "README.md", COMMIT)

        assert again == pointer
        assert len(fake_client.head_calls) == head_calls
        assert len(fake_client.get_calls) == 1
        assert file_requests("fast_path") == fast_path_before + 1

    @pytest.mark.asyncio
    async def test_branch_pointer_reused_by_commit_request(self, fake_client, downloader):
        """브랜치로 받은 파일은 해석된 커밋으로 요청해도 빠른 경로"""
        fake_client.add_file("README.md", README)
        await downloader.ensure_file_cached("hello-world", "README.md", "main")
        head_calls = len(fake_client.head_calls)

        await downloader.ensure_file_cached("hello-world", "README.md", COMMIT)

        assert len(fake_client.head_calls) == head_calls

    @pytest.mark.asyncio
    async def test_dangling_pointer_refetched(self, settings, fake_client, downloader):
        """blob이 지워졌으면 다시 받아서 포인터를 복구"""
        fake_client.add_file("README.md", README, etag='"abc123"')
        pointer = await downloader.ensure_file_cached("hello-world", "README.md", COMMIT)
        (settings.cache_root / "models--hello-world" / "blobs" / "abc123").unlink()

        again = await downloader.ensure_file_cached("hello-world", "README.md", COMMIT)

        assert again == pointer
        assert pointer.read_bytes() == README
        assert len(fake_client.get_calls) == 2

    @pytest.mark.asyncio
    async def test_not_found(self, settings, fake_client, downloader):
        """원격에 없는 파일은 EntryNotFoundException, 캐시는 그대로"""
        with pytest.raises(EntryNotFoundException) as exc_info:
            await downloader.ensure_file_cached("hello-world", "missing.txt", "main")

        assert exc_info.value.path == "missing.txt"
        assert exc_info.value.revision == "main"
        assert fake_client.get_calls == []
        assert not (settings.cache_root / "models--hello-world").exists()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("repo,path,revision", [
        ("hello-world", "../etc/passwd", "main"),
        ("hello-world", "", "main"),
        ("a/b/c", "README.md", "main"),
        ("hello-world", "README.md", "../main"),
    ])
    async def test_invalid_input_before_network(self, fake_client, downloader, repo, path, revision):
        """잘못된 입력은 네트워크 요청 전에 거부"""
        with pytest.raises(ConfigurationException):
            await downloader.ensure_file_cached(repo, path, revision)

        assert fake_client.head_calls == []

    @pytest.mark.asyncio
    async def test_direct_location_used_for_bytes(self, fake_client, downloader):
        """CDN으로 리다이렉트된 파일은 직접 위치에서 바이트를 받음"""
        cdn_url = "https://cdn.example.org/repos/abc?sig=1"
        fake_client.add_file("model.bin", README, direct_location=cdn_url)

        pointer = await downloader.ensure_file_cached("hello-world", "model.bin", "main")

        assert fake_client.get_calls == [cdn_url]
        assert pointer.read_bytes() == README

    @pytest.mark.asyncio
    async def test_dataset_repo(self, settings, fake_client, downloader):
        repo_id = RepoId(kind=RepoType.DATASET, name="org/data")
        fake_client.add_file("train.csv", b"a,b\n1,2\n", repo_id=repo_id)

        pointer = await downloader.ensure_file_cached({"type": "dataset", "name": "org/data"}, "train.csv")

        assert pointer.is_relative_to(settings.cache_root / "datasets--org--data" / "snapshots" / COMMIT)
        assert fake_client.get_calls[0].startswith(f"{fake_client.hub_url}/datasets/org/data/resolve/")

    @pytest.mark.asyncio
    async def test_transfer_failure_leaves_no_pointer(self, settings, fake_client, downloader):
        """전송 실패 시 blob과 포인터 모두 없음"""
        url = fake_client.add_file("README.md", README, etag='"abc123"')
        del fake_client.bodies[url]

        with pytest.raises(RemoteApiException):
            await downloader.ensure_file_cached("hello-world", "README.md", "main")

        storage = settings.cache_root / "models--hello-world"
        assert not (storage / "blobs" / "abc123").exists()
        assert not (storage / "snapshots" / COMMIT / "README.md").is_symlink()

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, fake_client, downloader):
        fake_client.add_file("README.md", README)
        downloaded_before = file_requests("downloaded")
        hit_before = file_requests("blob_hit")

        await downloader.ensure_file_cached("hello-world", "README.md", "main")
        await downloader.ensure_file_cached("hello-world", "README.md", "main")

        assert file_requests("downloaded") == downloaded_before + 1
        assert file_requests("blob_hit") == hit_before + 1

    @pytest.mark.asyncio
    async def test_raw_file_kept_out_of_snapshot(self, settings, fake_client, downloader):
        """raw 파일과 해석된 파일은 같은 경로라도 서로의 내용을 돌려주지 않음"""
        fake_client.add_file("model.bin", LFS_POINTER, etag='"pointer-etag"', raw=True)
        fake_client.add_file("model.bin", README, etag='"content-etag"')
        storage = settings.cache_root / "models--hello-world"

        raw_path = await downloader.ensure_file_cached("hello-world", "model.bin", COMMIT, raw=True)

        assert raw_path == storage / "blobs" / "pointer-etag"
        assert raw_path.read_bytes() == LFS_POINTER
        assert not (storage / "snapshots" / COMMIT / "model.bin").exists()

        head_calls = len(fake_client.head_calls)
        pointer = await downloader.ensure_file_cached("hello-world", "model.bin", COMMIT)

        assert len(fake_client.head_calls) == head_calls + 1
        assert pointer.read_bytes() == README

        again = await downloader.ensure_file_cached("hello-world", "model.bin", COMMIT, raw=True)

        assert again.read_bytes() == LFS_POINTER
        assert pointer.read_bytes() == README

    @pytest.mark.asyncio
    async def test_interrupted_transfer_reported(self, settings, fake_client, downloader):
        """연결이 끊기면 TransferException으로 알리고 오류 메트릭 기록"""
        url = fake_client.add_file("README.md", README, etag='"abc123"')
        fake_client.broken_urls[url] = 16
        errors_before = errors("TransferException", "blob_store")

        with pytest.raises(TransferException) as exc_info:
            await downloader.ensure_file_cached("hello-world", "README.md", "main")

        storage = settings.cache_root / "models--hello-world"
        assert exc_info.value.url == url
        assert errors("TransferException", "blob_store") == errors_before + 1
        assert list((storage / "blobs").iterdir()) == []
        assert not (storage / "snapshots" / COMMIT / "README.md").is_symlink()


class TestDownloaderSettings:
    """다운로더 생성 시 설정 검증 테스트"""

    @pytest.mark.parametrize("overrides", [
        {"download_chunk_size": 0},
        {"request_timeout": 0},
        {"hub_url": "not a url"},
    ])
    def test_invalid_settings_rejected(self, tmp_path, fake_client, overrides):
        settings = Settings(hf_token=None, hf_hub_cache=str(tmp_path / "hub"), **{"hub_url": HUB_URL, **overrides})

        with pytest.raises(ConfigurationException):
            HubDownloader(settings, client=fake_client)

    def test_valid_settings_create_cache_root(self, settings, fake_client):
        HubDownloader(settings, client=fake_client)

        assert settings.cache_root.is_dir()


class TestOpenRemoteFile:
    """캐시를 거치지 않는 원격 스트림 테스트"""

    @pytest.mark.asyncio
    async def test_byte_range(self, settings, fake_client):
        fake_client.add_file("README.md", README, revision="main", commit=COMMIT)
        fake_client.bodies[fake_client.file_url(RepoId(name="hello-world"), "README.md", "main")] = README

        async with HubDownloader(settings, client=fake_client) as downloader:
            async with downloader.open_remote_file("hello-world", "README.md", byte_range=(0, 12)) as response:
                data = b"".join([chunk async for chunk in response.body])

        assert response.status == 206
        assert data == b"# hello-world"

    @pytest.mark.asyncio
    async def test_missing_file_yields_none(self, settings, fake_client):
        async with HubDownloader(settings, client=fake_client) as downloader:
            async with downloader.open_remote_file("hello-world", "missing.txt") as response:
                assert response is None


class TestConvenienceFunction:
    """모듈 수준 편의 함수 테스트"""

    @pytest.mark.asyncio
    async def test_ensure_file_cached(self, settings):
        client = FakeHubClient(settings)
        client.add_file("README.md", README)

        with patch("hubcache.hub.downloader.HubHttpClient", return_value=client):
            pointer = await ensure_file_cached("hello-world", "README.md", settings=settings)

        assert pointer.read_bytes() == README
        assert is_commit_hash(pointer.parent.name)
