"""
허브 클라이언트 모듈

원격 저장소 허브와 통신하는 외부 협력자 인터페이스와 aiohttp 기반 구현을 제공합니다.
메타데이터 조회(HEAD), 바이트 전송, 리비전 해석, 재귀 파일 목록 조회를 담당합니다.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncContextManager, AsyncIterator, Dict, Optional, Tuple
from urllib.parse import quote, urlparse

import aiohttp

from ..config.settings import Settings
from ..exceptions import ConfigurationException, MalformedResponseException, RemoteApiException
from ..models.base import HeadResponse, ListedFile, RepoId
from ..models.enums import RepoType
from ..utils.logging import get_logger

logger = get_logger(__name__)

HEADER_X_REPO_COMMIT = "X-Repo-Commit"
HEADER_X_LINKED_ETAG = "X-Linked-Etag"
HEADER_X_LINKED_SIZE = "X-Linked-Size"
HEADER_X_ERROR_CODE = "X-Error-Code"
HEADER_X_ERROR_MESSAGE = "X-Error-Message"

# 리다이렉트 이전 허브 응답에만 실리는 헤더
HUB_ONLY_HEADERS = (
    HEADER_X_REPO_COMMIT,
    HEADER_X_LINKED_ETAG,
    HEADER_X_LINKED_SIZE,
    HEADER_X_ERROR_CODE,
    HEADER_X_ERROR_MESSAGE,
)

ENTRY_NOT_FOUND_ERROR_CODE = "EntryNotFound"


@dataclass
class ByteResponse:
    """바이트 전송 응답"""

    status: int
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[AsyncIterator[bytes]] = None
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def check_credentials(access_token: Optional[str], settings: Settings) -> Optional[str]:
    """
    요청에 사용할 액세스 토큰 결정

    Args:
        access_token: 호출자가 직접 전달한 토큰
        settings: 시스템 설정 (HF_TOKEN)

    Returns:
        토큰 (없으면 None, 비인증 요청)

    Raises:
        ConfigurationException: 토큰 형식이 올바르지 않을 때
    """
    token = access_token or settings.hf_token
    if not token:
        return None
    if not token.startswith("hf_"):
        raise ConfigurationException("access_token", "액세스 토큰은 'hf_'로 시작해야 합니다")
    return token


def repo_api_prefix(repo_id: RepoId) -> str:
    """파일 URL에 쓰이는 저장소 종류 접두사 (모델은 접두사 없음)"""
    if repo_id.kind == RepoType.MODEL:
        return ""
    return f"{repo_id.kind.value}s/"


def lowercase_headers(headers) -> Dict[str, str]:
    """응답 헤더를 소문자 키 딕셔너리로 변환"""
    return {key.lower(): value for key, value in headers.items()}


class HubClientBase(ABC):
    """허브 클라이언트 기본 추상 클래스"""

    def __init__(self, settings: Settings, access_token: Optional[str] = None):
        """
        허브 클라이언트 기본 초기화

        Args:
            settings: 시스템 설정
            access_token: 액세스 토큰 (없으면 설정의 HF_TOKEN 사용)
        """
        self.settings = settings
        self.hub_url = settings.hub_url.rstrip('/')
        self.access_token = check_credentials(access_token, settings)
        self.logger = logger

    def file_url(
        self,
        repo_id: RepoId,
        path: str,
        revision: str,
        raw: bool = False,
        no_content_disposition: bool = False
    ) -> str:
        """
        파일 resolve/raw 엔드포인트 URL 생성

        Args:
            repo_id: 저장소 식별자
            path: 저장소 내 파일 경로
            revision: 리비전
            raw: True면 git 원본(LFS 포인터 파일) 엔드포인트 사용
            no_content_disposition: True면 Content-Disposition 응답 헤더 생략 요청

        Returns:
            파일 URL
        """
        endpoint = "raw" if raw else "resolve"
        url = (
            f"{self.hub_url}/{repo_api_prefix(repo_id)}{repo_id.name}/{endpoint}/"
            f"{quote(revision, safe='')}/{quote(path, safe='/')}"
        )
        if no_content_disposition:
            url += "?noContentDisposition=1"
        return url

    def auth_headers(self) -> Dict[str, str]:
        """인증 헤더 (토큰이 없으면 빈 딕셔너리)"""
        if self.access_token:
            return {"Authorization": f"Bearer {self.access_token}"}
        return {}

    def is_hub_host(self, url: str) -> bool:
        """URL이 허브와 같은 호스트인지 확인"""
        return urlparse(url).hostname == urlparse(self.hub_url).hostname

    @abstractmethod
    async def head_file_info(self, repo_id: RepoId, path: str, revision: str, raw: bool = False) -> HeadResponse:
        """
        파일 메타데이터 조회 (본문 전송 없음)

        리다이렉트를 따라가며, 최종 URL과 허브 전용 헤더를 함께 돌려줍니다.
        """

    @abstractmethod
    def get_bytes(self, url: str, byte_range: Optional[Tuple[int, int]] = None) -> AsyncContextManager[ByteResponse]:
        """파일 바이트 스트림 요청 (비동기 컨텍스트 매니저)"""

    @abstractmethod
    async def resolve_revision_to_commit(self, repo_id: RepoId, revision: str) -> str:
        """브랜치/태그 리비전을 커밋 해시로 해석"""

    @abstractmethod
    def list_files_recursive(self, repo_id: RepoId, revision: str) -> AsyncIterator[ListedFile]:
        """리비전의 모든 파일을 재귀적으로 나열"""

    async def close(self) -> None:
        """리소스 정리"""


class HubHttpClient(HubClientBase):
    """aiohttp 기반 허브 클라이언트"""

    def __init__(self, settings: Settings, access_token: Optional[str] = None):
        super().__init__(settings, access_token)
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """HTTP 세션 생성"""
        if not self.session:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(
                    total=None,
                    sock_connect=self.settings.request_timeout,
                    sock_read=self.settings.request_timeout,
                ),
                headers={
                    'User-Agent': 'hubcache/0.1'
                },
                # blob은 전송된 바이트 그대로 저장
                auto_decompress=False
            )
        return self.session

    async def head_file_info(self, repo_id: RepoId, path: str, revision: str, raw: bool = False) -> HeadResponse:
        session = await self._get_session()
        url = self.file_url(repo_id, path, revision, raw)

        # 압축 응답이면 Content-Length가 실제 파일 크기와 달라짐
        headers = {"Accept-Encoding": "identity", **self.auth_headers()}

        async with session.head(url, headers=headers, allow_redirects=True) as response:
            headers = lowercase_headers(response.headers)
            # 허브 전용 헤더는 리다이렉트 첫 응답에만 있으므로 이력에서 보충
            for hop in response.history:
                for name in HUB_ONLY_HEADERS:
                    value = hop.headers.get(name)
                    if value is not None and name.lower() not in headers:
                        headers[name.lower()] = value

            self.logger.debug(f"메타데이터 조회: {url} -> HTTP {response.status} ({response.url})")
            return HeadResponse(status=response.status, url=str(response.url), headers=headers)

    @asynccontextmanager
    async def get_bytes(self, url: str, byte_range: Optional[Tuple[int, int]] = None) -> AsyncIterator[ByteResponse]:
        session = await self._get_session()

        # CDN 서명 URL에는 허브 토큰을 보내지 않음
        headers = self.auth_headers() if self.is_hub_host(url) else {}
        headers["Accept-Encoding"] = "identity"
        if byte_range:
            headers["Range"] = f"bytes={byte_range[0]}-{byte_range[1]}"

        async with session.get(url, headers=headers) as response:
            if response.status >= 400:
                yield ByteResponse(
                    status=response.status,
                    url=str(response.url),
                    headers=lowercase_headers(response.headers),
                    error_message=await self._read_error_message(response),
                )
                return

            yield ByteResponse(
                status=response.status,
                url=str(response.url),
                headers=lowercase_headers(response.headers),
                body=response.content.iter_chunked(self.settings.download_chunk_size),
            )

    async def resolve_revision_to_commit(self, repo_id: RepoId, revision: str) -> str:
        session = await self._get_session()
        url = f"{self.hub_url}/api/{repo_id.kind.value}s/{repo_id.name}/revision/{quote(revision, safe='')}"

        async with session.get(url, headers=self.auth_headers()) as response:
            if response.status >= 400:
                raise RemoteApiException(response.status, await self._read_error_message(response), url)
            data = await response.json()

        sha = data.get("sha") if isinstance(data, dict) else None
        if not sha:
            raise MalformedResponseException("리비전 응답에 sha가 없습니다", url)

        self.logger.debug(f"리비전 해석: {repo_id}@{revision} -> {sha}")
        return sha

    async def list_files_recursive(self, repo_id: RepoId, revision: str) -> AsyncIterator[ListedFile]:
        session = await self._get_session()
        url: Optional[str] = f"{self.hub_url}/api/{repo_id.kind.value}s/{repo_id.name}/tree/{quote(revision, safe='')}"
        params: Optional[Dict[str, str]] = {"recursive": "true"}

        while url:
            async with session.get(url, headers=self.auth_headers(), params=params) as response:
                if response.status >= 400:
                    raise RemoteApiException(response.status, await self._read_error_message(response), url)
                entries = await response.json()
                next_link = response.links.get("next")

            if not isinstance(entries, list):
                raise MalformedResponseException("파일 목록 응답이 배열이 아닙니다", url)

            for entry in entries:
                if entry.get("type") == "file":
                    yield ListedFile(path=entry["path"], size=entry.get("size"), oid=entry.get("oid"))

            # 다음 페이지 URL에는 쿼리 파라미터가 이미 포함됨
            url = str(next_link["url"]) if next_link else None
            params = None

    async def _read_error_message(self, response: aiohttp.ClientResponse) -> Optional[str]:
        """응답에서 서버 오류 메시지 추출"""
        header_message = response.headers.get(HEADER_X_ERROR_MESSAGE)
        if header_message:
            return header_message

        try:
            if "application/json" in response.headers.get("Content-Type", ""):
                data = await response.json()
                if isinstance(data, dict) and data.get("error"):
                    return str(data["error"])
                return None
            text = await response.text()
            return text[:500] if text else None
        except (aiohttp.ClientError, ValueError) as e:
            self.logger.warning(f"오류 응답 본문 읽기 실패: {e}")
            return None

    async def close(self) -> None:
        """세션 정리"""
        if self.session:
            await self.session.close()
            self.session = None
