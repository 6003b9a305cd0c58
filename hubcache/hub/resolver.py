"""
원격 콘텐츠 기술자 해석 모듈

메타데이터 요청(HEAD) 한 번으로 파일의 무결성 태그, 크기, 커밋 해시,
대용량 파일 직접 다운로드 위치를 알아냅니다.
"""

import asyncio
from typing import Optional

import aiohttp

from ..exceptions import MalformedResponseException, RemoteApiException
from ..models.base import ContentDescriptor, HeadResponse, RepoId
from ..utils.helpers import retry_with_backoff
from ..utils.logging import get_logger
from .client import (
    ENTRY_NOT_FOUND_ERROR_CODE,
    HEADER_X_ERROR_CODE,
    HEADER_X_ERROR_MESSAGE,
    HEADER_X_LINKED_ETAG,
    HEADER_X_LINKED_SIZE,
    HEADER_X_REPO_COMMIT,
    HubClientBase,
)
from .locator import normalize_etag

logger = get_logger(__name__)


def is_entry_not_found(response: HeadResponse) -> bool:
    """404 + EntryNotFound 오류 코드 조합인지 확인"""
    return response.status == 404 and response.header(HEADER_X_ERROR_CODE) == ENTRY_NOT_FOUND_ERROR_CODE


class DescriptorResolver:
    """원격 콘텐츠 기술자 해석기"""

    def __init__(self, client: HubClientBase, max_retries: int = 0, retry_delay: float = 0.5):
        """
        해석기 초기화

        Args:
            client: 허브 클라이언트
            max_retries: 네트워크 오류 시 메타데이터 요청 재시도 횟수
            retry_delay: 첫 재시도 지연 시간 (초)
        """
        self.client = client
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.logger = logger

    async def resolve(
        self,
        repo_id: RepoId,
        path: str,
        revision: str,
        raw: bool = False
    ) -> Optional[ContentDescriptor]:
        """
        파일 콘텐츠 기술자 조회

        Args:
            repo_id: 저장소 식별자
            path: 저장소 내 파일 경로
            revision: 리비전
            raw: True면 LFS 포인터 파일 자체를 대상으로 조회

        Returns:
            콘텐츠 기술자, 파일이 없으면 None

        Raises:
            RemoteApiException: 404(EntryNotFound) 외의 실패 응답
            MalformedResponseException: 무결성 태그나 크기가 없거나 잘못되었을 때
        """
        async def head() -> HeadResponse:
            return await self.client.head_file_info(repo_id, path, revision, raw)

        response = await retry_with_backoff(
            head,
            max_retries=self.max_retries,
            initial_delay=self.retry_delay,
            exceptions=(aiohttp.ClientError, asyncio.TimeoutError),
        )

        if is_entry_not_found(response):
            self.logger.info(f"원격 파일 없음: {repo_id}/{path}@{revision}")
            return None

        if not 200 <= response.status < 300:
            raise RemoteApiException(response.status, response.header(HEADER_X_ERROR_MESSAGE), response.url)

        return self.parse_descriptor(response, f"{repo_id}/{path}@{revision}")

    def parse_descriptor(self, response: HeadResponse, target: str) -> ContentDescriptor:
        """
        메타데이터 응답 헤더에서 기술자 생성

        LFS 파일은 X-Linked-* 헤더에 실제 콘텐츠 정보가 있고, 일반 ETag/Content-Length는
        포인터 객체를 가리킬 수 있으므로 X-Linked-* 헤더를 우선합니다.
        """
        raw_etag = response.header(HEADER_X_LINKED_ETAG) or response.header("ETag")
        etag = normalize_etag(raw_etag) if raw_etag else ""
        if not etag:
            raise MalformedResponseException(f"ETag 헤더가 없습니다: {target}", response.url)
        # 태그가 blob 파일 이름이 되므로 blobs/ 밖을 가리키면 안 됨
        if "/" in etag or "\\" in etag or etag in (".", ".."):
            raise MalformedResponseException(f"파일 이름으로 쓸 수 없는 ETag: {raw_etag} ({target})", response.url)

        raw_size = response.header(HEADER_X_LINKED_SIZE) or response.header("Content-Length")
        if raw_size is None:
            raise MalformedResponseException(f"크기 정보가 없습니다: {target}", response.url)

        try:
            size = int(raw_size)
        except ValueError as e:
            raise MalformedResponseException(f"잘못된 파일 크기: {raw_size} ({target})", response.url) from e
        if size < 0:
            raise MalformedResponseException(f"잘못된 파일 크기: {raw_size} ({target})", response.url)

        # 다른 호스트(CDN)로 리다이렉트된 경우에만 직접 다운로드 위치로 기록
        direct_location = None if self.client.is_hub_host(response.url) else response.url

        descriptor = ContentDescriptor(
            etag=etag,
            size=size,
            commit_hash=response.header(HEADER_X_REPO_COMMIT),
            direct_location=direct_location,
        )
        self.logger.debug(
            f"기술자 해석: {target} -> etag={descriptor.etag}, size={descriptor.size}, "
            f"commit={descriptor.commit_hash}, direct={descriptor.direct_location is not None}"
        )
        return descriptor
