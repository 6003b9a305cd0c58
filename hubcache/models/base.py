"""
기본 데이터 모델 모듈

허브 캐시 시스템의 핵심 데이터 구조들을 정의합니다.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import FileSyncStatus, RepoType


class RepoId(BaseModel):
    """원격 저장소 식별자 모델 (불변)"""

    model_config = ConfigDict(frozen=True)

    kind: RepoType = Field(
        default=RepoType.MODEL,
        description="저장소 종류 (model, dataset, space)"
    )
    name: str = Field(
        ...,
        description="저장소 이름 (예: org/name)",
        min_length=1
    )

    def __str__(self) -> str:
        if self.kind == RepoType.MODEL:
            return self.name
        return f"{self.kind.value}s/{self.name}"


class ContentDescriptor(BaseModel):
    """원격 파일 콘텐츠 기술자 모델"""

    etag: str = Field(
        ...,
        description="정규화된 무결성 태그 (따옴표 제거)",
        min_length=1
    )
    size: int = Field(
        ...,
        description="콘텐츠 크기 (바이트)",
        ge=0
    )
    commit_hash: Optional[str] = Field(
        default=None,
        description="해석된 커밋 해시"
    )
    direct_location: Optional[str] = Field(
        default=None,
        description="대용량 파일 직접 다운로드 URL (다른 호스트로 리다이렉트된 경우)"
    )


class HeadResponse(BaseModel):
    """메타데이터 요청 응답 모델"""

    status: int = Field(
        ...,
        description="HTTP 상태 코드"
    )
    url: str = Field(
        ...,
        description="리다이렉트를 따라간 최종 URL"
    )
    headers: Dict[str, str] = Field(
        default_factory=dict,
        description="응답 헤더 (소문자 키)"
    )

    def header(self, name: str) -> Optional[str]:
        """대소문자 구분 없이 헤더 값 조회"""
        return self.headers.get(name.lower())


class ListedFile(BaseModel):
    """저장소 파일 목록 항목 모델"""

    path: str = Field(
        ...,
        description="저장소 내 상대 파일 경로"
    )
    size: Optional[int] = Field(
        default=None,
        description="파일 크기 (바이트)"
    )
    oid: Optional[str] = Field(
        default=None,
        description="git 객체 ID"
    )


class FileSyncResult(BaseModel):
    """파일별 동기화 결과 모델"""

    path: str = Field(
        ...,
        description="저장소 내 상대 파일 경로"
    )
    status: FileSyncStatus = Field(
        ...,
        description="동기화 결과 상태"
    )
    local_path: Optional[str] = Field(
        default=None,
        description="스냅샷 포인터 경로"
    )
    error: Optional[str] = Field(
        default=None,
        description="오류 메시지"
    )


class SyncReport(BaseModel):
    """저장소 동기화 보고서 모델"""

    repo_id: RepoId = Field(
        ...,
        description="동기화한 저장소"
    )
    revision: str = Field(
        ...,
        description="요청된 리비전"
    )
    commit_hash: str = Field(
        ...,
        description="해석된 커밋 해시"
    )
    results: List[FileSyncResult] = Field(
        default_factory=list,
        description="파일별 동기화 결과"
    )
    started_at: datetime = Field(
        default_factory=datetime.now,
        description="동기화 시작 시간"
    )
    completed_at: Optional[datetime] = Field(
        default=None,
        description="동기화 완료 시간"
    )

    @property
    def succeeded(self) -> List[FileSyncResult]:
        return [r for r in self.results if r.status == FileSyncStatus.CACHED]

    @property
    def failed(self) -> List[FileSyncResult]:
        return [r for r in self.results if r.status == FileSyncStatus.FAILED]
