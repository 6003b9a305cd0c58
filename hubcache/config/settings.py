"""
설정 관리 모듈

환경 변수를 통한 시스템 설정을 관리합니다.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..exceptions import ConfigurationException


class Settings(BaseSettings):
    """시스템 설정 관리 클래스"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        # 환경 변수 이름은 대소문자를 구분하지 않음
        case_sensitive=False,
        extra="ignore",
    )

    # 허브 설정
    hub_url: str = Field(
        default="https://huggingface.co",
        description="원격 저장소 허브 URL"
    )
    hf_token: Optional[str] = Field(
        default=None,
        description="허브 액세스 토큰 (없으면 비인증 요청)"
    )
    default_revision: str = Field(
        default="main",
        description="리비전 미지정 시 사용할 기본 브랜치"
    )

    # 캐시 설정
    hf_hub_cache: str = Field(
        default="~/.cache/huggingface/hub",
        description="캐시 루트 디렉토리"
    )

    # 전송 설정
    request_timeout: int = Field(
        default=30,
        description="HTTP 요청 타임아웃 (초)"
    )
    download_chunk_size: int = Field(
        default=1024 * 1024,
        description="다운로드 스트리밍 청크 크기 (바이트)"
    )
    metadata_max_retries: int = Field(
        default=2,
        description="메타데이터 요청 최대 재시도 횟수"
    )

    # 동기화 설정
    sync_continue_on_error: bool = Field(
        default=False,
        description="파일 동기화 실패 시 나머지 파일 계속 처리 여부"
    )

    # 로깅 설정
    log_level: str = Field(
        default="INFO",
        description="로그 레벨"
    )
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="로그 포맷"
    )
    log_file: Optional[str] = Field(
        default=None,
        description="로그 파일 경로"
    )

    @property
    def cache_root(self) -> Path:
        """확장된 캐시 루트 경로"""
        return Path(self.hf_hub_cache).expanduser()

    def validate_configuration(self) -> None:
        """설정 유효성 검증"""
        parsed = urlparse(self.hub_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigurationException(
                "HUB_URL", f"http(s) URL이어야 합니다: {self.hub_url}"
            )

        if not self.default_revision.strip():
            raise ConfigurationException(
                "DEFAULT_REVISION", "빈 리비전은 사용할 수 없습니다"
            )

        if self.request_timeout <= 0:
            raise ConfigurationException(
                "REQUEST_TIMEOUT", f"양수여야 합니다: {self.request_timeout}"
            )

        if self.download_chunk_size <= 0:
            raise ConfigurationException(
                "DOWNLOAD_CHUNK_SIZE", f"양수여야 합니다: {self.download_chunk_size}"
            )

        if self.metadata_max_retries < 0:
            raise ConfigurationException(
                "METADATA_MAX_RETRIES", f"음수일 수 없습니다: {self.metadata_max_retries}"
            )

        # 캐시 디렉토리 생성
        os.makedirs(self.cache_root, exist_ok=True)


@lru_cache()
def get_settings() -> Settings:
    """
    설정 인스턴스를 반환합니다 (싱글톤 패턴)

    Returns:
        Settings: 설정 인스턴스
    """
    settings = Settings()
    settings.validate_configuration()
    return settings
