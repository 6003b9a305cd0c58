"""
예외 클래스 정의 모듈

허브 캐시 시스템에서 사용되는 커스텀 예외들을 정의합니다.
"""

from typing import Any, Optional


class HubCacheException(Exception):
    """허브 캐시 시스템 기본 예외 클래스"""

    def __init__(self, message: str, error_code: Optional[str] = None):
        """
        예외 초기화

        Args:
            message: 오류 메시지
            error_code: 오류 코드 (선택사항)
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class EntryNotFoundException(HubCacheException):
    """원격 저장소에 파일이 없을 때 발생하는 예외"""

    def __init__(self, repo_id: Any, path: str, revision: Optional[str] = None):
        """
        파일 찾기 실패 예외 초기화

        Args:
            repo_id: 저장소 식별자
            path: 파일 경로
            revision: 리비전
        """
        revision_info = f" (리비전: {revision})" if revision else ""
        message = f"원격 파일을 찾을 수 없습니다: {repo_id}/{path}{revision_info}"
        super().__init__(message, "ENTRY_NOT_FOUND")
        self.repo_id = repo_id
        self.path = path
        self.revision = revision


class MalformedResponseException(HubCacheException):
    """응답에 필수 헤더가 없거나 형식이 잘못되었을 때 발생하는 예외"""

    def __init__(self, detail: str, url: Optional[str] = None):
        """
        잘못된 응답 예외 초기화

        Args:
            detail: 오류 상세 정보
            url: 요청 URL
        """
        url_info = f" ({url})" if url else ""
        message = f"잘못된 응답 형식: {detail}{url_info}"
        super().__init__(message, "MALFORMED_RESPONSE")
        self.detail = detail
        self.url = url


class RemoteApiException(HubCacheException):
    """원격 서비스가 실패 상태를 반환했을 때 발생하는 예외"""

    def __init__(self, status: int, server_message: Optional[str] = None, url: Optional[str] = None):
        """
        원격 API 예외 초기화

        Args:
            status: HTTP 상태 코드
            server_message: 서버가 제공한 오류 메시지
            url: 요청 URL
        """
        detail = server_message or "서버 메시지 없음"
        url_info = f" ({url})" if url else ""
        message = f"원격 API 오류 HTTP {status}: {detail}{url_info}"
        super().__init__(message, "REMOTE_API_ERROR")
        self.status = status
        self.server_message = server_message
        self.url = url


class TransferException(HubCacheException):
    """바이트 전송 도중 연결이 끊기거나 시간이 초과되었을 때 발생하는 예외"""

    def __init__(self, url: Optional[str], error_detail: str):
        message = f"전송 중단: {url} - {error_detail}"
        super().__init__(message, "TRANSFER_ERROR")
        self.url = url
        self.error_detail = error_detail


class CacheIOException(HubCacheException):
    """로컬 캐시 파일 시스템 작업 실패 시 발생하는 예외"""

    def __init__(self, path: Any, error_detail: str):
        """
        캐시 입출력 예외 초기화

        Args:
            path: 작업 대상 경로
            error_detail: 오류 상세 정보
        """
        message = f"캐시 입출력 오류: {path} - {error_detail}"
        super().__init__(message, "CACHE_IO_ERROR")
        self.path = path
        self.error_detail = error_detail


class ConfigurationException(HubCacheException):
    """설정 또는 입력값 오류 시 발생하는 예외"""

    def __init__(self, config_key: str, error_detail: str):
        """
        설정 예외 초기화

        Args:
            config_key: 설정 키
            error_detail: 오류 상세 정보
        """
        message = f"설정 오류: {config_key} - {error_detail}"
        super().__init__(message, "CONFIGURATION_ERROR")
        self.config_key = config_key
        self.error_detail = error_detail


class RepositorySyncException(HubCacheException):
    """저장소 동기화 중 하나 이상의 파일이 실패했을 때 발생하는 예외"""

    def __init__(self, repo_id: Any, revision: str, failures: list, report: Any = None):
        """
        저장소 동기화 예외 초기화

        Args:
            repo_id: 저장소 식별자
            revision: 동기화한 리비전
            failures: 실패한 파일별 결과 목록
            report: 전체 동기화 보고서
        """
        failed_paths = ", ".join(result.path for result in failures)
        message = f"저장소 동기화 실패: {repo_id}@{revision} - {len(failures)}개 파일 실패 ({failed_paths})"
        super().__init__(message, "REPOSITORY_SYNC_ERROR")
        self.repo_id = repo_id
        self.revision = revision
        self.failures = failures
        self.report = report
