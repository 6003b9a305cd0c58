"""
콘텐츠 위치 계산 모듈

저장소 식별자로부터 캐시 디렉토리, blob 경로, 스냅샷 포인터 경로를 계산합니다.
경로 계산 함수는 파일 시스템에 접근하지 않습니다.

캐시 디렉토리 구조::

    <cache_root>/<kind>s--<org>--<name>/
        blobs/<etag>
        refs/<revision>
        snapshots/<commit>/<relative-path>  -> ../../blobs/<etag>
"""

import re
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from ..exceptions import ConfigurationException
from ..models.base import RepoId
from ..models.enums import RepoType

REGEX_COMMIT_HASH = re.compile(r"^[0-9a-f]{40}$")

BLOBS_DIR_NAME = "blobs"
SNAPSHOTS_DIR_NAME = "snapshots"
REFS_DIR_NAME = "refs"
REPO_ID_SEPARATOR = "--"

RepoDesignation = Union[RepoId, str, Mapping[str, Any]]

_PREFIX_TO_TYPE = {
    "models": RepoType.MODEL,
    "datasets": RepoType.DATASET,
    "spaces": RepoType.SPACE,
}


def is_commit_hash(revision: Optional[str]) -> bool:
    """리비전이 40자리 16진수 커밋 해시인지 확인"""
    return bool(revision) and REGEX_COMMIT_HASH.match(revision) is not None


def normalize_etag(etag: str) -> str:
    """
    무결성 태그 정규화

    허브는 ETag를 따옴표로 감싸거나 약한 검증자(W/) 접두사를 붙여 보내기도 합니다.
    blob 파일 이름으로 쓰기 위해 둘 다 제거합니다.

    Args:
        etag: 헤더에서 읽은 원본 태그

    Returns:
        str: 정규화된 태그

    Examples:
        >>> normalize_etag('"abc123"')
        'abc123'
        >>> normalize_etag('W/"abc123"')
        'abc123'
    """
    etag = etag.strip()
    if etag.startswith("W/"):
        etag = etag[2:]
    return etag.replace('"', "")


def to_repo_id(designation: RepoDesignation) -> RepoId:
    """
    저장소 지정값을 RepoId로 변환

    Args:
        designation: RepoId, "datasets/org/name" 형식 문자열, 또는 {"type"|"kind", "name"} 딕셔너리

    Returns:
        RepoId: 저장소 식별자

    Raises:
        ConfigurationException: 지정값이 올바르지 않을 때
    """
    if isinstance(designation, RepoId):
        repo_id = designation
    elif isinstance(designation, str):
        repo_id = _parse_repo_string(designation)
    elif isinstance(designation, Mapping):
        kind = designation.get("kind", designation.get("type", RepoType.MODEL.value))
        try:
            repo_type = kind if isinstance(kind, RepoType) else RepoType(kind)
        except ValueError as e:
            raise ConfigurationException("repo", f"지원하지 않는 저장소 종류: {kind}") from e
        name = str(designation.get("name") or "").strip().strip("/")
        if not name:
            raise ConfigurationException("repo", "저장소 이름이 비어 있습니다")
        repo_id = RepoId(kind=repo_type, name=name)
    else:
        raise ConfigurationException("repo", f"지원하지 않는 저장소 지정 형식: {type(designation).__name__}")

    _validate_repo_name(repo_id.name)
    return repo_id


def _parse_repo_string(value: str) -> RepoId:
    """'datasets/org/name' 같은 문자열 파싱"""
    value = value.strip().strip("/")
    if not value:
        raise ConfigurationException("repo", "저장소 이름이 비어 있습니다")

    prefix, _, rest = value.partition("/")
    if prefix in _PREFIX_TO_TYPE and rest:
        return RepoId(kind=_PREFIX_TO_TYPE[prefix], name=rest)
    return RepoId(kind=RepoType.MODEL, name=value)


def _validate_repo_name(name: str) -> None:
    parts = name.split("/")
    if len(parts) > 2:
        raise ConfigurationException("repo", f"저장소 이름은 'org/name' 형식이어야 합니다: {name}")
    if any(part in ("", ".", "..") for part in parts):
        raise ConfigurationException("repo", f"잘못된 저장소 이름: {name}")
    if REPO_ID_SEPARATOR in name:
        raise ConfigurationException("repo", f"저장소 이름에 '{REPO_ID_SEPARATOR}'를 사용할 수 없습니다: {name}")


def validate_relative_path(path: str) -> str:
    """
    저장소 내 파일 경로 검증 및 정규화

    앞쪽 '/'는 제거합니다. 빈 경로나 '..' 구성요소는 허용하지 않습니다.

    Raises:
        ConfigurationException: 경로가 올바르지 않을 때
    """
    normalized = path.lstrip("/")
    if not normalized or normalized.endswith("/"):
        raise ConfigurationException("path", f"파일 경로가 올바르지 않습니다: '{path}'")
    if "\\" in normalized or any(part in ("", ".", "..") for part in normalized.split("/")):
        raise ConfigurationException("path", f"허용되지 않는 경로 구성요소: '{path}'")
    return normalized


def validate_revision(revision: str) -> str:
    """
    리비전 문자열 검증

    브랜치 이름에 '/'는 허용하지만 ('refs/pr/1'), 빈 구성요소나 '..'는 허용하지 않습니다.

    Raises:
        ConfigurationException: 리비전이 올바르지 않을 때
    """
    if not revision or revision != revision.strip():
        raise ConfigurationException("revision", f"리비전이 올바르지 않습니다: '{revision}'")
    if "\\" in revision or any(part in ("", ".", "..") for part in revision.split("/")):
        raise ConfigurationException("revision", f"허용되지 않는 리비전 구성요소: '{revision}'")
    return revision


def repo_folder_name(repo_id: RepoId) -> str:
    """
    저장소 캐시 폴더 이름 생성

    Examples:
        >>> repo_folder_name(RepoId(kind=RepoType.MODEL, name="org/bert"))
        'models--org--bert'
    """
    parts = [f"{repo_id.kind.value}s", *repo_id.name.split("/")]
    return REPO_ID_SEPARATOR.join(parts)


def storage_folder(cache_root: Union[str, Path], repo_id: RepoId) -> Path:
    """저장소의 캐시 루트 디렉토리"""
    return Path(cache_root) / repo_folder_name(repo_id)


def snapshot_pointer_path(storage: Path, revision: str, relative_path: str) -> Path:
    """리비전별 스냅샷 포인터 경로"""
    return storage / SNAPSHOTS_DIR_NAME / revision / relative_path


def blob_path(storage: Path, normalized_etag: str) -> Path:
    """etag에 해당하는 blob 경로"""
    return storage / BLOBS_DIR_NAME / normalized_etag


def ref_path(storage: Path, revision: str) -> Path:
    """심볼릭 리비전의 커밋 해시를 기록하는 ref 파일 경로"""
    return storage / REFS_DIR_NAME / revision
