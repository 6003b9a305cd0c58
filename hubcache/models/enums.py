"""
열거형 정의 모듈

허브 캐시 시스템에서 사용되는 상수 값들을 열거형으로 정의합니다.
"""

from enum import Enum


class RepoType(Enum):
    """저장소 종류 열거형"""
    MODEL = "model"
    DATASET = "dataset"
    SPACE = "space"


class FileSyncStatus(Enum):
    """파일 동기화 결과 열거형"""
    CACHED = "cached"
    FAILED = "failed"
