# app/utils/__init__.py
"""
유틸리티 모듈 패키지

이 패키지는 프로젝트 전체에서 공통으로 사용되는 유틸리티 함수들을 포함합니다.
"""

from .datetime_utils import (
    DateTimeUtils,
    now_millis, to_epoch_millis, from_epoch_millis, format_relative
)
from .geo import haversine_distance, format_distance

__all__ = [
    'DateTimeUtils',
    'now_millis', 'to_epoch_millis', 'from_epoch_millis', 'format_relative',
    'haversine_distance', 'format_distance'
]
