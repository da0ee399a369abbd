# app/utils/datetime_utils.py
"""
PetPals 전체에서 일관된 시간 처리를 위한 유틸리티 모듈

문서 저장소의 `timestamp` 필드는 epoch 밀리초(int)로 통일합니다.
기존 클라이언트가 남긴 데이터에는 초 단위 float(iOS), Firestore Timestamp(Android),
숫자 문자열 등이 섞여 있으므로 읽을 때는 to_epoch_millis 로 정규화합니다.
"""

import logging
from datetime import datetime, date, timezone
from typing import Any, Optional
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

# 이 값보다 작은 숫자는 초 단위 timestamp 로 간주합니다. (2001-09-09 이후의 밀리초 값은 모두 이보다 큼)
_SECONDS_THRESHOLD = 1_000_000_000_000

class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def now_millis() -> int:
        """현재 시간을 epoch 밀리초로 반환"""
        return int(DateTimeUtils.now().timestamp() * 1000)

    @staticmethod
    def today() -> date:
        return DateTimeUtils.now().date()

    @staticmethod
    def to_epoch_millis(value: Any) -> int:
        """
        어떤 형태의 timestamp 값이든 epoch 밀리초로 변환합니다. 변환할 수 없으면 0을 반환합니다.

        지원 형태:
        - int / float (초 또는 밀리초)
        - 숫자 문자열, ISO 8601 문자열
        - datetime, Firestore Timestamp(DatetimeWithNanoseconds)
        - {'_seconds': ..., '_nanoseconds': ...} 형태의 딕셔너리

        숫자는 _SECONDS_THRESHOLD(1e12) 보다 작으면 초 단위로 보고 1000 을 곱합니다.
        따라서 1234 같은 작은 밀리초 값은 1234000 으로 읽힙니다.
        inf / nan 처럼 정수로 바꿀 수 없는 값은 0 입니다.
        """
        if value is None or isinstance(value, bool):
            return 0
        if isinstance(value, (int, float)):
            try:
                if value < _SECONDS_THRESHOLD:
                    return int(value * 1000)
                return int(value)
            except (OverflowError, ValueError) as e:
                logger.warning(f"timestamp 숫자 변환 실패: {value!r} - {e}")
                return 0
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return int(value.timestamp() * 1000)
        if isinstance(value, dict):
            seconds = value.get('_seconds', value.get('seconds'))
            if seconds is None:
                return 0
            nanos = value.get('_nanoseconds', value.get('nanoseconds', 0)) or 0
            return int(seconds) * 1000 + int(nanos) // 1_000_000
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                return 0
            try:
                return DateTimeUtils.to_epoch_millis(float(stripped))
            except ValueError:
                pass
            try:
                return DateTimeUtils.to_epoch_millis(dateutil_parser.isoparse(stripped))
            except (ValueError, OverflowError) as e:
                logger.warning(f"timestamp 문자열 파싱 실패: {value} - {e}")
                return 0
        if hasattr(value, 'timestamp'):
            try:
                return int(value.timestamp() * 1000)
            except Exception as e:
                logger.warning(f"timestamp 객체 변환 실패: {value!r} - {e}")
                return 0
        return 0

    @staticmethod
    def from_epoch_millis(timestamp_ms: int) -> datetime:
        """epoch 밀리초를 UTC datetime 으로 변환"""
        if not isinstance(timestamp_ms, (int, float)):
            raise ValueError(f"timestamp_ms는 숫자여야 합니다: {timestamp_ms}")
        return datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)

    @staticmethod
    def format_relative(epoch_millis: int, now_millis: Optional[int] = None) -> str:
        """
        피드 카드에 표시하는 상대 시간 문자열.
        1분 미만은 'now', 1시간 미만은 '5m', 하루 미만은 '3h', 그 이상은 'dd/mm/yyyy'.
        """
        if epoch_millis <= 0:
            return ""
        if now_millis is None:
            now_millis = DateTimeUtils.now_millis()
        diff = now_millis - epoch_millis
        if diff < 60_000:
            return "now"
        if diff < 3_600_000:
            return f"{diff // 60_000}m"
        if diff < 86_400_000:
            return f"{diff // 3_600_000}h"
        return DateTimeUtils.from_epoch_millis(epoch_millis).strftime("%d/%m/%Y")


# 편의를 위한 글로벌 함수들
def now_millis() -> int:
    return DateTimeUtils.now_millis()

def to_epoch_millis(value: Any) -> int:
    return DateTimeUtils.to_epoch_millis(value)

def from_epoch_millis(timestamp_ms: int) -> datetime:
    return DateTimeUtils.from_epoch_millis(timestamp_ms)

def format_relative(epoch_millis: int, now_millis: Optional[int] = None) -> str:
    return DateTimeUtils.format_relative(epoch_millis, now_millis)
