# app/utils/test_datetime_utils.py
"""
시간 유틸리티 기능 테스트

사용법: python -m pytest app/utils/test_datetime_utils.py -v
"""

from datetime import datetime, timezone
from app.utils.datetime_utils import DateTimeUtils, format_relative, to_epoch_millis

JAN_15_2024_MS = 1_705_276_800_000  # 2024-01-15T00:00:00Z

def test_seconds_and_millis_are_normalized():
    """초 단위(iOS)와 밀리초 단위(Android) 숫자가 모두 밀리초로 정규화되어야 함"""
    assert to_epoch_millis(1_705_276_800) == JAN_15_2024_MS
    assert to_epoch_millis(1_705_276_800.5) == JAN_15_2024_MS + 500
    assert to_epoch_millis(JAN_15_2024_MS) == JAN_15_2024_MS

def test_datetime_and_timestamp_dict():
    assert to_epoch_millis(datetime(2024, 1, 15, tzinfo=timezone.utc)) == JAN_15_2024_MS
    # naive datetime 은 UTC 로 간주
    assert to_epoch_millis(datetime(2024, 1, 15)) == JAN_15_2024_MS
    assert to_epoch_millis({'_seconds': 1_705_276_800, '_nanoseconds': 500_000_000}) == JAN_15_2024_MS + 500

def test_string_timestamps():
    assert to_epoch_millis("1705276800") == JAN_15_2024_MS
    assert to_epoch_millis("2024-01-15T00:00:00Z") == JAN_15_2024_MS
    assert to_epoch_millis("2024-01-15T09:00:00+09:00") == JAN_15_2024_MS

def test_unparseable_values_become_zero():
    for value in (None, True, "", "not-a-date", ["2024"], {'foo': 1}):
        assert to_epoch_millis(value) == 0

def test_non_finite_numbers_become_zero():
    for value in (float('inf'), float('-inf'), float('nan'), "inf"):
        assert to_epoch_millis(value) == 0

def test_small_numbers_are_read_as_seconds():
    """1e12 미만의 숫자는 초 단위로 간주됨"""
    assert to_epoch_millis(1234) == 1_234_000

def test_from_epoch_millis_is_utc():
    dt = DateTimeUtils.from_epoch_millis(JAN_15_2024_MS)
    assert dt == datetime(2024, 1, 15, tzinfo=timezone.utc)
    assert dt.tzinfo == timezone.utc

def test_format_relative():
    """상대 시간 표기: now / 분 / 시간 / 날짜"""
    now = 1_700_000_000_000  # 2023-11-14T22:13:20Z
    assert format_relative(now - 30_000, now) == "now"
    assert format_relative(now - 5 * 60_000, now) == "5m"
    assert format_relative(now - 3 * 3_600_000, now) == "3h"
    assert format_relative(now - 2 * 86_400_000, now) == "12/11/2023"
    assert format_relative(0, now) == ""

def test_now_millis_is_recent():
    before = int(datetime.now(timezone.utc).timestamp() * 1000)
    value = DateTimeUtils.now_millis()
    assert value >= before
    assert value - before < 5_000
