# app/models/geo.py
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class Coordinate:
    """위도/경도 쌍. 문서 저장소에는 geopoint 로 저장됩니다."""
    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        """(0, 0) 이거나 범위를 벗어난 좌표는 위치 정보가 없는 것으로 취급합니다."""
        if self.latitude == 0 and self.longitude == 0:
            return False
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0

    def to_dict(self) -> dict:
        return {'latitude': self.latitude, 'longitude': self.longitude}

    @classmethod
    def from_value(cls, value: Any) -> Optional["Coordinate"]:
        """
        Coordinate, Firestore GeoPoint, {'latitude', 'longitude'} 딕셔너리를 모두 받아들입니다.
        해석할 수 없는 값이면 None 을 반환합니다.
        """
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            lat = value.get('latitude', value.get('lat'))
            lng = value.get('longitude', value.get('lng'))
        else:
            lat = getattr(value, 'latitude', None)
            lng = getattr(value, 'longitude', None)
        if lat is None or lng is None:
            return None
        try:
            return cls(latitude=float(lat), longitude=float(lng))
        except (TypeError, ValueError):
            return None
