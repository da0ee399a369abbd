# app/utils/geo.py
"""
구면 근사(WGS84 평균 반지름)를 사용하는 거리 계산 유틸리티.
"""
import math

from app.models.geo import Coordinate

EARTH_RADIUS_METERS = 6371000.0


def haversine_distance(a: Coordinate, b: Coordinate) -> float:
    """두 좌표 사이의 대원 거리(미터)를 반환합니다."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.longitude - a.longitude)

    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    # 부동소수점 오차로 h 가 1을 아주 조금 넘는 경우를 막습니다.
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(h))


def is_within_radius(center: Coordinate, point: Coordinate, radius_km: float) -> bool:
    return haversine_distance(center, point) <= radius_km * 1000.0


def format_distance(distance_meters: float) -> str:
    """지도 카드에 표시할 거리 문자열 (예: '850 m', '4.9 km', '12 km')."""
    if distance_meters < 1000:
        return f"{int(distance_meters)} m"
    if distance_meters < 10000:
        return f"{distance_meters / 1000:.1f} km"
    return f"{int(distance_meters / 1000)} km"
