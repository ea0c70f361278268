"""
Geographic utilities for RoadSafe.

This module provides great-circle distance, initial bearing and
angular difference calculations on latitude/longitude points.
"""

import math
from typing import Protocol

# 지구 반지름 (미터)
EARTH_RADIUS_M = 6_371_000.0


class LatLon(Protocol):
    latitude: float
    longitude: float


def distance_meters(p1: LatLon, p2: LatLon) -> float:
    """
    두 지점 간의 Haversine 거리를 계산합니다 (미터).

    heading 등 좌표 외 속성은 무시합니다.

    Args:
        p1: 첫 번째 지점
        p2: 두 번째 지점

    Returns:
        두 지점 간의 거리 (미터)
    """
    lat1_rad = math.radians(p1.latitude)
    lat2_rad = math.radians(p2.latitude)
    dlat = math.radians(p2.latitude - p1.latitude)
    dlon = math.radians(p2.longitude - p1.longitude)

    # Haversine 공식
    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_M * c


def bearing_degrees(start: LatLon, end: LatLon) -> float:
    """
    start에서 end로 향하는 초기 방위각을 계산합니다.

    0 = 정북, 90 = 정동.

    Returns:
        [0, 360) 범위의 방위각
    """
    lat1 = math.radians(start.latitude)
    lat2 = math.radians(end.latitude)
    dlon = math.radians(end.longitude - start.longitude)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    brng = math.degrees(math.atan2(y, x))

    result = (brng + 360) % 360
    # -0.0 + 360 처럼 부동소수 오차로 360.0이 나오는 경우 보정
    return 0.0 if result >= 360 else result


def angular_difference(a: float, b: float) -> float:
    """두 방위각 사이의 최소 회전 각도 [0, 180]를 반환합니다."""
    diff = abs(a - b) % 360
    return min(diff, 360 - diff)


def validate_coordinates(lat: float, lon: float) -> bool:
    """
    좌표가 유효한지 확인합니다.

    Args:
        lat: 위도
        lon: 경도

    Returns:
        좌표가 유효하면 True
    """
    return -90 <= lat <= 90 and -180 <= lon <= 180
