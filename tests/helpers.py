"""
테스트 공용 헬퍼

기준점(서울 시청)에서 정북 방향 오프셋으로 위치와 경로 단계를 만듭니다.
"""

from roadsafe.core.models import Coordinate, Position, RouteStep

# 위도 1도 ≈ 111,195 m
M_PER_DEG_LAT = 111_195.0

BASE_LAT = 37.5665
BASE_LON = 126.9780


def north_of(lat: float, lon: float, meters: float):
    """(lat, lon)에서 정북으로 meters 떨어진 좌표"""
    return lat + meters / M_PER_DEG_LAT, lon


def pos(north_m: float = 0.0, *, heading=None, timestamp: float = 0.0) -> Position:
    """기준점에서 정북으로 north_m 떨어진 위치"""
    lat, lon = north_of(BASE_LAT, BASE_LON, north_m)
    return Position(latitude=lat, longitude=lon, heading=heading, timestamp=timestamp)


def coord(north_m: float = 0.0) -> Coordinate:
    lat, lon = north_of(BASE_LAT, BASE_LON, north_m)
    return Coordinate(latitude=lat, longitude=lon)


def step(start_north_m: float, end_north_m: float, text: str = "") -> RouteStep:
    """기준 경도 위의 남북 방향 단계"""
    return RouteStep(start_location=coord(start_north_m), end_location=coord(end_north_m), instruction_text=text)


class FakeClock:
    """수동으로 진행시키는 시계"""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
