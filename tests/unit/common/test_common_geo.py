"""
지리 유틸리티 단위 테스트

거리, 방위각, 각도 차이 계산을 예시 기반 테스트와 hypothesis 속성 테스트로 검증합니다.
"""

import pytest
from hypothesis import given, strategies as st
from roadsafe.common.geo import (
    angular_difference, bearing_degrees, distance_meters, validate_coordinates
)
from roadsafe.core.models import Coordinate

latitudes = st.floats(min_value=-89.9, max_value=89.9, allow_nan=False)
longitudes = st.floats(min_value=-179.9, max_value=179.9, allow_nan=False)
coordinates = st.builds(Coordinate, latitude=latitudes, longitude=longitudes)
headings = st.floats(min_value=0, max_value=360, allow_nan=False, exclude_max=True)


class TestDistance:
    """Haversine 거리 테스트"""

    def test_seoul_to_busan(self):
        """서울에서 부산까지 거리 테스트 (약 325km)"""
        seoul = Coordinate(latitude=37.5665, longitude=126.9780)
        busan = Coordinate(latitude=35.1796, longitude=129.0756)
        assert 320_000 <= distance_meters(seoul, busan) <= 330_000

    def test_one_degree_on_equator(self):
        """적도상 경도 1도는 약 111km"""
        d = distance_meters(Coordinate(latitude=0, longitude=0), Coordinate(latitude=0, longitude=1))
        assert 110_000 <= d <= 112_000

    @given(a=coordinates)
    def test_same_point_is_zero(self, a):
        """같은 지점 간 거리는 0"""
        assert distance_meters(a, a) == 0

    @given(a=coordinates, b=coordinates)
    def test_symmetric(self, a, b):
        """거리는 대칭"""
        assert distance_meters(a, b) == pytest.approx(distance_meters(b, a), abs=1e-6)

    @given(a=coordinates, b=coordinates)
    def test_non_negative_and_bounded(self, a, b):
        """거리는 0 이상, 지구 반둘레 이하"""
        d = distance_meters(a, b)
        assert 0 <= d <= 20_015_087 + 1


class TestBearing:
    """방위각 테스트"""

    @pytest.mark.parametrize("end,expected", [
        ((1.0, 0.0), 0.0),
        ((0.0, 1.0), 90.0),
        ((-1.0, 0.0), 180.0),
        ((0.0, -1.0), 270.0),
    ])
    def test_cardinal_directions(self, end, expected):
        """정북/정동/정남/정서 방위각"""
        start = Coordinate(latitude=0, longitude=0)
        bearing = bearing_degrees(start, Coordinate(latitude=end[0], longitude=end[1]))
        assert bearing == pytest.approx(expected, abs=1e-6)

    @given(a=coordinates, b=coordinates)
    def test_range(self, a, b):
        """방위각은 [0, 360)"""
        assert 0 <= bearing_degrees(a, b) < 360


class TestAngularDifference:
    """각도 차이 테스트"""

    def test_wraps_around_north(self):
        assert angular_difference(350, 10) == pytest.approx(20)

    def test_opposite(self):
        assert angular_difference(0, 180) == 180

    @given(a=headings, b=headings)
    def test_symmetric_and_bounded(self, a, b):
        """차이는 대칭이고 [0, 180]"""
        d = angular_difference(a, b)
        assert 0 <= d <= 180
        assert d == pytest.approx(angular_difference(b, a))


class TestValidateCoordinates:
    """좌표 유효성 검사 테스트"""

    def test_valid(self):
        assert validate_coordinates(37.5, 127.0)
        assert validate_coordinates(-90, -180)

    def test_invalid(self):
        assert not validate_coordinates(91, 0)
        assert not validate_coordinates(0, 181)
