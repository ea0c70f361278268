"""
Directions, places and traffic provider port interfaces.

Implementations raise ProviderUnavailable or MalformedResponse on failure.
"""

from typing import List, Protocol
from roadsafe.core.models import Destination, POI, Position, Route, TrafficEstimate

class DirectionsPort(Protocol):
    """경로 공급자 포트 인터페이스"""

    async def route(self, origin: Position, destination: Destination) -> Route:
        """
        출발지에서 목적지까지의 경로를 조회합니다.

        Args:
            origin: 출발 위치
            destination: 목적지 좌표 또는 주소

        Returns:
            경로
        """
        ...

class PlacesPort(Protocol):
    """장소 검색 공급자 포트 인터페이스"""

    async def nearby_search(self, center: Position, radius_m: float, category: str) -> List[POI]:
        """
        주변 장소를 검색합니다.

        Args:
            center: 검색 중심
            radius_m: 검색 반경 (미터)
            category: 장소 유형 (예: "school")

        Returns:
            POI 목록
        """
        ...

class TrafficPort(Protocol):
    """교통 예측 공급자 포트 인터페이스"""

    async def estimate(self, origin: Position, destination: Position) -> TrafficEstimate:
        """
        평상시/현재 교통 상황 소요 시간을 조회합니다.

        Args:
            origin: 출발 위치
            destination: 도착 위치

        Returns:
            교통 예측 결과
        """
        ...
