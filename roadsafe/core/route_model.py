"""
Active route model for RoadSafe.

Holds the ordered steps of the current route and answers nearest-step
and within-radius queries against it.
"""

from typing import Callable, Iterator, Optional, Tuple
from roadsafe.common.geo import LatLon, distance_meters
from .errors import InvalidState
from .models import Route, RouteStep

StepPredicate = Callable[[str], bool]


class StepsWithin:
    """반경 내 조건을 만족하는 단계들 (지연 평가, 재순회 가능)"""

    def __init__(self, route: Route, position: LatLon, radius_m: float, predicate: StepPredicate):
        self._route = route
        self._position = position
        self._radius_m = radius_m
        self._predicate = predicate

    def __iter__(self) -> Iterator[RouteStep]:
        for step in self._route.steps:
            if (distance_meters(step.start_location, self._position) < self._radius_m
                    and self._predicate(step.instruction_text)):
                yield step

    def first(self) -> Optional[RouteStep]:
        return next(iter(self), None)


class RouteModel:
    """활성 경로 보관소"""

    def __init__(self, route: Optional[Route] = None):
        self._route: Route = route or Route()

    @property
    def has_route(self) -> bool:
        return len(self._route.steps) > 0

    def active_route(self) -> Route:
        """
        활성 경로를 반환합니다.

        Raises:
            InvalidState: 활성 경로가 없는 경우
        """
        if not self.has_route:
            raise InvalidState("no active route")
        return self._route

    def replace(self, route: Route) -> None:
        """새 경로로 통째로 교체합니다."""
        self._route = route

    def clear(self) -> None:
        self._route = Route()

    def nearest_step(self, position: LatLon) -> Optional[Tuple[RouteStep, float]]:
        """
        시작 지점이 가장 가까운 단계를 찾습니다.

        거리가 같으면 경로 순서상 먼저 나온 단계를 반환합니다.

        Returns:
            (단계, 거리(미터)) 또는 경로가 비어 있으면 None
        """
        best: Optional[Tuple[RouteStep, float]] = None
        for step in self._route.steps:
            d = distance_meters(step.start_location, position)
            if best is None or d < best[1]:
                best = (step, d)
        return best

    def steps_within(self, position: LatLon, radius_m: float, predicate: StepPredicate) -> StepsWithin:
        """시작 지점이 반경 안에 있고 안내문이 predicate를 만족하는 단계들을 반환합니다."""
        return StepsWithin(self._route, position, radius_m, predicate)
