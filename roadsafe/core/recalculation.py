"""
Route recalculation policy for RoadSafe.
"""

from typing import Optional
from roadsafe.common.geo import distance_meters
from roadsafe.observability.logging_setup import get_logger
from .models import Destination, Position, RecalculationRequested
from .route_model import RouteModel

log = get_logger("roadsafe.recalculation")


class RecalculationPolicy:
    """샘플 간 이동 거리로 현재 경로의 유효성을 판단합니다."""

    def __init__(self, route_model: RouteModel, *, threshold_m: float = 100.0):
        """
        초기화합니다.

        Args:
            route_model: 재계산 시 비울 경로 모델
            threshold_m: 재계산 임계 이동 거리 (미터, 초과 시 재계산)
        """
        self.route_model = route_model
        self.threshold_m = threshold_m
        self.last_known_position: Optional[Position] = None

    def observe(self, position: Position, destination: Optional[Destination]) -> Optional[RecalculationRequested]:
        """
        새 샘플을 반영합니다.

        last_known_position은 재계산 여부와 무관하게 항상 갱신됩니다.

        Returns:
            재계산 신호 또는 None
        """
        previous = self.last_known_position
        self.last_known_position = position

        if destination is None or previous is None:
            return None

        moved = distance_meters(previous, position)
        if moved <= self.threshold_m:
            return None

        self.route_model.clear()
        log.info("이동 거리 초과로 경로 재계산", moved_m=round(moved, 1), threshold_m=self.threshold_m)
        return RecalculationRequested(origin=position, destination=destination)

    def reset(self) -> None:
        self.last_known_position = None
