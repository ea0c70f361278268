"""
Per-category alert state machines for RoadSafe.

Each category applies its own thresholds, cooldown and dedupe rules.
Cooldowns are compared against the `now` passed in by the caller, so the
machine never reads a wall clock itself.
"""

from typing import Dict, Iterable, List, Optional, Tuple
from roadsafe.common.geo import angular_difference, bearing_degrees, distance_meters
from roadsafe.observability.logging_setup import get_logger
from roadsafe.settings import AlertThresholds
from .classifier import KeywordRoadClassifier, RoadClassifier
from .errors import InvalidState
from .models import AlertCategory, AlertEvent, AlertState, POI, Position, RouteStep, TrafficEstimate
from .route_model import RouteModel
from .voice_template import VoiceMessageTemplate

log = get_logger("roadsafe.alert_state")


def is_opposing(angle: float, thresholds: AlertThresholds) -> bool:
    """heading과 도로 방향 차이가 (min, max) 개구간 안에 있는지 확인합니다."""
    return thresholds.wrong_way_min_angle_deg < angle < thresholds.wrong_way_max_angle_deg


def exceeds_traffic_factor(estimate: TrafficEstimate, factor: float) -> bool:
    return estimate.duration_in_traffic_sec > factor * estimate.normal_duration_sec


class AlertStateMachine:
    """카테고리별 경보 상태 머신"""

    def __init__(self,
                 thresholds: Optional[AlertThresholds] = None,
                 *,
                 classifier: Optional[RoadClassifier] = None,
                 templates: Optional[VoiceMessageTemplate] = None):
        """
        초기화합니다.

        Args:
            thresholds: 거리/각도/쿨다운 임계값
            classifier: 고속도로 진입/진출 안내문 분류기
            templates: 경보 메시지 템플릿
        """
        self.thresholds = thresholds or AlertThresholds()
        self.classifier: RoadClassifier = classifier or KeywordRoadClassifier()
        self.templates = templates or VoiceMessageTemplate()
        self.states: Dict[AlertCategory, AlertState] = {c: AlertState() for c in AlertCategory}
        self.highway_on = False

    # ---- WrongWay ----
    def evaluate_wrong_way(self,
                           position: Position,
                           nearest: Optional[Tuple[RouteStep, float]],
                           now: float) -> Optional[AlertEvent]:
        """
        역주행 여부를 평가합니다.

        Args:
            position: 현재 위치
            nearest: RouteModel.nearest_step 결과
            now: 현재 시각

        Returns:
            경보 이벤트 또는 None
        """
        state = self.states[AlertCategory.WRONG_WAY]
        if state.in_cooldown(now):
            return None
        if position.heading is None or nearest is None:
            return None

        step, distance = nearest
        if distance >= self.thresholds.wrong_way_max_step_distance_m:
            return None

        road_bearing = bearing_degrees(step.start_location, step.end_location)
        angle = angular_difference(position.heading, road_bearing)
        if not is_opposing(angle, self.thresholds):
            return None

        state.last_fired_at = now
        state.cooldown_until = now + self.thresholds.wrong_way_cooldown_sec
        log.warning("역주행 감지", heading=position.heading, road_bearing=round(road_bearing, 1),
                    angle=round(angle, 1), step_distance_m=round(distance, 1))
        return self.templates.create_alert(AlertCategory.WRONG_WAY, fired_at=now)

    # ---- SchoolZone ----
    def evaluate_school_zones(self,
                              position: Position,
                              pois: Iterable[POI],
                              now: float) -> List[AlertEvent]:
        """반경 안의 학교마다 세션당 한 번씩 경보를 발생시킵니다."""
        state = self.states[AlertCategory.SCHOOL_ZONE]
        events: List[AlertEvent] = []
        for poi in pois:
            if poi.name in state.fired_keys:
                continue
            if distance_meters(position, poi.location) < self.thresholds.school_zone_radius_m:
                state.fired_keys.add(poi.name)
                state.last_fired_at = now
                log.info("어린이 보호구역 진입", school=poi.name)
                events.append(self.templates.create_alert(AlertCategory.SCHOOL_ZONE, fired_at=now, key=poi.name))
        return events

    # ---- HighwayEntry / HighwayExit ----
    def evaluate_highway(self,
                         position: Position,
                         route_model: RouteModel,
                         now: float) -> Optional[AlertEvent]:
        """
        고속도로 진입/진출을 평가합니다.

        진입과 진출은 각자 단계를 조회하며, 일치하는 단계가 없으면 아무 것도 하지 않습니다.
        """
        try:
            route_model.active_route()
        except InvalidState:
            return None

        radius = self.thresholds.highway_step_radius_m
        if not self.highway_on:
            entry_step = route_model.steps_within(position, radius, self.classifier.is_entry).first()
            if entry_step is None:
                return None
            self.highway_on = True
            self._mark(AlertCategory.HIGHWAY_ENTRY, now)
            log.info("고속도로 진입", instruction=entry_step.instruction_text)
            return self.templates.create_alert(AlertCategory.HIGHWAY_ENTRY, fired_at=now)

        exit_step = route_model.steps_within(position, radius, self._is_leaving).first()
        if exit_step is None:
            return None
        self.highway_on = False
        self._mark(AlertCategory.HIGHWAY_EXIT, now)
        log.info("고속도로 진출", instruction=exit_step.instruction_text)
        return self.templates.create_alert(AlertCategory.HIGHWAY_EXIT, fired_at=now)

    def _is_leaving(self, instruction: str) -> bool:
        # 진입 키워드도 포함한 안내문(분기 합류 등)은 진출로 보지 않음
        return self.classifier.is_exit(instruction) and not self.classifier.is_entry(instruction)

    # ---- Traffic ----
    def evaluate_traffic(self, estimate: TrafficEstimate, now: float) -> Optional[AlertEvent]:
        """교통 정체 여부를 평가합니다. 쿨다운은 설정된 경우에만 적용됩니다."""
        state = self.states[AlertCategory.TRAFFIC]
        if state.in_cooldown(now):
            return None
        if not exceeds_traffic_factor(estimate, self.thresholds.traffic_factor):
            return None

        state.last_fired_at = now
        if self.thresholds.traffic_cooldown_sec is not None:
            state.cooldown_until = now + self.thresholds.traffic_cooldown_sec
        log.info("교통 정체 감지",
                 normal_sec=estimate.normal_duration_sec,
                 in_traffic_sec=estimate.duration_in_traffic_sec)
        return self.templates.create_alert(AlertCategory.TRAFFIC, fired_at=now)

    def _mark(self, category: AlertCategory, now: float) -> None:
        self.states[category].last_fired_at = now

    # ---- 세션 ----
    def reset(self) -> None:
        self.states = {c: AlertState() for c in AlertCategory}
        self.highway_on = False

    def snapshot(self) -> Tuple[Dict[AlertCategory, AlertState], bool]:
        return ({c: s.model_copy(deep=True) for c, s in self.states.items()}, self.highway_on)

    def restore(self, states: Dict[AlertCategory, AlertState], highway_on: bool) -> None:
        self.states = {c: AlertState() for c in AlertCategory}
        for c, s in states.items():
            self.states[c] = s.model_copy(deep=True)
        self.highway_on = highway_on
