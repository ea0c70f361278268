"""
Geospatial alert engine for RoadSafe.

The engine is synchronous and side-effect free: each call applies one
input (a position sample or a provider response) to the session state and
returns the alerts, notices and outbound requests it produced. Callers
must feed it one input at a time, in arrival order.
"""

import time
from typing import Callable, Dict, Optional
from roadsafe.common.geo import distance_meters
from roadsafe.observability.logging_setup import get_logger
from roadsafe.settings import AlertThresholds
from .alert_state import AlertStateMachine
from .classifier import RoadClassifier
from .errors import InvalidState
from .messages import (
    EvaluationResult, PlacesRequest, PlacesResponse, RouteRequest, RouteResponse,
    TrafficRequest, TrafficResponse,
)
from .models import AlertEvent, Destination, POI, Position, SessionState
from .recalculation import RecalculationPolicy
from .requests import RequestTracker
from .route_model import RouteModel
from .voice_template import VoiceMessageTemplate

log = get_logger("roadsafe.engine")

Clock = Callable[[], float]


class AlertEngine:
    """위치 샘플과 공급자 응답을 경보 이벤트로 변환하는 엔진"""

    def __init__(self,
                 *,
                 thresholds: Optional[AlertThresholds] = None,
                 classifier: Optional[RoadClassifier] = None,
                 language: str = "en-US",
                 clock: Clock = time.time,
                 destination: Optional[Destination] = None,
                 places_radius_m: float = 2000.0,
                 places_category: str = "school",
                 places_refresh_distance_m: float = 500.0,
                 traffic_probe_interval_sec: float = 10.0):
        """
        초기화합니다.

        Args:
            thresholds: 경보 임계값
            classifier: 고속도로 안내문 분류기
            language: 메시지 언어 코드
            clock: 현재 시각 함수 (epoch 초), 테스트에서 주입
            destination: 초기 목적지
            places_radius_m: 학교 검색 반경
            places_category: 장소 검색 카테고리
            places_refresh_distance_m: 마지막 검색 중심에서 이 거리 이상 이동 시 재검색
            traffic_probe_interval_sec: 교통 조회 최소 간격 (0이면 매 샘플)
        """
        self.thresholds = thresholds or AlertThresholds()
        self.clock = clock
        self.templates = VoiceMessageTemplate(language)
        self.route_model = RouteModel()
        self.state_machine = AlertStateMachine(self.thresholds, classifier=classifier, templates=self.templates)
        self.recalculation = RecalculationPolicy(self.route_model, threshold_m=self.thresholds.recalculation_distance_m)
        self.tracker = RequestTracker()
        self.pois: Dict[str, POI] = {}
        self.destination: Optional[Destination] = destination

        self.places_radius_m = places_radius_m
        self.places_category = places_category
        self.places_refresh_distance_m = places_refresh_distance_m
        self.traffic_probe_interval_sec = traffic_probe_interval_sec

        self._route_failed = False
        self._last_places_center: Optional[Position] = None
        self._last_traffic_probe_at: Optional[float] = None

    @property
    def last_known_position(self) -> Optional[Position]:
        return self.recalculation.last_known_position

    # ---- 위치 샘플 ----
    def on_position_sample(self, position: Position) -> EvaluationResult:
        """
        위치 샘플 하나를 평가합니다.

        평가 순서: 재계산 정책 → 역주행 → 어린이 보호구역 → 고속도로 진입/진출.

        Args:
            position: 위치 샘플

        Returns:
            경보, 재계산 요청, 기타 공급자 요청
        """
        now = self.clock()
        result = EvaluationResult()

        recalc = self.recalculation.observe(position, self.destination)
        if recalc is not None:
            self._route_failed = False
            result.recalc_request = RouteRequest(
                seq=self.tracker.issue("directions"),
                origin=recalc.origin,
                destination=recalc.destination,
            )

        wrong_way = self._evaluate_wrong_way(position, now)
        if wrong_way:
            result.alerts.append(wrong_way)

        result.alerts.extend(self.state_machine.evaluate_school_zones(position, self.pois.values(), now))

        highway = self.state_machine.evaluate_highway(position, self.route_model, now)
        if highway:
            result.alerts.append(highway)

        self._plan_requests(position, now, result)
        return result

    def _evaluate_wrong_way(self, position: Position, now: float) -> Optional[AlertEvent]:
        try:
            self.route_model.active_route()
        except InvalidState:
            # 경로가 없으면 이번 주기에는 경보 없음
            return None
        return self.state_machine.evaluate_wrong_way(position, self.route_model.nearest_step(position), now)

    def _plan_requests(self, position: Position, now: float, result: EvaluationResult) -> None:
        """이번 샘플에서 보낼 공급자 요청을 결정합니다."""
        if (self.destination is not None
                and result.recalc_request is None
                and not self.route_model.has_route
                and not self._route_failed
                and not self.tracker.is_pending("directions")):
            result.requests.append(RouteRequest(
                seq=self.tracker.issue("directions"),
                origin=position,
                destination=self.destination,
            ))

        if (self._last_traffic_probe_at is None
                or now - self._last_traffic_probe_at >= self.traffic_probe_interval_sec):
            self._last_traffic_probe_at = now
            # 현재 위치 기준 교통 상황 조회 (출발지 = 도착지)
            result.requests.append(TrafficRequest(
                seq=self.tracker.issue("traffic"),
                origin=position,
                destination=position,
            ))

        if (self._last_places_center is None
                or distance_meters(self._last_places_center, position) > self.places_refresh_distance_m):
            self._last_places_center = position
            result.requests.append(PlacesRequest(
                seq=self.tracker.issue("places"),
                center=position,
                radius_m=self.places_radius_m,
                category=self.places_category,
            ))

    # ---- 공급자 응답 ----
    def on_route_response(self, response: RouteResponse) -> EvaluationResult:
        """경로 응답을 적용합니다. 최신 요청의 응답이 아니면 버립니다."""
        if not self.tracker.accept("directions", response.seq):
            log.debug("오래된 경로 응답 폐기", seq=response.seq, latest=self.tracker.latest("directions"))
            return EvaluationResult(stale=True)

        if not response.ok or response.route is None or not response.route.steps:
            self._route_failed = True
            log.warning("경로를 가져오지 못함", seq=response.seq, error=response.error)
            return EvaluationResult(notices=[self.templates.create_notice("route_unavailable")])

        self.route_model.replace(response.route)
        self._route_failed = False
        log.info("새 경로 적용", seq=response.seq, steps=len(response.route.steps))
        return EvaluationResult(notices=[self.templates.create_notice("route_ready")])

    def on_places_response(self, response: PlacesResponse) -> EvaluationResult:
        """장소 검색 응답으로 학교 캐시를 교체하고 보호구역을 다시 평가합니다."""
        if not self.tracker.accept("places", response.seq):
            log.debug("오래된 장소 응답 폐기", seq=response.seq, latest=self.tracker.latest("places"))
            return EvaluationResult(stale=True)

        if not response.ok:
            log.warning("장소 검색 실패, 이번 주기 건너뜀", seq=response.seq, error=response.error)
            return EvaluationResult()

        self.pois = {poi.name: poi for poi in response.places}
        log.debug("학교 캐시 갱신", count=len(self.pois))

        position = self.last_known_position
        if position is None:
            return EvaluationResult()
        return EvaluationResult(
            alerts=self.state_machine.evaluate_school_zones(position, self.pois.values(), self.clock())
        )

    def on_traffic_response(self, response: TrafficResponse) -> EvaluationResult:
        """교통 예측 응답을 평가합니다."""
        if not self.tracker.accept("traffic", response.seq):
            log.debug("오래된 교통 응답 폐기", seq=response.seq, latest=self.tracker.latest("traffic"))
            return EvaluationResult(stale=True)

        if not response.ok or response.estimate is None:
            log.warning("교통 조회 실패, 이번 주기 건너뜀", seq=response.seq, error=response.error)
            return EvaluationResult()

        event = self.state_machine.evaluate_traffic(response.estimate, self.clock())
        return EvaluationResult(alerts=[event] if event else [])

    def on_location_error(self, error: str) -> EvaluationResult:
        log.warning("위치 공급자 오류", error=error)
        return EvaluationResult()

    # ---- 목적지 / 세션 ----
    def set_destination(self, destination: Destination) -> EvaluationResult:
        """목적지를 설정하고, 현재 위치를 알면 경로를 요청합니다."""
        self.destination = destination
        self.route_model.clear()
        self._route_failed = False
        self.tracker.cancel("directions")

        position = self.last_known_position
        if position is None:
            return EvaluationResult()
        return EvaluationResult(requests=[RouteRequest(
            seq=self.tracker.issue("directions"),
            origin=position,
            destination=destination,
        )])

    def clear_destination(self) -> None:
        self.destination = None
        self.route_model.clear()
        self.tracker.cancel("directions")

    def cancel_pending(self) -> None:
        """진행 중인 모든 요청을 무효화합니다 (위치 구독 해제 등)."""
        self.tracker.cancel()

    def reset_session(self) -> None:
        """새 주행을 위해 세션 상태를 모두 초기화합니다."""
        self.state_machine.reset()
        self.recalculation.reset()
        self.route_model.clear()
        self.tracker.cancel()
        self.pois = {}
        self.destination = None
        self._route_failed = False
        self._last_places_center = None
        self._last_traffic_probe_at = None
        log.info("세션 초기화됨")

    def snapshot(self) -> SessionState:
        states, highway_on = self.state_machine.snapshot()
        return SessionState(
            last_known_position=self.last_known_position,
            destination=self.destination,
            highway_on=highway_on,
            states=states,
        )

    def restore(self, state: SessionState) -> None:
        """
        저장된 세션을 복원합니다.

        시작 시 설정된 목적지가 있으면 저장된 목적지보다 우선합니다.
        """
        self.state_machine.restore(state.states, state.highway_on)
        self.recalculation.last_known_position = state.last_known_position
        if state.destination is not None:
            if self.destination is None:
                self.destination = state.destination
            elif self.destination != state.destination:
                log.info("설정된 목적지를 사용합니다. 저장된 목적지는 무시합니다",
                         configured=str(self.destination), stored=str(state.destination))
        log.info("세션 상태 복원됨",
                 highway_on=state.highway_on,
                 has_position=state.last_known_position is not None)
