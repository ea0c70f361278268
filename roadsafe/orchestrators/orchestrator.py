"""
Main orchestrator for RoadSafe.

This module connects the location stream, the alert engine, the map
providers, the alert sink and the session store. Every input, including
destination and session control, reaches the engine through a
single-consumer inbox in arrival order. Alerts leave through a separate
outbox drained by its own task, so a slow sink never holds up evaluation.
"""

import asyncio
import time
from typing import Any, Callable, Dict, Optional, Set, Union
from pydantic import ValidationError
from roadsafe.core.engine import AlertEngine
from roadsafe.core.errors import MalformedResponse, ProviderUnavailable
from roadsafe.core.messages import (
    ClearDestination, EvaluationResult, LocationFailure, PlacesRequest, PlacesResponse,
    PositionSample, ProviderRequest, ProviderResponse, ResetSession, RouteRequest,
    RouteResponse, SetDestination, TrafficRequest, TrafficResponse,
)
from roadsafe.core.models import AlertEvent, Destination, Notice, Position, SessionState
from roadsafe.ports.kvstore import KVStorePort
from roadsafe.ports.location import LocationPort
from roadsafe.ports.notify import AlertSinkPort
from roadsafe.ports.providers import DirectionsPort, PlacesPort, TrafficPort
from roadsafe.observability import metrics
from roadsafe.observability.logging_setup import get_logger

log = get_logger("roadsafe.orchestrator")

ControlMessage = Union[SetDestination, ClearDestination, ResetSession]
InboxMessage = Union[
    PositionSample, LocationFailure, RouteResponse, PlacesResponse, TrafficResponse, ControlMessage,
]
Outgoing = Union[AlertEvent, Notice]

class Orchestrator:
    """위치 → 엔진 → 경보/요청 파이프라인 오케스트레이터"""

    def __init__(self,
                 engine: AlertEngine,
                 location: LocationPort,
                 sink: AlertSinkPort,
                 *,
                 directions: DirectionsPort,
                 places: PlacesPort,
                 traffic: TrafficPort,
                 store: Optional[KVStorePort] = None,
                 session_key: str = "roadsafe:session",
                 provider_timeout: float = 10.0,
                 queue_maxsize: int = 1000,
                 outbox_maxsize: int = 100,
                 metrics_interval: float = 30.0,
                 clock: Callable[[], float] = time.time):
        """
        초기화합니다.

        Args:
            engine: 경보 엔진
            location: 위치 공급자 포트
            sink: 경보 발송 포트
            directions: 경로 공급자
            places: 장소 검색 공급자
            traffic: 교통 공급자
            store: 세션 저장소 (None이면 저장하지 않음)
            session_key: 세션 저장 키
            provider_timeout: 공급자 호출 타임아웃 (초)
            queue_maxsize: 인박스 최대 크기
            outbox_maxsize: 발송 대기열 최대 크기 (가득 차면 가장 오래된 항목을 버림)
            metrics_interval: 메트릭 갱신 주기 (초)
            clock: 현재 시각 함수
        """
        self.engine = engine
        self.location = location
        self.sink = sink
        self.directions = directions
        self.places = places
        self.traffic = traffic
        self.store = store
        self.session_key = session_key
        self.provider_timeout = provider_timeout
        self.metrics_interval = metrics_interval
        self.clock = clock
        self.inbox: asyncio.Queue = asyncio.Queue(maxsize=queue_maxsize)
        self.outbox: asyncio.Queue = asyncio.Queue(maxsize=outbox_maxsize)

        self.running = False
        self._handle: Optional[int] = None
        self._inflight: Set[asyncio.Task] = set()
        self._background: Set[asyncio.Task] = set()
        self._waiters: Dict[int, asyncio.Future] = {}
        self._last_saved: Optional[str] = None

        # 시작 시간 기록
        self.start_time = clock()

        log.info("오케스트레이터 초기화됨")

    # ---- 수명 주기 ----
    async def start(self) -> None:
        """
        오케스트레이터를 시작합니다.

        세션 복원 → 인박스 컨슈머/발송/메트릭 태스크 시작 → 위치 구독.
        """
        await self._restore_session()

        self._background.add(asyncio.create_task(self._consumer()))
        self._background.add(asyncio.create_task(self._sender()))
        self._background.add(asyncio.create_task(self._update_metrics()))
        self._handle = self.location.subscribe(self._on_location)
        self.running = True

        log.info("오케스트레이터 시작됨")

    async def run(self) -> None:
        """시작 후 중지될 때까지 대기합니다."""
        await self.start()
        try:
            await asyncio.gather(*self._background)
        finally:
            await self.stop()

    async def stop(self) -> None:
        """위치 구독을 해제하고 진행 중인 요청과 태스크를 모두 취소합니다."""
        if self._handle is not None:
            self.location.unsubscribe(self._handle)
            self._handle = None

        self.engine.cancel_pending()
        tasks = list(self._inflight) + list(self._background)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()
        self._background.clear()

        for waiter in self._waiters.values():
            waiter.cancel()
        self._waiters.clear()
        if not self.outbox.empty():
            log.warning("발송되지 않은 경보가 남아 있습니다", pending=self.outbox.qsize())

        if self.running:
            await self._save_session()
        self.running = False
        log.info("오케스트레이터 중지됨")

    def status(self) -> Dict[str, Any]:
        """레디니스 점검용 상태 요약"""
        return {
            "running": self.running,
            "inbox_depth": self.inbox.qsize(),
            "outbox_depth": self.outbox.qsize(),
            "inflight_requests": len(self._inflight),
            "pending": {kind: self.engine.tracker.is_pending(kind)
                        for kind in ("directions", "places", "traffic")},
            "destination_set": self.engine.destination is not None,
            "route_active": self.engine.route_model.has_route,
        }

    # ---- 입력 ----
    def _on_location(self, item: Union[Position, Exception]) -> None:
        """위치 공급자 콜백: 인박스에 넣기만 합니다."""
        if isinstance(item, Position):
            metrics.positions_received.labels(source="location").inc()
            self._enqueue(PositionSample(position=item))
        else:
            metrics.location_errors.inc()
            self._enqueue(LocationFailure(error=str(item)))

    def _enqueue(self, message: InboxMessage) -> None:
        try:
            self.inbox.put_nowait(message)
            metrics.inbox_depth.set(self.inbox.qsize())
        except asyncio.QueueFull:
            log.warning("인박스가 가득 찼습니다. 메시지를 드롭합니다.", message=type(message).__name__)

    async def _submit(self, message: ControlMessage) -> EvaluationResult:
        """
        제어 메시지를 인박스에 넣고 처리가 끝날 때까지 기다립니다.

        시작 전에는 컨슈머가 없으므로 바로 처리합니다.
        """
        if not self.running:
            return await self.handle(message)
        waiter = asyncio.get_running_loop().create_future()
        self._waiters[id(message)] = waiter
        # 제어 메시지는 드롭하지 않음
        await self.inbox.put(message)
        metrics.inbox_depth.set(self.inbox.qsize())
        return await waiter

    async def _consumer(self) -> None:
        """인박스에서 메시지를 하나씩 꺼내 엔진에 적용하는 단일 컨슈머"""
        while True:
            message = await self.inbox.get()
            waiter = self._waiters.pop(id(message), None)
            try:
                result = await self.handle(message)
                if waiter is not None and not waiter.done():
                    waiter.set_result(result)
            except Exception as e:
                log.exception("메시지 처리 오류", error=str(e), message=type(message).__name__)
                if waiter is not None and not waiter.done():
                    waiter.set_exception(e)
            finally:
                self.inbox.task_done()
                metrics.inbox_depth.set(self.inbox.qsize())

    async def handle(self, message: InboxMessage) -> EvaluationResult:
        """
        인박스 메시지 하나를 엔진에 적용하고 결과를 발송합니다.

        Args:
            message: 위치 샘플, 위치 오류, 공급자 응답 또는 제어 메시지

        Returns:
            엔진 평가 결과
        """
        if isinstance(message, ResetSession):
            await self._reset()
            return EvaluationResult()

        with metrics.evaluation_seconds.time():
            result = self._apply(message)

        if result.stale:
            metrics.stale_responses.labels(provider=message.kind).inc()
            return result
        if result.recalc_request is not None:
            metrics.recalculations.inc()
            log.info("경로 재계산 요청", seq=result.recalc_request.seq)

        self._dispatch(result)
        if not isinstance(message, LocationFailure):
            await self._save_session()
        return result

    def _apply(self, message: InboxMessage) -> EvaluationResult:
        if isinstance(message, PositionSample):
            return self.engine.on_position_sample(message.position)
        if isinstance(message, RouteResponse):
            return self.engine.on_route_response(message)
        if isinstance(message, PlacesResponse):
            return self.engine.on_places_response(message)
        if isinstance(message, TrafficResponse):
            return self.engine.on_traffic_response(message)
        if isinstance(message, LocationFailure):
            return self.engine.on_location_error(message.error)
        if isinstance(message, SetDestination):
            log.info("목적지 설정됨", destination=str(message.destination))
            return self.engine.set_destination(message.destination)
        if isinstance(message, ClearDestination):
            self.engine.clear_destination()
            log.info("목적지 해제됨")
            return EvaluationResult()
        raise TypeError(f"알 수 없는 메시지 유형: {type(message).__name__}")

    # ---- 출력 ----
    def _dispatch(self, result: EvaluationResult) -> None:
        """경보/안내를 발송 대기열에 넣고 공급자 요청을 시작합니다."""
        for item in (*result.alerts, *result.notices):
            self._post(item)

        for request in result.outbound():
            self._launch(request)

    def _post(self, item: Outgoing) -> None:
        if self.outbox.full():
            dropped = self.outbox.get_nowait()
            self.outbox.task_done()
            metrics.outbox_dropped.inc()
            log.warning("발송 대기열이 가득 차 가장 오래된 항목을 버립니다", dropped=type(dropped).__name__)
        self.outbox.put_nowait(item)
        metrics.outbox_depth.set(self.outbox.qsize())

    async def _sender(self) -> None:
        """발송 대기열을 비우는 태스크. 발송 지연이 평가 루프를 막지 않습니다."""
        while True:
            item = await self.outbox.get()
            try:
                await self.deliver(item)
            finally:
                self.outbox.task_done()
                metrics.outbox_depth.set(self.outbox.qsize())

    async def deliver(self, item: Outgoing) -> None:
        """경보 또는 안내 하나를 발송합니다. 발송 실패는 기록만 합니다."""
        if isinstance(item, AlertEvent):
            try:
                await self.sink.emit(item)
                metrics.alerts_emitted.labels(category=item.category.value).inc()
                log.info("경보 발송됨", category=item.category.value, message=item.message)
            except Exception as e:
                metrics.sink_failures.inc()
                log.error("경보 발송 실패", category=item.category.value, error=str(e))
        else:
            try:
                await self.sink.notify(item)
                metrics.notices_emitted.labels(kind=item.kind).inc()
            except Exception as e:
                metrics.sink_failures.inc()
                log.error("안내 발송 실패", kind=item.kind, error=str(e))

    def _launch(self, request: ProviderRequest) -> None:
        metrics.provider_requests.labels(provider=request.kind).inc()
        task = asyncio.create_task(self._call_provider(request))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _call_provider(self, request: ProviderRequest) -> None:
        """공급자를 호출하고 응답(또는 오류 응답)을 인박스에 넣습니다."""
        t0 = time.perf_counter()
        metrics.inflight_requests.inc()
        try:
            response = await asyncio.wait_for(self._invoke(request), timeout=self.provider_timeout)
        except asyncio.TimeoutError:
            response = self._failure(request, "timeout", f"no response within {self.provider_timeout}s")
        except ProviderUnavailable as e:
            response = self._failure(request, "unavailable", str(e))
        except MalformedResponse as e:
            response = self._failure(request, "malformed", str(e))
        except Exception as e:
            # 예기치 않은 오류도 응답으로 돌려보내 요청이 대기 상태로 남지 않게 함
            log.exception("공급자 호출 중 예기치 않은 오류", provider=request.kind)
            response = self._failure(request, "error", str(e))
        finally:
            metrics.inflight_requests.dec()
            metrics.provider_seconds.labels(provider=request.kind).observe(time.perf_counter() - t0)
        self._enqueue(response)

    async def _invoke(self, request: ProviderRequest) -> ProviderResponse:
        if isinstance(request, RouteRequest):
            route = await self.directions.route(request.origin, request.destination)
            return RouteResponse(seq=request.seq, route=route)
        if isinstance(request, PlacesRequest):
            places = await self.places.nearby_search(request.center, request.radius_m, request.category)
            return PlacesResponse(seq=request.seq, places=places)
        if isinstance(request, TrafficRequest):
            estimate = await self.traffic.estimate(request.origin, request.destination)
            return TrafficResponse(seq=request.seq, estimate=estimate)
        raise TypeError(f"알 수 없는 요청 유형: {type(request).__name__}")

    @staticmethod
    def _failure(request: ProviderRequest, reason: str, error: str) -> ProviderResponse:
        metrics.provider_failures.labels(provider=request.kind, reason=reason).inc()
        log.warning("공급자 호출 실패", provider=request.kind, seq=request.seq, reason=reason, error=error)
        if isinstance(request, RouteRequest):
            return RouteResponse(seq=request.seq, error=error)
        if isinstance(request, PlacesRequest):
            return PlacesResponse(seq=request.seq, error=error)
        return TrafficResponse(seq=request.seq, error=error)

    # ---- 목적지 / 세션 ----
    async def set_destination(self, destination: Destination) -> None:
        """목적지를 설정하고 필요하면 경로를 요청합니다."""
        await self._submit(SetDestination(destination=destination))

    async def clear_destination(self) -> None:
        await self._submit(ClearDestination())

    async def reset_session(self) -> None:
        """진행 중인 요청을 취소하고 세션 상태와 저장된 스냅샷을 지웁니다."""
        await self._submit(ResetSession())

    async def _reset(self) -> None:
        for task in list(self._inflight):
            task.cancel()
        self.engine.reset_session()
        self._last_saved = None
        if self.store is not None:
            await self.store.delete(self.session_key)

    async def _restore_session(self) -> None:
        if self.store is None:
            return
        raw = await self.store.get(self.session_key)
        if not raw:
            log.info("저장된 세션 없음")
            return
        try:
            state = SessionState.model_validate_json(raw)
        except ValidationError as e:
            log.warning("저장된 세션을 읽을 수 없어 무시합니다", errors=e.error_count())
            return
        self.engine.restore(state)
        self._last_saved = raw

    async def _save_session(self) -> None:
        """변경된 경우에만 엔진 스냅샷을 저장합니다. 저장 실패는 평가를 멈추지 않습니다."""
        if self.store is None:
            return
        data = self.engine.snapshot().model_dump_json()
        if data == self._last_saved:
            return
        try:
            await self.store.set(self.session_key, data)
            self._last_saved = data
        except Exception as e:
            log.error("세션 저장 실패", error=str(e))

    # ---- 메트릭 ----
    async def _update_metrics(self) -> None:
        """주기적으로 메트릭을 업데이트합니다."""
        while True:
            metrics.uptime_seconds.set(self.clock() - self.start_time)
            metrics.inbox_depth.set(self.inbox.qsize())
            metrics.outbox_depth.set(self.outbox.qsize())

            # 만료된 세션 항목 정리 (저장소가 지원하는 경우)
            if self.store is not None and hasattr(self.store, "gc"):
                try:
                    await self.store.gc()
                except Exception as e:
                    log.error("세션 저장소 정리 오류", error=str(e))

            await asyncio.sleep(self.metrics_interval)
