"""
HTTP endpoints for RoadSafe observability.

Liveness, readiness backed by the orchestrator's queue and provider state,
Prometheus metrics and service info.
"""

import time
from typing import Any, Callable, Dict, Optional
from fastapi import FastAPI, HTTPException
from fastapi.responses import Response, JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from roadsafe.settings import Settings
from roadsafe.observability.logging_setup import get_logger

log = get_logger("roadsafe.health")

StatusFn = Callable[[], Dict[str, Any]]

def create_app(settings: Settings, *, status: Optional[StatusFn] = None) -> FastAPI:
    """
    FastAPI 애플리케이션을 생성합니다.

    Args:
        settings: 애플리케이션 설정
        status: 오케스트레이터 상태 요약 함수 (None이면 항상 준비됨)
    """
    app = FastAPI(
        title=settings.observability.service_name,
        version=settings.observability.build_version,
        description="RoadSafe Driving Alert Service"
    )

    start_time = time.time()
    inbox_limit = settings.reliability.queue_maxsize

    @app.get("/health")
    async def health():
        """헬스 체크 엔드포인트"""
        return JSONResponse({
            "status": "ok",
            "service": settings.observability.service_name,
            "timestamp": time.time()
        })

    @app.get("/ready")
    async def ready():
        """
        레디니스 체크 엔드포인트

        오케스트레이터가 실행 중이고 인박스가 가득 차지 않았을 때만 준비 상태입니다.
        """
        state = status() if status else {"running": True, "inbox_depth": 0}
        if not state["running"]:
            phase = "starting"
        elif state["inbox_depth"] >= inbox_limit:
            phase = "backlogged"
        else:
            phase = "ready"
        return JSONResponse(
            {"status": phase, "orchestrator": state, "timestamp": time.time()},
            status_code=200 if phase == "ready" else 503,
        )

    @app.get("/metrics")
    async def metrics():
        """Prometheus 메트릭 엔드포인트"""
        if not settings.observability.metrics_enabled:
            raise HTTPException(status_code=503, detail="Metrics disabled")
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/info")
    async def info():
        """서비스 정보 엔드포인트"""
        state = status() if status else {}
        return JSONResponse({
            "service": settings.observability.service_name,
            "version": settings.observability.build_version,
            "build_date": settings.observability.build_date,
            "uptime_seconds": int(time.time() - start_time),
            "language": settings.tts.voice_language,
            "tts_enabled": settings.tts.enabled,
            "dry_run": settings.dry_run,
            "destination_set": state.get("destination_set", settings.navigation.destination is not None),
            "route_active": state.get("route_active", False),
        })

    log.debug("HTTP 앱 생성됨", service=settings.observability.service_name)
    return app
