"""
Normalization functions for RoadSafe.

This module contains pure functions for converting raw provider payloads
into internal domain models.
"""

import re
from typing import Any, Dict, List, Optional
from roadsafe.common.geo import validate_coordinates
from roadsafe.observability.logging_setup import get_logger
from .errors import MalformedResponse, ProviderUnavailable
from .models import Coordinate, POI, Position, Route, RouteStep, TrafficEstimate

log = get_logger("roadsafe.normalize")

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


def _first(raw: Dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if raw.get(k) is not None:
            return raw[k]
    return None


def _nested(raw: Dict[str, Any], key: str, sub: str) -> Any:
    """raw[key][sub] 또는 None (중간 값이 객체가 아니어도 None)"""
    inner = raw.get(key)
    return inner.get(sub) if isinstance(inner, dict) else None


def _to_float(provider: str, field: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise MalformedResponse(provider, f"{field} is not a number: {value!r}")


def to_coordinate(provider: str, raw: Any) -> Coordinate:
    """{lat, lng} 또는 {latitude, longitude} 딕셔너리를 좌표로 변환합니다."""
    if not isinstance(raw, dict):
        raise MalformedResponse(provider, "coordinate is not an object", raw)
    lat = _first(raw, "lat", "latitude")
    lon = _first(raw, "lng", "lon", "longitude")
    if lat is None or lon is None:
        raise MalformedResponse(provider, "coordinate missing lat/lng", raw)
    lat_f = _to_float(provider, "lat", lat)
    lon_f = _to_float(provider, "lng", lon)
    if not validate_coordinates(lat_f, lon_f):
        raise MalformedResponse(provider, f"coordinate out of range: {lat_f},{lon_f}", raw)
    return Coordinate(latitude=lat_f, longitude=lon_f)


def to_position(raw: Dict[str, Any], *, default_timestamp: float = 0.0) -> Optional[Position]:
    """
    위치 메시지를 Position으로 변환합니다.

    OwnTracks(lat/lon/cog/tst)와 일반 형식(latitude/longitude/heading/timestamp)을 모두 처리합니다.

    Args:
        raw: 원시 위치 딕셔너리
        default_timestamp: 시각 필드가 없을 때 사용할 값

    Returns:
        Position, 위치 메시지가 아닌 OwnTracks 메시지(lwt, transition 등)는 None

    Raises:
        MalformedResponse: 좌표가 없거나 잘못된 경우
    """
    if not isinstance(raw, dict):
        raise MalformedResponse("location", "payload is not an object", raw)

    msg_type = raw.get("_type")
    if msg_type is not None and msg_type != "location":
        return None

    coord = to_coordinate("location", raw)

    heading_raw = _first(raw, "heading", "cog", "course", "bearing")
    heading = None
    if heading_raw is not None:
        heading = _to_float("location", "heading", heading_raw)
        # 일부 단말은 방향 미상을 음수로 보고함
        if heading < 0:
            heading = None

    ts_raw = _first(raw, "timestamp", "tst", "time")
    timestamp = _to_float("location", "timestamp", ts_raw) if ts_raw is not None else default_timestamp

    return Position(
        latitude=coord.latitude,
        longitude=coord.longitude,
        heading=heading,
        timestamp=timestamp,
    )


def strip_instruction(text: str) -> str:
    """HTML 안내문에서 태그를 제거합니다."""
    return _SPACE_RE.sub(" ", _TAG_RE.sub(" ", text or "")).strip()


def check_status(provider: str, payload: Any, *, empty_ok: bool = False) -> bool:
    """
    Google 응답 상태를 확인합니다.

    Returns:
        결과가 있으면 True, ZERO_RESULTS이고 empty_ok이면 False

    Raises:
        MalformedResponse: status 필드가 없음
        ProviderUnavailable: OK가 아닌 상태
    """
    if not isinstance(payload, dict) or "status" not in payload:
        raise MalformedResponse(provider, "missing status", payload)
    status = payload["status"]
    if status == "OK":
        return True
    if status == "ZERO_RESULTS" and empty_ok:
        return False
    raise ProviderUnavailable(provider, f"status={status} {payload.get('error_message', '')}".strip())


def to_route(payload: Dict[str, Any]) -> Route:
    """Directions API 응답을 Route로 변환합니다 (첫 번째 경로의 모든 구간)."""
    check_status("directions", payload)
    routes = payload.get("routes")
    if not isinstance(routes, list) or not routes:
        raise MalformedResponse("directions", "no routes", payload)

    first = routes[0]
    legs = first.get("legs") if isinstance(first, dict) else None
    if not isinstance(legs, list) or not legs:
        raise MalformedResponse("directions", "route has no legs", payload)

    steps: List[RouteStep] = []
    for leg in legs:
        raw_steps = leg.get("steps") if isinstance(leg, dict) else None
        if not isinstance(raw_steps, list):
            raise MalformedResponse("directions", "leg has no step list", leg)
        for raw_step in raw_steps:
            if not isinstance(raw_step, dict):
                raise MalformedResponse("directions", "step is not an object", raw_step)
            steps.append(RouteStep(
                start_location=to_coordinate("directions", raw_step.get("start_location")),
                end_location=to_coordinate("directions", raw_step.get("end_location")),
                instruction_text=strip_instruction(
                    str(_first(raw_step, "html_instructions", "instructions") or "")
                ),
            ))

    if not steps:
        raise MalformedResponse("directions", "route has no steps", payload)
    return Route(steps=steps, summary=first.get("summary"))


def to_pois(payload: Dict[str, Any], *, category: str = "school") -> List[POI]:
    """
    Places Nearby Search 응답을 POI 목록으로 변환합니다.

    이름이나 좌표가 없는 항목은 건너뜁니다.
    """
    if not check_status("places", payload, empty_ok=True):
        return []
    results = payload.get("results")
    if not isinstance(results, list):
        raise MalformedResponse("places", "missing results", payload)

    pois: List[POI] = []
    for r in results:
        if not isinstance(r, dict) or not r.get("name"):
            log.warning("이름 없는 장소 건너뜀")
            continue
        try:
            location = to_coordinate("places", _nested(r, "geometry", "location"))
        except MalformedResponse as e:
            log.warning("좌표 없는 장소 건너뜀", name=r.get("name"), error=e.detail)
            continue
        pois.append(POI(name=str(r["name"]), location=location, category=category))
    return pois


def to_traffic_estimate(payload: Dict[str, Any]) -> TrafficEstimate:
    """Distance Matrix 응답(첫 행, 첫 요소)을 TrafficEstimate로 변환합니다."""
    check_status("traffic", payload)
    try:
        element = payload["rows"][0]["elements"][0]
    except (KeyError, IndexError, TypeError):
        raise MalformedResponse("traffic", "missing rows/elements", payload)

    if not isinstance(element, dict):
        raise MalformedResponse("traffic", "element is not an object", payload)
    if element.get("status", "OK") != "OK":
        raise ProviderUnavailable("traffic", f"element status={element.get('status')}")

    duration = _nested(element, "duration", "value")
    in_traffic = _nested(element, "duration_in_traffic", "value")
    if duration is None or in_traffic is None:
        raise MalformedResponse("traffic", "missing duration or duration_in_traffic", element)

    normal = _to_float("traffic", "duration", duration)
    traffic = _to_float("traffic", "duration_in_traffic", in_traffic)
    if normal < 0 or traffic < 0:
        raise MalformedResponse("traffic", "negative duration", element)
    return TrafficEstimate(normal_duration_sec=normal, duration_in_traffic_sec=traffic)
