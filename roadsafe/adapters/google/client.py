"""
Google Maps web-service client for RoadSafe.

This module implements the directions, places and traffic provider ports
on top of the Directions, Places Nearby Search and Distance Matrix APIs.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, TypeVar
import aiohttp
from pydantic import ValidationError
from roadsafe.common.retry import retry_with_backoff
from roadsafe.core import normalize
from roadsafe.core.errors import MalformedResponse, ProviderUnavailable
from roadsafe.core.models import Coordinate, Destination, POI, Position, Route, TrafficEstimate
from roadsafe.observability.logging_setup import get_logger

log = get_logger("roadsafe.google")

T = TypeVar("T")

def format_location(value: Destination) -> str:
    """좌표는 "위도,경도" 문자열로, 주소는 그대로 반환합니다."""
    if isinstance(value, Coordinate):
        return f"{value.latitude:.6f},{value.longitude:.6f}"
    return str(value)

class GoogleMapsClient:
    """Google Maps API 클라이언트"""

    def __init__(self,
                 api_key: str,
                 *,
                 base_url: str = "https://maps.googleapis.com",
                 timeout: float = 10.0,
                 language: str = "en",
                 max_retries: int = 2):
        """
        초기화합니다.

        Args:
            api_key: Google Maps API 키
            base_url: API 기본 URL
            timeout: 요청 타임아웃 (초)
            language: 안내문 언어
            max_retries: 전송 오류 재시도 횟수
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.language = language
        self.max_retries = max_retries
        self.session: Optional[aiohttp.ClientSession] = None

        log.info("Google Maps 클라이언트 초기화됨", base_url=self.base_url)

    async def __aenter__(self):
        """비동기 컨텍스트 매니저 진입"""
        self.session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=self.timeout)
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """비동기 컨텍스트 매니저 종료"""
        if self.session:
            await self.session.close()
            self.session = None

    async def _get_json(self, provider: str, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        API GET 요청을 수행합니다.

        Raises:
            ProviderUnavailable: 전송 오류, HTTP 오류 또는 타임아웃
            MalformedResponse: JSON이 아닌 응답
        """
        if not self.session:
            raise RuntimeError("세션이 초기화되지 않았습니다. async with를 사용하세요.")

        url = f"{self.base_url}{path}"
        query = {**params, "key": self.api_key}

        async def _request():
            async with self.session.get(url, params=query) as response:
                response.raise_for_status()
                return await response.json(content_type=None)

        try:
            return await retry_with_backoff(
                _request,
                max_retries=self.max_retries,
                retry_on=(aiohttp.ClientError, asyncio.TimeoutError),
                operation=provider,
            )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderUnavailable(provider, str(e) or type(e).__name__) from e
        except ValueError as e:
            raise MalformedResponse(provider, f"invalid json: {e}") from e

    @staticmethod
    def _parse(provider: str, parser: Callable[[Dict[str, Any]], T], payload: Dict[str, Any]) -> T:
        try:
            return parser(payload)
        except ValidationError as e:
            raise MalformedResponse(provider, f"invalid field values: {e.error_count()} errors") from e

    async def route(self, origin: Position, destination: Destination) -> Route:
        """주행 경로를 조회합니다."""
        payload = await self._get_json("directions", "/maps/api/directions/json", {
            "origin": format_location(origin),
            "destination": format_location(destination),
            "mode": "driving",
            "language": self.language,
        })
        route = self._parse("directions", normalize.to_route, payload)
        log.info("경로 조회됨", steps=len(route.steps), summary=route.summary)
        return route

    async def nearby_search(self, center: Position, radius_m: float, category: str) -> List[POI]:
        """주변 장소를 검색합니다."""
        payload = await self._get_json("places", "/maps/api/place/nearbysearch/json", {
            "location": format_location(center),
            "radius": int(radius_m),
            "type": category,
            "language": self.language,
        })
        pois = self._parse("places", lambda p: normalize.to_pois(p, category=category), payload)
        log.debug("주변 장소 검색됨", category=category, count=len(pois))
        return pois

    async def estimate(self, origin: Position, destination: Position) -> TrafficEstimate:
        """현재 출발 기준 교통 소요 시간을 조회합니다."""
        payload = await self._get_json("traffic", "/maps/api/distancematrix/json", {
            "origins": format_location(origin),
            "destinations": format_location(destination),
            "mode": "driving",
            "departure_time": "now",
        })
        return self._parse("traffic", normalize.to_traffic_estimate, payload)
