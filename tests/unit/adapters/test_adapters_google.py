"""
Google Maps 클라이언트 단위 테스트

aiohttp 세션을 목업으로 대체하여 요청 파라미터와 오류 매핑을 검증합니다.
"""

import pytest
import aiohttp
from unittest.mock import Mock
from roadsafe.adapters.google.client import GoogleMapsClient, format_location
from roadsafe.core.errors import MalformedResponse, ProviderUnavailable
from roadsafe.core.models import Coordinate
from helpers import pos


class FakeResponse:
    """aiohttp 응답 목업"""

    def __init__(self, payload=None, status=200, json_error=None):
        self.payload = payload
        self.status = status
        self.json_error = json_error

    def raise_for_status(self):
        if self.status >= 400:
            raise aiohttp.ClientResponseError(request_info=Mock(), history=(), status=self.status)

    async def json(self, content_type=None):
        if self.json_error:
            raise self.json_error
        return self.payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


def make_client(*responses):
    client = GoogleMapsClient("test-key", max_retries=0)
    client.session = Mock()
    client.session.get = Mock(side_effect=list(responses))
    return client


class TestFormatLocation:
    """위치 문자열 변환 테스트"""

    def test_coordinate(self):
        assert format_location(Coordinate(latitude=37.5, longitude=127)) == "37.500000,127.000000"

    def test_address(self):
        assert format_location("Seoul City Hall") == "Seoul City Hall"


class TestGoogleMapsClient:
    """Google Maps API 호출 테스트"""

    async def test_route(self):
        client = make_client(FakeResponse({"status": "OK", "routes": [{"legs": [{"steps": [{
            "start_location": {"lat": 37.0, "lng": 127.0},
            "end_location": {"lat": 37.1, "lng": 127.0},
            "html_instructions": "Merge onto <b>I-5</b>",
        }]}]}]}))

        route = await client.route(pos(0), "Seoul Station")

        assert route.steps[0].instruction_text == "Merge onto I-5"
        url = client.session.get.call_args.args[0]
        params = client.session.get.call_args.kwargs["params"]
        assert url.endswith("/maps/api/directions/json")
        assert params["destination"] == "Seoul Station"
        assert params["key"] == "test-key"

    async def test_nearby_search(self):
        client = make_client(FakeResponse({"status": "OK", "results": [
            {"name": "Lincoln Elementary", "geometry": {"location": {"lat": 37.5, "lng": 127.0}}},
        ]}))

        pois = await client.nearby_search(pos(0), 2000, "school")

        assert [p.name for p in pois] == ["Lincoln Elementary"]
        params = client.session.get.call_args.kwargs["params"]
        assert params["radius"] == 2000
        assert params["type"] == "school"

    async def test_estimate_departs_now(self):
        client = make_client(FakeResponse({"status": "OK", "rows": [{"elements": [{
            "status": "OK", "duration": {"value": 600}, "duration_in_traffic": {"value": 900},
        }]}]}))

        estimate = await client.estimate(pos(0), pos(0))

        assert estimate.duration_in_traffic_sec == 900
        assert client.session.get.call_args.kwargs["params"]["departure_time"] == "now"

    async def test_http_error_is_unavailable(self):
        client = make_client(FakeResponse(status=503))
        with pytest.raises(ProviderUnavailable):
            await client.estimate(pos(0), pos(0))

    async def test_invalid_json_is_malformed(self):
        client = make_client(FakeResponse(json_error=ValueError("Expecting value")))
        with pytest.raises(MalformedResponse):
            await client.route(pos(0), "x")

    async def test_status_error_is_unavailable(self):
        client = make_client(FakeResponse({"status": "OVER_QUERY_LIMIT"}))
        with pytest.raises(ProviderUnavailable):
            await client.nearby_search(pos(0), 2000, "school")

    async def test_retries_transport_errors(self):
        client = make_client(
            aiohttp.ClientConnectionError("reset"),
            FakeResponse({"status": "ZERO_RESULTS", "results": []}),
        )
        client.max_retries = 1
        assert await client.nearby_search(pos(0), 2000, "school") == []
        assert client.session.get.call_count == 2

    async def test_requires_session(self):
        client = GoogleMapsClient("k")
        with pytest.raises(RuntimeError):
            await client.route(pos(0), "x")
