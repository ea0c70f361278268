"""
정규화 함수 단위 테스트

위치 메시지와 Google 응답을 도메인 모델로 변환하는 과정을 검증합니다.
"""

import pytest
from roadsafe.core import normalize
from roadsafe.core.errors import MalformedResponse, ProviderUnavailable


def directions_payload(*legs, status="OK"):
    return {"status": status, "routes": [{"summary": "I-5 N", "legs": [{"steps": list(leg)} for leg in legs]}]}


def raw_step(lat1, lng1, lat2, lng2, html="Head <b>north</b>"):
    return {
        "start_location": {"lat": lat1, "lng": lng1},
        "end_location": {"lat": lat2, "lng": lng2},
        "html_instructions": html,
    }


class TestToPosition:
    """위치 메시지 변환 테스트"""

    def test_owntracks(self):
        p = normalize.to_position({"_type": "location", "lat": 37.5, "lon": 127.0, "cog": 90, "tst": 1700000000})
        assert (p.latitude, p.longitude, p.heading, p.timestamp) == (37.5, 127.0, 90.0, 1700000000.0)

    def test_plain(self):
        p = normalize.to_position({"latitude": "37.5", "longitude": "127.0", "heading": 370, "timestamp": 5})
        assert p.heading == pytest.approx(10.0)
        assert p.timestamp == 5.0

    def test_missing_heading_and_timestamp(self):
        p = normalize.to_position({"lat": 37.5, "lng": 127.0}, default_timestamp=42.0)
        assert p.heading is None
        assert p.timestamp == 42.0

    def test_negative_heading_means_unknown(self):
        assert normalize.to_position({"lat": 37.5, "lon": 127.0, "heading": -1}).heading is None

    def test_non_location_owntracks_message_ignored(self):
        assert normalize.to_position({"_type": "lwt", "tst": 1}) is None

    @pytest.mark.parametrize("raw", [
        {"lat": 37.5},
        {"lat": "north", "lon": 127.0},
        {"lat": 95.0, "lon": 127.0},
        ["not", "an", "object"],
    ])
    def test_malformed(self, raw):
        with pytest.raises(MalformedResponse):
            normalize.to_position(raw)


class TestToRoute:
    """Directions 응답 변환 테스트"""

    def test_steps_across_legs_in_order(self):
        payload = directions_payload(
            [raw_step(37.0, 127.0, 37.1, 127.0, "Head <b>north</b> on <div>Main St</div>")],
            [raw_step(37.1, 127.0, 37.2, 127.0, "Merge onto I-5")],
        )
        route = normalize.to_route(payload)
        assert [s.instruction_text for s in route.steps] == ["Head north on Main St", "Merge onto I-5"]
        assert route.summary == "I-5 N"

    def test_missing_status(self):
        with pytest.raises(MalformedResponse):
            normalize.to_route({"routes": []})

    def test_not_found_status(self):
        with pytest.raises(ProviderUnavailable):
            normalize.to_route({"status": "NOT_FOUND", "routes": []})

    def test_step_without_location(self):
        bad = raw_step(37.0, 127.0, 37.1, 127.0)
        del bad["end_location"]
        with pytest.raises(MalformedResponse):
            normalize.to_route(directions_payload([bad]))

    def test_no_steps(self):
        with pytest.raises(MalformedResponse):
            normalize.to_route(directions_payload([]))

    @pytest.mark.parametrize("steps", ["not a list", 5, None])
    def test_leg_steps_not_a_list(self, steps):
        payload = {"status": "OK", "routes": [{"legs": [{"steps": steps}]}]}
        with pytest.raises(MalformedResponse):
            normalize.to_route(payload)


class TestToPois:
    """Places 응답 변환 테스트"""

    def test_skips_incomplete_entries(self):
        payload = {"status": "OK", "results": [
            {"name": "Lincoln Elementary", "geometry": {"location": {"lat": 37.5, "lng": 127.0}}},
            {"geometry": {"location": {"lat": 37.6, "lng": 127.0}}},
            {"name": "No Geometry"},
        ]}
        pois = normalize.to_pois(payload)
        assert [p.name for p in pois] == ["Lincoln Elementary"]
        assert pois[0].category == "school"

    def test_scalar_geometry_skipped(self):
        payload = {"status": "OK", "results": [
            {"name": "Scalar Geometry", "geometry": "37.5,127.0"},
            {"name": "Scalar Location", "geometry": {"location": 7}},
            {"name": "Oak Middle", "geometry": {"location": {"lat": 37.5, "lng": 127.0}}},
        ]}
        assert [p.name for p in normalize.to_pois(payload)] == ["Oak Middle"]

    def test_zero_results(self):
        assert normalize.to_pois({"status": "ZERO_RESULTS", "results": []}) == []

    def test_denied(self):
        with pytest.raises(ProviderUnavailable):
            normalize.to_pois({"status": "REQUEST_DENIED", "error_message": "bad key"})


class TestToTrafficEstimate:
    """Distance Matrix 응답 변환 테스트"""

    def test_durations(self):
        payload = {"status": "OK", "rows": [{"elements": [{
            "status": "OK", "duration": {"value": 600}, "duration_in_traffic": {"value": 906},
        }]}]}
        estimate = normalize.to_traffic_estimate(payload)
        assert estimate.normal_duration_sec == 600
        assert estimate.duration_in_traffic_sec == 906

    def test_missing_traffic_duration(self):
        payload = {"status": "OK", "rows": [{"elements": [{"status": "OK", "duration": {"value": 600}}]}]}
        with pytest.raises(MalformedResponse):
            normalize.to_traffic_estimate(payload)

    def test_missing_rows(self):
        with pytest.raises(MalformedResponse):
            normalize.to_traffic_estimate({"status": "OK", "rows": []})

    def test_element_not_found(self):
        payload = {"status": "OK", "rows": [{"elements": [{"status": "NOT_FOUND"}]}]}
        with pytest.raises(ProviderUnavailable):
            normalize.to_traffic_estimate(payload)

    @pytest.mark.parametrize("element", [
        {"status": "OK", "duration": 600, "duration_in_traffic": {"value": 906}},
        {"status": "OK", "duration": {"value": 600}, "duration_in_traffic": "slow"},
        {"status": "OK", "duration": {"value": -1}, "duration_in_traffic": {"value": 906}},
    ])
    def test_malformed_durations(self, element):
        payload = {"status": "OK", "rows": [{"elements": [element]}]}
        with pytest.raises(MalformedResponse):
            normalize.to_traffic_estimate(payload)
