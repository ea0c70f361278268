"""
MQTT 어댑터 단위 테스트

위치 메시지 디코딩과 경보 발송 토픽/재시도를 검증합니다.
"""

import asyncio
import json
import pytest
from unittest.mock import AsyncMock
from aiomqtt import MqttError
from roadsafe.adapters.mqtt.location import MqttLocationProvider
from roadsafe.adapters.mqtt.publisher import LogAlertSink, MqttAlertPublisher
from roadsafe.core.errors import MalformedResponse
from roadsafe.core.models import AlertCategory, Position
from roadsafe.core.voice_template import VoiceMessageTemplate


class TestMqttLocationProvider:
    """위치 메시지 디코딩 테스트"""

    @pytest.fixture
    def provider(self):
        return MqttLocationProvider("localhost", 1883, "owntracks/+/+", clock=lambda: 123.0)

    def deliver(self, provider, payload):
        received = []
        provider.deliver(payload, received.append)
        return received

    def test_owntracks_payload(self, provider):
        received = self.deliver(provider, b'{"_type": "location", "lat": 37.5, "lon": 127.0, "cog": 180}')
        assert len(received) == 1
        assert isinstance(received[0], Position)
        assert received[0].heading == 180
        assert received[0].timestamp == 123.0

    def test_non_location_message_ignored(self, provider):
        assert self.deliver(provider, b'{"_type": "lwt", "tst": 1}') == []

    @pytest.mark.parametrize("payload", [
        b"not json",
        b"\xff\xfe",
        b'{"lat": 37.5}',
        b'{"lat": 37.5, "lon": 127.0, "tst": "yesterday"}',
    ])
    def test_bad_payload_reported_as_error(self, provider, payload):
        received = self.deliver(provider, payload)
        assert len(received) == 1
        assert isinstance(received[0], MalformedResponse)

    async def test_unsubscribe_cancels_task(self, provider):
        provider._run = AsyncMock()
        handle = provider.subscribe(lambda item: None)
        task = provider._tasks[handle]
        provider.unsubscribe(handle)
        assert handle not in provider._tasks
        await asyncio.gather(task, return_exceptions=True)
        assert task.cancelled()


class TestMqttAlertPublisher:
    """경보 발송 테스트"""

    @pytest.fixture
    def publisher(self):
        publisher = MqttAlertPublisher(
            broker_host="localhost",
            broker_port=1883,
            topic_prefix="roadsafe/",
            tts_topic="roadsafe/tts",
            backoff_initial=0.0,
            max_retries=2,
        )
        publisher.client = AsyncMock()
        return publisher

    async def test_emit_publishes_alert_and_speech(self, publisher):
        event = VoiceMessageTemplate().create_alert(AlertCategory.WRONG_WAY, fired_at=10.0)
        await publisher.emit(event)

        calls = publisher.client.publish.await_args_list
        assert [c.args[0] for c in calls] == ["roadsafe/alerts/wrong_way", "roadsafe/tts"]
        body = json.loads(calls[0].args[1])
        assert body["category"] == "wrong_way"
        assert body["priority"] == 3
        assert json.loads(calls[1].args[1])["message"] == event.speech_text

    async def test_no_speech_without_tts_topic(self, publisher):
        publisher.tts_topic = None
        await publisher.notify(VoiceMessageTemplate().create_notice("route_ready"))
        topics = [c.args[0] for c in publisher.client.publish.await_args_list]
        assert topics == ["roadsafe/notices/route_ready"]

    async def test_gives_up_after_retries(self, publisher):
        publisher.client.publish.side_effect = MqttError("broker down")
        publisher._connect = AsyncMock(side_effect=MqttError("still down"))

        assert await publisher._publish("roadsafe/alerts/traffic", {"x": 1}) is False
        assert publisher._connect.await_count == 2


class TestLogAlertSink:
    """dry-run 발송 테스트"""

    async def test_records_events(self):
        sink = LogAlertSink()
        event = VoiceMessageTemplate().create_alert(AlertCategory.TRAFFIC, fired_at=0)
        await sink.emit(event)
        await sink.notify(VoiceMessageTemplate().create_notice("route_unavailable"))
        assert len(sink.events) == 2

    async def test_history_is_bounded(self):
        sink = LogAlertSink(history=3)
        template = VoiceMessageTemplate()
        for i in range(5):
            await sink.emit(template.create_alert(AlertCategory.TRAFFIC, fired_at=i))
        assert [e.fired_at for e in sink.events] == [2, 3, 4]
