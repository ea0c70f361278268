"""
MQTT alert publisher for RoadSafe.

This module publishes alert events, notices and speech text to the
local MQTT broker, retrying transient broker errors with backoff.
"""

import contextlib
from collections import deque
import json
import ssl
from typing import Any, Dict, Optional
from aiomqtt import Client, MqttError, Will
from roadsafe.common.retry import exponential_backoff
from roadsafe.core.models import AlertEvent, Notice
from roadsafe.core.voice_template import VoiceMessageTemplate
from roadsafe.observability.logging_setup import get_logger

log = get_logger("roadsafe.mqtt_publisher")

class MqttAlertPublisher:
    """MQTT 경보 발송 어댑터"""

    def __init__(self,
                 *,
                 broker_host: str,
                 broker_port: int,
                 topic_prefix: str,
                 tts_topic: str | None = None,
                 voice_language: str = "en-US",
                 username: str | None = None,
                 password: str | None = None,
                 tls: bool = False,
                 client_id: str | None = None,
                 keepalive: int = 30,
                 lwt_topic: str = "roadsafe/state",
                 qos: int = 1,
                 backoff_initial: float = 0.5,
                 backoff_max: float = 30.0,
                 max_retries: int = 3):
        """
        초기화합니다.

        Args:
            broker_host: MQTT 브로커 호스트
            broker_port: MQTT 브로커 포트
            topic_prefix: 토픽 접두사
            tts_topic: 음성 문구 토픽 (None이면 음성 발송 안 함)
            voice_language: 음성 언어 코드
            username: 사용자명
            password: 비밀번호
            tls: TLS 사용 여부
            client_id: 클라이언트 ID
            keepalive: keepalive 시간
            lwt_topic: Last Will and Testament 토픽
            qos: 발송 QoS
            backoff_initial: 초기 백오프 시간
            backoff_max: 최대 백오프 시간
            max_retries: 최대 재시도 횟수
        """
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.topic_prefix = topic_prefix.rstrip("/")
        self.tts_topic = tts_topic
        self.voice_language = voice_language
        self.username = username
        self.password = password
        self.tls = tls
        self.client_id = client_id
        self.keepalive = keepalive
        self.lwt_topic = lwt_topic
        self.qos = qos
        self.backoff_initial = backoff_initial
        self.backoff_max = backoff_max
        self.max_retries = max_retries

        self.client: Client | None = None
        self._stack: Optional[contextlib.AsyncExitStack] = None

    async def start(self) -> None:
        """브로커에 연결하고 온라인 상태를 발송합니다."""
        await self._connect()

    async def _connect(self) -> None:
        await self._disconnect()

        tls_context = ssl.create_default_context() if self.tls else None
        client = Client(
            hostname=self.broker_host,
            port=self.broker_port,
            username=self.username,
            password=self.password,
            identifier=self.client_id,
            keepalive=self.keepalive,
            tls_context=tls_context,
            will=Will(topic=self.lwt_topic, payload=b"offline", qos=1, retain=True),
        )
        self._stack = contextlib.AsyncExitStack()
        self.client = await self._stack.enter_async_context(client)

        # 온라인 상태 발송
        await self.client.publish(self.lwt_topic, b"online", qos=1, retain=True)
        log.info("로컬 MQTT 브로커 연결됨", host=self.broker_host, port=self.broker_port)

    async def _disconnect(self) -> None:
        stack, self._stack, self.client = self._stack, None, None
        if stack is not None:
            try:
                await stack.aclose()
            except MqttError as e:
                log.debug("MQTT 연결 종료 중 오류", error=str(e))

    async def _publish(self, topic: str, payload_obj: Dict[str, Any]) -> bool:
        """
        JSON 메시지를 발송합니다. 브로커 오류 시 재연결 후 재시도합니다.

        Returns:
            발송 성공 여부
        """
        payload = json.dumps(payload_obj, ensure_ascii=False).encode("utf-8")
        for attempt in range(1, self.max_retries + 2):
            try:
                if self.client is None:
                    await self._connect()
                await self.client.publish(topic, payload, qos=self.qos)
                log.debug("메시지 발송 성공", topic=topic)
                return True
            except MqttError as e:
                log.error("메시지 발송 실패", topic=topic, attempt=attempt, error=str(e))
                await self._disconnect()
                if attempt > self.max_retries:
                    break
                await exponential_backoff(attempt, self.backoff_initial, self.backoff_max)
        return False

    async def emit(self, event: AlertEvent) -> None:
        """경보와 음성 문구를 발송합니다."""
        body = event.model_dump(mode="json")
        priority = VoiceMessageTemplate.get_priority(event.category)
        body["priority"] = priority
        await self._publish(f"{self.topic_prefix}/alerts/{event.category.value}", body)

        if self.tts_topic:
            await self._publish(self.tts_topic, {
                "message": event.speech_text,
                "language": self.voice_language,
                "priority": priority,
            })

    async def notify(self, notice: Notice) -> None:
        """안내 신호와 음성 문구를 발송합니다."""
        await self._publish(f"{self.topic_prefix}/notices/{notice.kind}", notice.model_dump(mode="json"))
        if self.tts_topic:
            await self._publish(self.tts_topic, {
                "message": notice.speech_text,
                "language": self.voice_language,
                "priority": 0,
            })

    async def stop(self) -> None:
        """발송을 중지합니다."""
        if self.client is not None:
            try:
                await self.client.publish(self.lwt_topic, b"offline", qos=1, retain=True)
            except MqttError as e:
                log.debug("오프라인 상태 발송 실패", error=str(e))
        await self._disconnect()
        log.info("로컬 MQTT 연결 종료됨")


class LogAlertSink:
    """dry-run용 발송 어댑터: 경보를 로그로만 남깁니다."""

    def __init__(self, history: int = 100):
        # 최근 발송 내역만 보관
        self.events: deque = deque(maxlen=history)

    async def emit(self, event: AlertEvent) -> None:
        self.events.append(event)
        log.info("[DRY-RUN] 경보", category=event.category.value, message=event.message)

    async def notify(self, notice: Notice) -> None:
        self.events.append(notice)
        log.info("[DRY-RUN] 안내", kind=notice.kind, message=notice.message)
