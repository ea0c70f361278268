"""
MQTT location provider for RoadSafe.

Subscribes to a topic carrying JSON position reports (OwnTracks or plain
latitude/longitude payloads) and delivers them to registered callbacks.
"""

import asyncio
import json
import ssl
import time
from typing import Callable, Dict, Optional
from aiomqtt import Client, MqttError
from pydantic import ValidationError
from roadsafe.core import normalize
from roadsafe.core.errors import MalformedResponse, ProviderUnavailable
from roadsafe.ports.location import LocationCallback
from roadsafe.observability.logging_setup import get_logger

log = get_logger("roadsafe.mqtt_location")

class MqttLocationProvider:
    """MQTT 위치 공급자 어댑터"""

    def __init__(
        self,
        host: str,
        port: int,
        topic: str,
        *,
        username: str | None = None,
        password: str | None = None,
        tls: bool = False,
        client_id: str | None = None,
        keepalive: int = 30,
        qos: int = 1,
        reconnect_delay: float = 5.0,
        clock: Callable[[], float] = time.time,
    ):
        self.host = host
        self.port = port
        self.topic = topic
        self.username = username
        self.password = password
        self.tls = tls
        self.client_id = client_id
        self.keepalive = keepalive
        self.qos = qos
        self.reconnect_delay = reconnect_delay
        self.clock = clock

        self._tasks: Dict[int, asyncio.Task] = {}
        self._next_handle = 0

    def subscribe(self, callback: LocationCallback) -> int:
        """위치 스트림 구독을 시작하고 핸들을 반환합니다."""
        self._next_handle += 1
        handle = self._next_handle
        self._tasks[handle] = asyncio.get_running_loop().create_task(self._run(callback))
        log.info("위치 스트림 구독", handle=handle, topic=self.topic)
        return handle

    def unsubscribe(self, handle: int) -> None:
        """구독을 해제하고 수신 태스크를 취소합니다."""
        task = self._tasks.pop(handle, None)
        if task is not None:
            task.cancel()
            log.info("위치 스트림 구독 해제", handle=handle)

    def _client(self) -> Client:
        # TLS 컨텍스트 준비 (필요 시)
        tls_context: Optional[ssl.SSLContext] = ssl.create_default_context() if self.tls else None
        return Client(
            hostname=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            identifier=self.client_id,
            keepalive=self.keepalive,
            tls_context=tls_context,
        )

    async def _run(self, callback: LocationCallback) -> None:
        """연결 → 구독 → 수신 루프. 연결이 끊기면 대기 후 재연결합니다."""
        while True:
            try:
                async with self._client() as client:
                    await client.subscribe(self.topic, qos=self.qos)
                    log.info("MQTT 브로커 연결됨", host=self.host, port=self.port, topic=self.topic)
                    async for message in client.messages:
                        self.deliver(message.payload, callback)
            except MqttError as e:
                log.error("MQTT 오류, 재연결 대기", error=str(e), delay=self.reconnect_delay)
                callback(ProviderUnavailable("location", str(e)))
                await asyncio.sleep(self.reconnect_delay)

    def deliver(self, payload, callback: LocationCallback) -> None:
        """
        메시지 하나를 디코딩해 콜백에 전달합니다.

        디코딩 실패는 MalformedResponse로 전달되며 루프를 멈추지 않습니다.
        """
        try:
            text = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else str(payload)
            position = normalize.to_position(json.loads(text), default_timestamp=self.clock())
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            log.error("위치 메시지 디코딩 오류", error=str(e))
            callback(MalformedResponse("location", f"undecodable payload: {e}"))
            return
        except MalformedResponse as e:
            log.error("잘못된 위치 메시지", detail=e.detail)
            callback(e)
            return
        except ValidationError as e:
            log.error("위치 값 검증 실패", errors=e.error_count())
            callback(MalformedResponse("location", "invalid field values"))
            return

        if position is not None:
            callback(position)
