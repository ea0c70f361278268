# roadsafe/main.py
import os, asyncio, signal
from typing import Optional
import uvicorn
from pydantic import ValidationError
from roadsafe.settings import Settings
from roadsafe.core.classifier import KeywordRoadClassifier
from roadsafe.core.engine import AlertEngine
from roadsafe.core.models import Coordinate, Destination
from roadsafe.observability.health import create_app
from roadsafe.observability.logging_setup import setup_logging, get_logger
from roadsafe.adapters.google.client import GoogleMapsClient
from roadsafe.adapters.mqtt.location import MqttLocationProvider
from roadsafe.adapters.mqtt.publisher import MqttAlertPublisher, LogAlertSink
from roadsafe.adapters.places.static_file import StaticPlacesProvider
from roadsafe.adapters.storage.memory import InMemoryKVStore
from roadsafe.adapters.storage.sqlite_kv import SQLiteKVStore
from roadsafe.orchestrators.orchestrator import Orchestrator

def _b(name, default=False): return os.getenv(name, str(default)).lower() in ("1","true","yes","on")

def _f(name, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    return float(raw) if raw not in (None, "") else default

def _list(name, default):
    raw = os.getenv(name)
    return [k.strip() for k in raw.split(",") if k.strip()] if raw else default

def parse_destination(value: Optional[str]) -> Optional[Destination]:
    """"위도,경도" 형식이면 좌표로, 아니면 주소 문자열로 해석합니다."""
    if not value or not value.strip():
        return None
    parts = value.split(",")
    if len(parts) == 2:
        try:
            return Coordinate(latitude=float(parts[0]), longitude=float(parts[1]))
        except (ValueError, ValidationError):
            pass
    return value.strip()

def build_settings() -> Settings:
    s = Settings()
    # 플래그
    s.dry_run = _b("DRY_RUN", s.dry_run)

    # MQTT
    s.mqtt.host = os.getenv("MQTT_HOST", s.mqtt.host)
    s.mqtt.port = int(os.getenv("MQTT_PORT", s.mqtt.port))
    s.mqtt.username = os.getenv("MQTT_USERNAME", s.mqtt.username)
    s.mqtt.password = os.getenv("MQTT_PASSWORD", s.mqtt.password)
    s.mqtt.client_id = os.getenv("MQTT_CLIENT_ID", s.mqtt.client_id)
    s.mqtt.tls = _b("MQTT_TLS", s.mqtt.tls)
    s.mqtt.location_topic = os.getenv("LOCATION_TOPIC", s.mqtt.location_topic)
    s.mqtt.topic_prefix = os.getenv("TOPIC_PREFIX", s.mqtt.topic_prefix)

    # 지도 공급자
    s.providers.google_api_key = os.getenv("GOOGLE_MAPS_API_KEY", s.providers.google_api_key)
    s.providers.timeout_sec = float(os.getenv("PROVIDER_TIMEOUT_SEC", s.providers.timeout_sec))
    s.providers.language = os.getenv("PROVIDER_LANGUAGE", s.providers.language)
    s.providers.places_file = os.getenv("PLACES_FILE", s.providers.places_file)

    # 임계값
    s.thresholds.wrong_way_cooldown_sec = float(os.getenv("WRONG_WAY_COOLDOWN_SEC", s.thresholds.wrong_way_cooldown_sec))
    s.thresholds.school_zone_radius_m = float(os.getenv("SCHOOL_ZONE_RADIUS_M", s.thresholds.school_zone_radius_m))
    s.thresholds.traffic_factor = float(os.getenv("TRAFFIC_FACTOR", s.thresholds.traffic_factor))
    s.thresholds.traffic_cooldown_sec = _f("TRAFFIC_COOLDOWN_SEC", s.thresholds.traffic_cooldown_sec)
    s.thresholds.recalculation_distance_m = float(os.getenv("RECALCULATION_DISTANCE_M", s.thresholds.recalculation_distance_m))
    s.keywords.highway_entry = _list("HIGHWAY_ENTRY_KEYWORDS", s.keywords.highway_entry)
    s.keywords.highway_exit = _list("HIGHWAY_EXIT_KEYWORDS", s.keywords.highway_exit)

    # 주행
    s.navigation.destination = os.getenv("DESTINATION", s.navigation.destination)
    s.navigation.traffic_probe_interval_sec = float(os.getenv("TRAFFIC_PROBE_INTERVAL_SEC", s.navigation.traffic_probe_interval_sec))

    # 세션
    s.session.store_path = os.getenv("SESSION_DB_PATH", s.session.store_path)
    s.session.in_memory = _b("SESSION_IN_MEMORY", s.session.in_memory)

    # 관측성
    s.observability.metrics_enabled = _b("METRICS_ENABLED", s.observability.metrics_enabled)
    s.observability.http_port = int(os.getenv("METRICS_PORT", s.observability.http_port))
    s.observability.log_level = os.getenv("LOG_LEVEL", s.observability.log_level)
    s.observability.json_logs = _b("JSON_LOGS", s.observability.json_logs)

    # 신뢰성
    s.reliability.queue_maxsize = int(os.getenv("QUEUE_MAXSIZE", s.reliability.queue_maxsize))
    s.reliability.outbox_maxsize = int(os.getenv("OUTBOX_MAXSIZE", s.reliability.outbox_maxsize))

    # TTS
    s.tts.enabled = _b("TTS_ENABLED", s.tts.enabled)
    s.tts.topic = os.getenv("TTS_TOPIC", s.tts.topic)
    s.tts.voice_language = os.getenv("TTS_VOICE_LANGUAGE", s.tts.voice_language)

    return s

async def start_http(settings: Settings, orch: Orchestrator) -> Optional[asyncio.Task]:
    if not settings.observability.metrics_enabled: return None
    app = create_app(settings, status=orch.status)
    return asyncio.create_task(uvicorn.Server(
        uvicorn.Config(app, host="0.0.0.0", port=settings.observability.http_port, log_level="info")
    ).serve())

async def main():
    s = build_settings()
    setup_logging(s.observability.log_level, json_logs=s.observability.json_logs)
    log = get_logger()
    log.info("설정 로드 완료", dry_run=s.dry_run)

    engine = AlertEngine(
        thresholds=s.thresholds,
        classifier=KeywordRoadClassifier(s.keywords.highway_entry, s.keywords.highway_exit),
        language=s.tts.voice_language,
        destination=parse_destination(s.navigation.destination),
        places_radius_m=s.navigation.places_radius_m,
        places_category=s.navigation.places_category,
        places_refresh_distance_m=s.navigation.places_refresh_distance_m,
        traffic_probe_interval_sec=s.navigation.traffic_probe_interval_sec,
    )

    location = MqttLocationProvider(
        s.mqtt.host,
        s.mqtt.port,
        s.mqtt.location_topic,
        username=s.mqtt.username,
        password=s.mqtt.password,
        tls=s.mqtt.tls,
        client_id=f"{s.mqtt.client_id}-in" if s.mqtt.client_id else None,
        keepalive=s.mqtt.keepalive,
        qos=s.mqtt.qos,
        reconnect_delay=s.mqtt.reconnect_delay_sec,
    )

    if s.dry_run:
        sink = LogAlertSink()
        log.info("DRY-RUN 모드: 경보를 로그로만 남김")
    else:
        sink = MqttAlertPublisher(
            broker_host=s.mqtt.host,
            broker_port=s.mqtt.port,
            topic_prefix=s.mqtt.topic_prefix,
            tts_topic=s.tts.topic if s.tts.enabled else None,
            voice_language=s.tts.voice_language,
            username=s.mqtt.username,
            password=s.mqtt.password,
            tls=s.mqtt.tls,
            client_id=f"{s.mqtt.client_id}-out" if s.mqtt.client_id else None,
            keepalive=s.mqtt.keepalive,
            lwt_topic=s.mqtt.lwt_topic,
            qos=s.mqtt.qos,
            backoff_initial=s.reliability.backoff_initial_sec,
            backoff_max=s.reliability.backoff_max_sec,
            max_retries=s.reliability.publish_max_retries,
        )
        await sink.start()
    log.info("경보 발송 어댑터 생성 완료")

    store = InMemoryKVStore() if s.session.in_memory else SQLiteKVStore(s.session.store_path)
    await store.init()

    async with GoogleMapsClient(
        s.providers.google_api_key,
        base_url=s.providers.base_url,
        timeout=s.providers.timeout_sec,
        language=s.providers.language,
        max_retries=s.providers.max_retries,
    ) as google:
        places = StaticPlacesProvider.from_file(s.providers.places_file) if s.providers.places_file else google

        orch = Orchestrator(
            engine, location, sink,
            directions=google, places=places, traffic=google,
            store=store,
            session_key=s.session.session_key,
            provider_timeout=s.providers.timeout_sec,
            queue_maxsize=s.reliability.queue_maxsize,
            outbox_maxsize=s.reliability.outbox_maxsize,
        )
        log.info("오케스트레이터 생성 완료")

        http_task = await start_http(s, orch)
        if http_task:
            log.info("HTTP 서버 시작됨", port=s.observability.http_port)

        stop = asyncio.Future()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try: loop.add_signal_handler(sig, lambda: (not stop.done()) and stop.set_result(True))
            except NotImplementedError: pass

        log.info("오케스트레이터 시작")
        await orch.start()
        await stop
        await orch.stop()
        if http_task: http_task.cancel()

    if isinstance(sink, MqttAlertPublisher):
        await sink.stop()

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
