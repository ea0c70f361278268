# roadsafe/settings.py
from __future__ import annotations
from typing import List, Optional
from pydantic import BaseModel, Field

class MqttConfig(BaseModel):
    host: str = "localhost"
    port: int = 1883
    username: str | None = None
    password: str | None = None
    tls: bool = False
    client_id: str | None = None
    keepalive: int = 30
    location_topic: str = "owntracks/+/+"
    topic_prefix: str = "roadsafe"
    qos: int = 1
    lwt_topic: str = "roadsafe/state"
    reconnect_delay_sec: float = 5.0

class ProviderConfig(BaseModel):
    google_api_key: str = ""
    base_url: str = "https://maps.googleapis.com"
    timeout_sec: float = 10.0                # 공급자 왕복 상한, 초과 시 ProviderUnavailable
    max_retries: int = 2
    language: str = "en"
    places_file: str | None = None          # 지정 시 정적 파일 기반 학교 목록 사용

class AlertThresholds(BaseModel):
    wrong_way_max_step_distance_m: float = 50.0
    wrong_way_min_angle_deg: float = 140.0
    wrong_way_max_angle_deg: float = 220.0
    wrong_way_cooldown_sec: float = 10.0
    school_zone_radius_m: float = 300.0
    highway_step_radius_m: float = 200.0
    traffic_factor: float = 1.5
    traffic_cooldown_sec: Optional[float] = None   # None이면 쿨다운 없음
    recalculation_distance_m: float = 100.0

class Keywords(BaseModel):
    highway_entry: List[str] = Field(default_factory=lambda: [
        "highway", "interstate", "expressway", "freeway", "on-ramp", "merge onto",
    ])
    highway_exit: List[str] = Field(default_factory=lambda: [
        "exit", "off-ramp", "leave", "merge off",
    ])

class Navigation(BaseModel):
    destination: str | None = None
    places_radius_m: float = 2000.0
    places_category: str = "school"
    places_refresh_distance_m: float = 500.0
    traffic_probe_interval_sec: float = 10.0

class Session(BaseModel):
    store_path: str = "/data/session.db"
    session_key: str = "roadsafe:session"
    in_memory: bool = False

class Observability(BaseModel):
    http_port: int = 8099
    metrics_enabled: bool = True
    service_name: str = "RoadSafe"
    build_version: str = "0.1.0"
    build_date: str = "2026-10-01"
    log_level: str = "INFO"
    json_logs: bool = False

class Reliability(BaseModel):
    queue_maxsize: int = 1000
    outbox_maxsize: int = 100              # 발송 대기열, 가득 차면 가장 오래된 경보를 버림
    publish_max_retries: int = 3
    backoff_initial_sec: float = 0.5
    backoff_max_sec: float = 30.0

class TTS(BaseModel):
    enabled: bool = True
    topic: str = "roadsafe/tts"
    voice_language: str = "en-US"

class Settings(BaseModel):
    dry_run: bool = False

    # 하위 섹션 (기본값/팩토리로 누락 방지)
    mqtt: MqttConfig = Field(default_factory=MqttConfig)
    providers: ProviderConfig = Field(default_factory=ProviderConfig)
    thresholds: AlertThresholds = Field(default_factory=AlertThresholds)
    keywords: Keywords = Field(default_factory=Keywords)
    navigation: Navigation = Field(default_factory=Navigation)
    session: Session = Field(default_factory=Session)
    observability: Observability = Field(default_factory=Observability)
    reliability: Reliability = Field(default_factory=Reliability)
    tts: TTS = Field(default_factory=TTS)
