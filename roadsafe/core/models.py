"""
Core domain models for RoadSafe.

This module defines the core domain models using Pydantic v2
for type safety and validation.
"""

from enum import Enum
from typing import Dict, List, Literal, Optional, Set, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


class AlertCategory(str, Enum):
    """경보 카테고리"""
    WRONG_WAY = "wrong_way"
    SCHOOL_ZONE = "school_zone"
    HIGHWAY_ENTRY = "highway_entry"
    HIGHWAY_EXIT = "highway_exit"
    TRAFFIC = "traffic"


class Coordinate(BaseModel):
    """위도/경도 좌표 (도 단위)"""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class Position(Coordinate):
    """위치 센서 샘플"""
    heading: Optional[float] = None
    timestamp: float = 0.0

    @field_validator("heading")
    @classmethod
    def _normalize_heading(cls, v: Optional[float]) -> Optional[float]:
        # 음수/360 이상 heading을 [0, 360)으로 정규화
        if v is None:
            return None
        h = v % 360
        # -1e-20 % 360 처럼 부동소수 오차로 360.0이 나오는 경우 보정
        return 0.0 if h >= 360 else h

    def coordinate(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)


# 목적지는 좌표 또는 주소 문자열
Destination = Union[Coordinate, str]


class RouteStep(BaseModel):
    """경로 단계"""
    model_config = ConfigDict(frozen=True)

    start_location: Coordinate
    end_location: Coordinate
    instruction_text: str = ""


class Route(BaseModel):
    """경로 (단계 순서 = 주행 순서)"""
    model_config = ConfigDict(frozen=True)

    steps: List[RouteStep] = Field(default_factory=list)
    summary: Optional[str] = None


class POI(BaseModel):
    """관심 지점 (학교 등)"""
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    location: Coordinate
    category: str = "school"


class TrafficEstimate(BaseModel):
    """교통 예측 결과 (초 단위)"""
    model_config = ConfigDict(frozen=True)

    normal_duration_sec: float = Field(ge=0)
    duration_in_traffic_sec: float = Field(ge=0)


class AlertState(BaseModel):
    """카테고리별 경보 상태"""
    last_fired_at: Optional[float] = None
    cooldown_until: Optional[float] = None
    fired_keys: Set[str] = Field(default_factory=set)

    def in_cooldown(self, now: float) -> bool:
        return self.cooldown_until is not None and now < self.cooldown_until


class AlertEvent(BaseModel):
    """발생한 경보"""
    model_config = ConfigDict(frozen=True)

    category: AlertCategory
    message: str
    speech_text: str
    fired_at: float
    key: Optional[str] = None


NoticeKind = Literal["route_ready", "route_unavailable"]


class Notice(BaseModel):
    """경보가 아닌 안내 신호"""
    model_config = ConfigDict(frozen=True)

    kind: NoticeKind
    message: str
    speech_text: str


class RecalculationRequested(BaseModel):
    """경로 재계산 신호"""
    model_config = ConfigDict(frozen=True)

    origin: Position
    destination: Destination


class SessionState(BaseModel):
    """세션 저장소에 기록되는 엔진 상태 스냅샷"""
    last_known_position: Optional[Position] = None
    destination: Optional[Destination] = None
    highway_on: bool = False
    states: Dict[AlertCategory, AlertState] = Field(default_factory=dict)
