"""
Request/response message types for RoadSafe.

Every outbound provider request carries a sequence number; the matching
response echoes it so stale answers can be discarded.
"""

from typing import List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from .models import AlertEvent, Destination, Notice, POI, Position, Route, TrafficEstimate

ProviderKind = Literal["directions", "places", "traffic"]


class _Message(BaseModel):
    model_config = ConfigDict(frozen=True)


class RouteRequest(_Message):
    kind: Literal["directions"] = "directions"
    seq: int
    origin: Position
    destination: Destination


class PlacesRequest(_Message):
    kind: Literal["places"] = "places"
    seq: int
    center: Position
    radius_m: float
    category: str = "school"


class TrafficRequest(_Message):
    kind: Literal["traffic"] = "traffic"
    seq: int
    origin: Position
    destination: Position


ProviderRequest = Union[RouteRequest, PlacesRequest, TrafficRequest]


class _Response(_Message):
    seq: int
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RouteResponse(_Response):
    kind: Literal["directions"] = "directions"
    route: Optional[Route] = None


class PlacesResponse(_Response):
    kind: Literal["places"] = "places"
    places: List[POI] = Field(default_factory=list)


class TrafficResponse(_Response):
    kind: Literal["traffic"] = "traffic"
    estimate: Optional[TrafficEstimate] = None


ProviderResponse = Union[RouteResponse, PlacesResponse, TrafficResponse]


class PositionSample(_Message):
    """인박스: 위치 샘플"""
    position: Position


class LocationFailure(_Message):
    """인박스: 위치 공급자 오류"""
    error: str


class SetDestination(_Message):
    """인박스: 목적지 설정"""
    destination: Destination


class ClearDestination(_Message):
    """인박스: 목적지 해제"""


class ResetSession(_Message):
    """인박스: 세션 초기화"""


class EvaluationResult(BaseModel):
    """평가 1회 결과"""
    alerts: List[AlertEvent] = Field(default_factory=list)
    recalc_request: Optional[RouteRequest] = None
    requests: List[ProviderRequest] = Field(default_factory=list)
    notices: List[Notice] = Field(default_factory=list)
    stale: bool = False

    def outbound(self) -> List[ProviderRequest]:
        """발송할 모든 요청 (재계산 요청 우선)"""
        reqs: List[ProviderRequest] = []
        if self.recalc_request is not None:
            reqs.append(self.recalc_request)
        reqs.extend(self.requests)
        return reqs
