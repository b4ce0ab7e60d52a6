"""
api/serializers.py

Response models. Field names are snake_case in Python and camelCase on the
wire; every payload is wrapped as {"success": true, "data": ...}.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_record(cls, record):
        """Build from one of the backend.models dataclasses."""
        return cls.model_validate(asdict(record))


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T


# ---------------------------------------------------------------------------
# /api/analytics
# ---------------------------------------------------------------------------

class TopTrackerResponse(CamelModel):
    name: str
    count: int
    category: str
    risk: str


class TrendPointResponse(CamelModel):
    date: str
    events: int


class GraphNodeResponse(CamelModel):
    id: str
    label: str
    kind: str
    weight: int


class GraphEdgeResponse(CamelModel):
    source: str
    target: str
    weight: int


class NetworkResponse(CamelModel):
    nodes: list[GraphNodeResponse]
    edges: list[GraphEdgeResponse]


class SummaryResponse(CamelModel):
    total_sites: int
    total_trackers: int
    total_events: int
    average_risk_score: float


class ChangeRecordResponse(CamelModel):
    domain: str
    date: datetime
    description: str
    reason: str
    trackers_added: list[str]
    trackers_removed: list[str]
    score: float


class ChangeFeedResponse(CamelModel):
    timeframe: str
    change_count: int
    changes: list[ChangeRecordResponse]


# ---------------------------------------------------------------------------
# /api/trackers
# ---------------------------------------------------------------------------

class TrackerResponse(CamelModel):
    domain: str
    category: str
    type: str
    risk: str
    sighting_count: int
    first_seen: datetime | None = None


class TrackerEventResponse(CamelModel):
    domain: str
    """Site the tracker was sighted on."""
    tracker_type: str
    category: str
    detected_at: datetime


class TrackerDetailResponse(CamelModel):
    tracker: TrackerResponse | None
    events: list[TrackerEventResponse]
