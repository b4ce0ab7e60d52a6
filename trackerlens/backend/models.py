"""
backend/models.py

Shared dataclasses for the store records and the request-scoped analytics
derived from them.

Store records (read-only to the aggregation layer):
    Site, ScoreSnapshot, TrackingEntity, SightingEvent

Derived per request, never persisted:
    ChangeRecord, ChangeFeed, TrendPoint, GraphNode, GraphEdge, Graph,
    Summary, TopTracker

All datetimes are timezone-aware UTC.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


# ---------------------------------------------------------------------------
# Change reasons
# ---------------------------------------------------------------------------

class ChangeReason(str, Enum):
    PERIODIC_SNAPSHOT = "periodic_snapshot"
    DETECTED_CHANGE   = "detected_change"
    INITIAL_SCAN      = "initial_scan"


# ---------------------------------------------------------------------------
# Store records
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class ScoreSnapshot:
    """One timestamped record of a site's tracker composition and score."""

    date: datetime
    score: float
    change_reason: str
    """A ChangeReason value. Unknown strings from storage are kept as-is."""

    change_description: str = ""
    trackers_added: list[str] = field(default_factory=list)
    trackers_removed: list[str] = field(default_factory=list)


@dataclass
class Site:
    """A monitored site, keyed by domain, with its snapshot history."""

    domain: str
    score: float = 0.0
    tracker_count: int = 0
    score_history: list[ScoreSnapshot] = field(default_factory=list)

    def __repr__(self) -> str:
        return (
            f"Site({self.domain!r} score={self.score} "
            f"trackers={self.tracker_count} snapshots={len(self.score_history)})"
        )


@dataclass(slots=True)
class TrackingEntity:
    domain: str
    category: str = "unknown"
    type: str = "unknown"
    risk: str = "low"
    sighting_count: int = 0
    first_seen: datetime | None = None


@dataclass(slots=True)
class SightingEvent:
    """A single detection of a tracker on a site."""

    source_domain: str
    tracker_domain: str
    tracker_type: str
    category: str
    detected_at: datetime


# ---------------------------------------------------------------------------
# Derived records
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class ChangeRecord:
    """One qualifying snapshot flattened together with its site's domain."""

    domain: str
    date: datetime
    description: str
    reason: str
    trackers_added: list[str]
    trackers_removed: list[str]
    score: float


@dataclass
class ChangeFeed:
    timeframe: str
    change_count: int
    """Number of qualifying changes before truncation."""

    changes: list[ChangeRecord] = field(default_factory=list)


@dataclass(slots=True)
class TrendPoint:
    date: str
    """UTC calendar day, YYYY-MM-DD."""

    events: int


@dataclass(slots=True)
class GraphNode:
    id: str
    label: str
    kind: str
    """'site' | 'tracker'."""

    weight: int


@dataclass(slots=True)
class GraphEdge:
    source: str
    target: str
    weight: int = 1


@dataclass
class Graph:
    """
    Bounded node set plus best-effort edges.

    Edges may reference ids absent from `nodes`, and `nodes` may contain the
    same id twice when a site and a tracker share a domain.
    """

    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)


@dataclass(slots=True)
class Summary:
    total_sites: int
    total_trackers: int
    total_events: int
    average_risk_score: float


@dataclass(slots=True)
class TopTracker:
    name: str
    count: int
    category: str
    risk: str
