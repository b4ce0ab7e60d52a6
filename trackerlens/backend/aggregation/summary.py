"""
aggregation/summary.py

Summary Reducer and top-offender ranking.
"""

from __future__ import annotations

from typing import Iterable

from ..models import Summary, TopTracker, TrackingEntity

TOP_TRACKERS = 10


def build_summary(
    total_sites: int,
    total_trackers: int,
    total_events: int,
    average_score: float | None,
) -> Summary:
    """An empty site population has no average; report it as 0."""
    return Summary(
        total_sites=total_sites,
        total_trackers=total_trackers,
        total_events=total_events,
        average_risk_score=average_score if average_score is not None else 0,
    )


def rank_top_trackers(
    trackers: Iterable[TrackingEntity], limit: int = TOP_TRACKERS
) -> list[TopTracker]:
    """Most-sighted trackers first; equal counts keep store order."""
    ranked = sorted(trackers, key=lambda t: t.sighting_count, reverse=True)
    return [
        TopTracker(name=t.domain, count=t.sighting_count, category=t.category, risk=t.risk)
        for t in ranked[:limit]
    ]
