"""
api/routes/analytics.py

GET /api/analytics/top-trackers    — most-sighted trackers
GET /api/analytics/trends          — sighting events per UTC day
GET /api/analytics/network         — site/tracker nodes + sighting edges
GET /api/analytics/summary         — population counts + average site score
GET /api/analytics/recent-changes  — cross-site tracker change feed

Each handler reads from the store (in the threadpool) and reduces the result
synchronously. A store failure fails the whole request with a generic 500.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from starlette.concurrency import run_in_threadpool

from ...aggregation import (
    ChangeWindow,
    build_change_feed,
    build_graph,
    build_summary,
    build_trend,
    rank_top_trackers,
)
from ...config import settings
from ...storage.repository import EntityRepository
from ..errors import upstream_failure
from ..serializers import (
    ChangeFeedResponse,
    Envelope,
    NetworkResponse,
    SummaryResponse,
    TopTrackerResponse,
    TrendPointResponse,
)

router = APIRouter(prefix="/analytics", tags=["analytics"])


def _get_repo() -> EntityRepository:
    """FastAPI dependency — replaced in tests via app.dependency_overrides."""
    from ..main import get_repository
    return get_repository()


@router.get("/top-trackers", response_model=Envelope[list[TopTrackerResponse]])
async def top_trackers(
    repo: EntityRepository = Depends(_get_repo),
) -> Envelope[list[TopTrackerResponse]]:
    limit = settings.TOP_TRACKERS_LIMIT
    with upstream_failure("top trackers"):
        trackers = await run_in_threadpool(repo.list_trackers, sort="sighting_count", limit=limit)
    ranked = rank_top_trackers(trackers, limit=limit)
    return Envelope[list[TopTrackerResponse]](
        data=[TopTrackerResponse.from_record(t) for t in ranked]
    )


@router.get("/trends", response_model=Envelope[list[TrendPointResponse]])
async def trends(
    repo: EntityRepository = Depends(_get_repo),
) -> Envelope[list[TrendPointResponse]]:
    with upstream_failure("trends"):
        events = await run_in_threadpool(repo.list_events)
    points = build_trend(
        events,
        max_buckets=settings.TREND_MAX_BUCKETS,
        policy=settings.TREND_CAP_POLICY,
    )
    return Envelope[list[TrendPointResponse]](
        data=[TrendPointResponse.from_record(p) for p in points]
    )


@router.get("/network", response_model=Envelope[NetworkResponse])
async def network(
    repo: EntityRepository = Depends(_get_repo),
) -> Envelope[NetworkResponse]:
    """Nodes are bounded; edges may point at nodes outside the returned set."""
    with upstream_failure("network data"):
        sites = await run_in_threadpool(repo.list_sites, limit=settings.GRAPH_MAX_SITES)
        trackers = await run_in_threadpool(repo.list_trackers, limit=settings.GRAPH_MAX_TRACKERS)
        events = await run_in_threadpool(repo.list_events, limit=settings.GRAPH_MAX_EDGES)
    graph = build_graph(
        sites,
        trackers,
        events,
        max_sites=settings.GRAPH_MAX_SITES,
        max_trackers=settings.GRAPH_MAX_TRACKERS,
        max_edges=settings.GRAPH_MAX_EDGES,
    )
    return Envelope[NetworkResponse](data=NetworkResponse.from_record(graph))


@router.get("/summary", response_model=Envelope[SummaryResponse])
async def summary(
    repo: EntityRepository = Depends(_get_repo),
) -> Envelope[SummaryResponse]:
    with upstream_failure("analytics summary"):
        total_sites = await run_in_threadpool(repo.count_sites)
        total_trackers = await run_in_threadpool(repo.count_trackers)
        total_events = await run_in_threadpool(repo.count_events)
        average = await run_in_threadpool(repo.average_site_score)
    result = build_summary(total_sites, total_trackers, total_events, average)
    return Envelope[SummaryResponse](data=SummaryResponse.from_record(result))


@router.get("/recent-changes", response_model=Envelope[ChangeFeedResponse])
async def recent_changes(
    days: Annotated[str | None, Query(description="Look-back window in days (default 7)")] = None,
    repo: EntityRepository = Depends(_get_repo),
) -> Envelope[ChangeFeedResponse]:
    """Tracker additions/removals across all sites, newest first."""
    window = ChangeWindow.from_query(days, default=settings.CHANGE_FEED_DEFAULT_DAYS)
    cutoff = window.cutoff()
    with upstream_failure("recent changes"):
        sites = await run_in_threadpool(repo.list_sites, since=cutoff)
    feed = build_change_feed(
        sites,
        cutoff,
        limit=settings.CHANGE_FEED_LIMIT,
        timeframe=window.timeframe,
    )
    return Envelope[ChangeFeedResponse](data=ChangeFeedResponse.from_record(feed))
