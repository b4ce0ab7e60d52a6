"""
api/routes/trackers.py

GET /api/trackers                  — trackers by sighting count (max 100)
GET /api/trackers/domain/{domain}  — one tracker plus its latest sightings
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from ...config import settings
from ...storage.repository import EntityRepository
from ..errors import upstream_failure
from ..serializers import (
    Envelope,
    TrackerDetailResponse,
    TrackerEventResponse,
    TrackerResponse,
)

router = APIRouter(prefix="/trackers", tags=["trackers"])


def _get_repo() -> EntityRepository:
    from ..main import get_repository
    return get_repository()


@router.get("", response_model=Envelope[list[TrackerResponse]])
async def list_trackers(
    repo: EntityRepository = Depends(_get_repo),
) -> Envelope[list[TrackerResponse]]:
    with upstream_failure("trackers"):
        trackers = await run_in_threadpool(
            repo.list_trackers, sort="sighting_count", limit=settings.TRACKER_LIST_LIMIT
        )
    return Envelope[list[TrackerResponse]](
        data=[TrackerResponse.from_record(t) for t in trackers]
    )


@router.get("/domain/{domain}", response_model=Envelope[TrackerDetailResponse])
async def tracker_detail(
    domain: str,
    repo: EntityRepository = Depends(_get_repo),
) -> Envelope[TrackerDetailResponse]:
    """
    Unknown domains are not a 404: `tracker` is null and `events` holds
    whatever sightings exist for the domain.
    """
    domain = domain.lower()
    with upstream_failure("tracker details"):
        events = await run_in_threadpool(
            repo.list_events,
            tracker_domain=domain,
            newest_first=True,
            limit=settings.TRACKER_EVENTS_LIMIT,
        )
        tracker = await run_in_threadpool(repo.get_tracker, domain)

    detail = TrackerDetailResponse(
        tracker=TrackerResponse.from_record(tracker) if tracker else None,
        events=[
            TrackerEventResponse(
                domain=e.source_domain,
                tracker_type=e.tracker_type,
                category=e.category,
                detected_at=e.detected_at,
            )
            for e in events
        ],
    )
    return Envelope[TrackerDetailResponse](data=detail)
