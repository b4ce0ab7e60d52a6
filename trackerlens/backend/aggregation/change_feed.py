"""
aggregation/change_feed.py

Change Flattener/Merger — turns many sites' snapshot histories into one
globally ordered, bounded feed of behavioural changes.

Ordering contract:
  - date descending
  - equal dates keep encounter order: sites in the order supplied, then
    snapshots in their stored order within each site
  - change_count is the total before truncation, so callers can tell when
    the feed was cut off
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from ..models import ChangeFeed, ChangeRecord, ScoreSnapshot, Site
from .ordering import capped, newest_first
from .window import select_recent_changes

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


def to_change_record(domain: str, snapshot: ScoreSnapshot) -> ChangeRecord:
    return ChangeRecord(
        domain=domain,
        date=snapshot.date,
        description=snapshot.change_description,
        reason=snapshot.change_reason,
        trackers_added=list(snapshot.trackers_added),
        trackers_removed=list(snapshot.trackers_removed),
        score=snapshot.score,
    )


def build_change_feed(
    sites: Iterable[Site],
    cutoff: datetime,
    limit: int = DEFAULT_LIMIT,
    timeframe: str = "",
) -> ChangeFeed:
    """
    Build the cross-site change feed.

    Args:
        sites:     Candidate sites with full histories. A coarse store-side
                   pre-filter is fine; every snapshot is re-checked here.
        cutoff:    Oldest instant a change may have.
        limit:     Max records in `changes` (must be >= 0).
        timeframe: Human label echoed back to the caller.
    """
    merged: list[ChangeRecord] = []
    site_count = 0
    for site in sites:
        site_count += 1
        for snapshot in select_recent_changes(site, cutoff):
            merged.append(to_change_record(site.domain, snapshot))

    ordered = newest_first(merged, key=lambda r: r.date)
    feed = ChangeFeed(
        timeframe=timeframe,
        change_count=len(ordered),
        changes=capped(ordered, limit),
    )
    logger.debug(
        "Change feed built — sites=%d changes=%d returned=%d",
        site_count, feed.change_count, len(feed.changes),
    )
    return feed
