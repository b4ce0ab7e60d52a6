"""
aggregation/trends.py

Day-Bucket Trend Aggregator — counts sighting events per UTC calendar day.

Buckets are emitted in ascending date order and only days with at least one
event appear. The result is capped to `max_buckets`; which days survive the
cap is decided by TrendCapPolicy:

  EARLIEST  keep the first N days present in the data (historical behaviour)
  LATEST    keep the most recent N days, still emitted ascending
"""

from __future__ import annotations

import logging
from collections import Counter
from enum import Enum
from typing import Iterable

from ..models import SightingEvent, TrendPoint
from .ordering import capped, utc_day

logger = logging.getLogger(__name__)

DEFAULT_MAX_BUCKETS = 30


class TrendCapPolicy(str, Enum):
    EARLIEST = "earliest"
    LATEST   = "latest"


def bucket_by_day(events: Iterable[SightingEvent]) -> Counter[str]:
    return Counter(utc_day(evt.detected_at) for evt in events)


def build_trend(
    events: Iterable[SightingEvent],
    max_buckets: int = DEFAULT_MAX_BUCKETS,
    policy: TrendCapPolicy | str = TrendCapPolicy.EARLIEST,
) -> list[TrendPoint]:
    """Return at most `max_buckets` TrendPoints, ascending by date."""
    policy = TrendCapPolicy(policy)

    counts = bucket_by_day(events)
    days = sorted(counts)   # YYYY-MM-DD sorts lexically == chronologically

    if policy is TrendCapPolicy.EARLIEST:
        kept = capped(days, max_buckets)
    else:
        # descending, cap, then back to ascending
        kept = capped(days[::-1], max_buckets)[::-1]

    logger.debug(
        "Trend built — days=%d kept=%d policy=%s", len(days), len(kept), policy.value
    )
    return [TrendPoint(date=day, events=counts[day]) for day in kept]
