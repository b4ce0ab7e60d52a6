"""
aggregation/ordering.py

Shared windowing and ordering helpers used by every reducer.

  - as_utc()       normalises any datetime to aware UTC (naive → assumed UTC)
  - utc_day()      calendar-day bucket key, YYYY-MM-DD in UTC
  - newest_first() stable date-descending sort
  - capped()       slice to a non-negative bound
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")

EARLIEST_UTC = datetime.min.replace(tzinfo=timezone.utc)


def as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_day(dt: datetime) -> str:
    return as_utc(dt).date().isoformat()


def newest_first(items: Iterable[T], key: Callable[[T], datetime]) -> list[T]:
    """
    Sort by key() descending.

    Python's sort stays stable with reverse=True, so items with equal dates
    keep the order in which they were encountered.
    """
    return sorted(items, key=lambda item: as_utc(key(item)), reverse=True)


def capped(items: list[T], limit: int) -> list[T]:
    if limit < 0:
        raise ValueError(f"limit must be >= 0 — got {limit}")
    return items[:limit]
