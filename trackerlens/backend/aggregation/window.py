"""
aggregation/window.py

Window Filter — picks the snapshots of one site that represent a recent,
meaningful tracker change.

A snapshot qualifies when all three hold:
  - snapshot.date >= cutoff
  - change_reason is not 'periodic_snapshot' (routine re-observation)
  - at least one tracker was added or removed

ChangeWindow is the validated form of the caller's `days` parameter.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, PositiveInt

from ..models import ChangeReason, ScoreSnapshot, Site
from .ordering import EARLIEST_UTC, as_utc

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 7

_LEADING_INT = re.compile(r"^\s*\+?0*(\d+)")

# Longest look-back timedelta can represent; longer runs saturate here.
MAX_DAYS = timedelta.max.days


class ChangeWindow(BaseModel):
    """Look-back window for the change feed, always a positive number of days."""

    model_config = {"frozen": True}

    days: PositiveInt = DEFAULT_DAYS

    @classmethod
    def from_query(cls, raw: str | int | None, default: int = DEFAULT_DAYS) -> "ChangeWindow":
        """
        Build a window from untrusted input.

        Missing, empty, non-numeric, zero or negative input falls back to
        `default`. Strings are read up to their first non-digit, so "10" and
        "10days" both mean 10. Values beyond MAX_DAYS saturate to it.
        """
        days: int | None = None
        if isinstance(raw, bool):
            days = None
        elif isinstance(raw, int):
            days = raw
        elif isinstance(raw, str):
            m = _LEADING_INT.match(raw)
            if m:
                digits = m.group(1)
                if len(digits) > len(str(MAX_DAYS)):
                    days = MAX_DAYS
                else:
                    days = min(int(digits), MAX_DAYS)

        if days is None or days <= 0:
            if raw is not None:
                logger.debug("days=%r not a positive integer — using %d", raw, default)
            days = default
        return cls(days=days)

    @property
    def timeframe(self) -> str:
        return f"Last {self.days} days"

    def cutoff(self, now: datetime | None = None) -> datetime:
        """Return `now - days`, clamped to the earliest representable instant."""
        now = as_utc(now) if now is not None else datetime.now(timezone.utc)
        try:
            return now - timedelta(days=self.days)
        except OverflowError:
            return EARLIEST_UTC


def is_meaningful_change(snapshot: ScoreSnapshot, cutoff: datetime) -> bool:
    if as_utc(snapshot.date) < cutoff:
        return False
    if snapshot.change_reason == ChangeReason.PERIODIC_SNAPSHOT.value:
        return False
    return bool(snapshot.trackers_added) or bool(snapshot.trackers_removed)


def select_recent_changes(site: Site, cutoff: datetime) -> list[ScoreSnapshot]:
    """Return the qualifying snapshots of `site`. Order is not guaranteed."""
    cutoff = as_utc(cutoff)
    return [s for s in site.score_history if is_meaningful_change(s, cutoff)]
