"""
storage/repository.py

EntityRepository — synchronous read access to sites (with snapshot
histories), trackers and sighting events, plus the seed helpers used to
populate the store.

Every read failure (SQLite error, malformed stored JSON, bad row) surfaces as
StoreReadError so callers deal with a single upstream-failure kind.
"""

from __future__ import annotations

import functools
import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from ..aggregation.ordering import as_utc
from ..models import ScoreSnapshot, SightingEvent, Site, TrackingEntity
from .database import Database

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

_TRACKER_SORTS = {
    None: "rowid ASC",
    "sighting_count": "sighting_count DESC, rowid ASC",
}


class StoreReadError(RuntimeError):
    """Source records could not be read (store unavailable or malformed record)."""


def _reads(fn: F) -> F:
    """Translate any storage/decoding failure inside a read method into StoreReadError."""

    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except StoreReadError:
            raise
        except (sqlite3.Error, ValueError, TypeError, KeyError, IndexError) as exc:
            logger.error("%s failed: %s", fn.__name__, exc)
            raise StoreReadError(f"{fn.__name__} failed") from exc

    return wrapper  # type: ignore[return-value]


def _to_epoch(dt: datetime) -> float:
    return as_utc(dt).timestamp()


def _from_epoch(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def _decode_domains(raw: str | None) -> list[str]:
    if not raw:
        return []
    value = json.loads(raw)
    if not isinstance(value, list) or not all(isinstance(d, str) for d in value):
        raise ValueError(f"expected a JSON list of domains, got {raw!r}")
    return value


class EntityRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    # ==================================================================
    # Write methods (seeding)
    # ==================================================================

    def save_site(self, domain: str, score: float = 0.0, tracker_count: int = 0) -> None:
        self._db.execute(
            """
            INSERT INTO sites (domain, score, tracker_count) VALUES (?, ?, ?)
            ON CONFLICT(domain) DO UPDATE SET
                score = excluded.score,
                tracker_count = excluded.tracker_count
            """,
            (domain.lower(), score, tracker_count),
        )
        self._db.commit()

    def save_snapshot(self, domain: str, snapshot: ScoreSnapshot) -> None:
        self._db.execute(
            """
            INSERT INTO score_snapshots (
                site_domain, date, score, change_reason, change_description,
                trackers_added, trackers_removed
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                domain.lower(),
                _to_epoch(snapshot.date),
                snapshot.score,
                str(getattr(snapshot.change_reason, "value", snapshot.change_reason)),
                snapshot.change_description,
                json.dumps(list(snapshot.trackers_added)),
                json.dumps(list(snapshot.trackers_removed)),
            ),
        )
        self._db.commit()

    def save_tracker(self, tracker: TrackingEntity) -> None:
        self._db.execute(
            """
            INSERT INTO trackers (domain, category, type, risk, sighting_count, first_seen)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(domain) DO UPDATE SET
                category = excluded.category,
                type = excluded.type,
                risk = excluded.risk,
                sighting_count = excluded.sighting_count,
                first_seen = excluded.first_seen
            """,
            (
                tracker.domain.lower(),
                tracker.category,
                tracker.type,
                tracker.risk,
                tracker.sighting_count,
                _to_epoch(tracker.first_seen) if tracker.first_seen else None,
            ),
        )
        self._db.commit()

    def save_event(self, event: SightingEvent) -> None:
        self._db.execute(
            """
            INSERT INTO events (
                source_domain, tracker_domain, tracker_type, category, detected_at
            ) VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.source_domain.lower(),
                event.tracker_domain.lower(),
                event.tracker_type,
                event.category,
                _to_epoch(event.detected_at),
            ),
        )
        self._db.commit()

    # ==================================================================
    # Read methods
    # ==================================================================

    @_reads
    def list_sites(self, since: datetime | None = None, limit: int | None = None) -> list[Site]:
        """
        Return sites in store order with their full snapshot histories.

        `since` is a coarse pre-filter: only sites with at least one snapshot
        dated at or after it are returned. Histories are never trimmed.
        """
        sql = "SELECT domain, score, tracker_count FROM sites"
        params: list[Any] = []
        if since is not None:
            sql += """
                WHERE EXISTS (
                    SELECT 1 FROM score_snapshots s
                    WHERE s.site_domain = sites.domain AND s.date >= ?
                )
            """
            params.append(_to_epoch(since))
        sql += " ORDER BY rowid ASC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        rows = self._db.execute(sql, tuple(params)).fetchall()
        sites = [
            Site(domain=r["domain"], score=r["score"], tracker_count=r["tracker_count"])
            for r in rows
        ]
        if not sites:
            return sites

        by_domain = {s.domain: s for s in sites}
        placeholders = ",".join("?" * len(by_domain))
        snap_rows = self._db.execute(
            f"""
            SELECT site_domain, date, score, change_reason, change_description,
                   trackers_added, trackers_removed
            FROM score_snapshots
            WHERE site_domain IN ({placeholders})
            ORDER BY id ASC
            """,
            tuple(by_domain),
        ).fetchall()
        for r in snap_rows:
            by_domain[r["site_domain"]].score_history.append(self._row_to_snapshot(r))
        return sites

    @_reads
    def list_trackers(self, sort: str | None = None, limit: int | None = None) -> list[TrackingEntity]:
        if sort not in _TRACKER_SORTS:
            raise StoreReadError(f"unsupported tracker sort {sort!r}")
        sql = f"SELECT * FROM trackers ORDER BY {_TRACKER_SORTS[sort]}"
        params: tuple = ()
        if limit is not None:
            sql += " LIMIT ?"
            params = (limit,)
        rows = self._db.execute(sql, params).fetchall()
        return [self._row_to_tracker(r) for r in rows]

    @_reads
    def get_tracker(self, domain: str) -> TrackingEntity | None:
        row = self._db.execute(
            "SELECT * FROM trackers WHERE domain = ?", (domain.lower(),)
        ).fetchone()
        return self._row_to_tracker(row) if row else None

    @_reads
    def list_events(
        self,
        tracker_domain: str | None = None,
        newest_first: bool = False,
        limit: int | None = None,
    ) -> list[SightingEvent]:
        sql = "SELECT * FROM events"
        params: list[Any] = []
        if tracker_domain:
            sql += " WHERE tracker_domain = ?"
            params.append(tracker_domain.lower())
        sql += " ORDER BY detected_at DESC, id DESC" if newest_first else " ORDER BY id ASC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        rows = self._db.execute(sql, tuple(params)).fetchall()
        return [self._row_to_event(r) for r in rows]

    @_reads
    def count_sites(self) -> int:
        return self._db.execute("SELECT COUNT(*) FROM sites").fetchone()[0]

    @_reads
    def count_trackers(self) -> int:
        return self._db.execute("SELECT COUNT(*) FROM trackers").fetchone()[0]

    @_reads
    def count_events(self) -> int:
        return self._db.execute("SELECT COUNT(*) FROM events").fetchone()[0]

    @_reads
    def average_site_score(self) -> float | None:
        """Mean Site.score, or None when there are no sites."""
        return self._db.execute("SELECT AVG(score) FROM sites").fetchone()[0]

    # ==================================================================
    # Internal helpers
    # ==================================================================

    @staticmethod
    def _row_to_snapshot(row: sqlite3.Row) -> ScoreSnapshot:
        return ScoreSnapshot(
            date=_from_epoch(row["date"]),
            score=row["score"],
            change_reason=row["change_reason"],
            change_description=row["change_description"] or "",
            trackers_added=_decode_domains(row["trackers_added"]),
            trackers_removed=_decode_domains(row["trackers_removed"]),
        )

    @staticmethod
    def _row_to_tracker(row: sqlite3.Row) -> TrackingEntity:
        first_seen = row["first_seen"]
        return TrackingEntity(
            domain=row["domain"],
            category=row["category"],
            type=row["type"],
            risk=row["risk"],
            sighting_count=row["sighting_count"],
            first_seen=_from_epoch(first_seen) if first_seen is not None else None,
        )

    @staticmethod
    def _row_to_event(row: sqlite3.Row) -> SightingEvent:
        return SightingEvent(
            source_domain=row["source_domain"],
            tracker_domain=row["tracker_domain"],
            tracker_type=row["tracker_type"],
            category=row["category"],
            detected_at=_from_epoch(row["detected_at"]),
        )
