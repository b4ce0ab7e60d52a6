"""
storage/migrations.py

Ordered schema migrations on top of the v1 schema created by
Database.init_schema(). Each migration runs in its own transaction and is
recorded in schema_version once committed.

v2 — indexes behind the change-feed date pre-filter and the per-tracker
     event lookup.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from typing import Callable

from .database import Database

logger = logging.getLogger(__name__)


def migration_2(cur: sqlite3.Cursor) -> None:
    cur.execute(
        "CREATE INDEX IF NOT EXISTS idx_snapshots_date ON score_snapshots(date DESC)"
    )
    cur.execute(
        "CREATE INDEX IF NOT EXISTS idx_events_tracker "
        "ON events(tracker_domain, detected_at DESC)"
    )


_MIGRATIONS: list[tuple[int, Callable[[sqlite3.Cursor], None]]] = [
    (2, migration_2),
]


def current_schema_version(db: Database) -> int:
    row = db.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] if row and row[0] is not None else 0


def apply_migrations(db: Database) -> int:
    """Apply every migration newer than the stored version; return the final version."""
    version_now = current_schema_version(db)
    pending = sorted(
        ((v, fn) for v, fn in _MIGRATIONS if v > version_now), key=lambda m: m[0]
    )
    if not pending:
        logger.debug("Schema up to date (version=%d)", version_now)
        return version_now

    cur = db.conn.cursor()
    for version, migrate in pending:
        logger.info("Applying migration v%d", version)
        try:
            migrate(cur)
            cur.execute(
                "INSERT OR REPLACE INTO schema_version (version, applied_at) VALUES (?, ?)",
                (version, time.time()),
            )
            db.commit()
        except Exception as exc:
            db.conn.rollback()
            logger.error("Migration v%d failed, rolled back: %s", version, exc)
            raise
        version_now = version

    logger.info("Schema migrated to version %d", version_now)
    return version_now
