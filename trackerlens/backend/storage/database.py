"""
storage/database.py

SQLite connection and schema initialisation for the TrackerLens storage layer.

Design decisions:
  - WAL journal mode for concurrent readers + one writer without blocking.
  - check_same_thread=False: request handlers and the startup code share one
    connection; the analytics layer only reads.
  - busy_timeout=5000ms: instead of raising SQLITE_BUSY immediately, SQLite
    will spin-wait up to 5 seconds, allowing WAL readers to finish.
  - Timestamps are REAL unix epoch seconds; tracker lists are JSON text.
"""

from __future__ import annotations

import logging
import os
import sqlite3
import time

logger = logging.getLogger(__name__)

_CURRENT_SCHEMA_VERSION = 1


class Database:
    """
    Thin wrapper around a sqlite3 connection.

    Usage:
        db = Database("data/trackerlens.db")
        db.init_schema()
        # ... pass db to EntityRepository ...
        db.close()
    """

    def __init__(self, db_path: str = "data/trackerlens.db") -> None:
        self.db_path = db_path
        if db_path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row  # rows behave like dicts
        self._configure()
        logger.info("Database opened — path=%r", db_path)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def _configure(self) -> None:
        """Apply performance and safety PRAGMAs."""
        cur = self.conn.cursor()
        cur.execute("PRAGMA journal_mode=WAL")
        cur.execute("PRAGMA foreign_keys=ON")
        cur.execute("PRAGMA busy_timeout=5000")
        cur.execute("PRAGMA synchronous=NORMAL")  # safe with WAL
        self.conn.commit()

    # ------------------------------------------------------------------
    # Schema initialisation
    # ------------------------------------------------------------------

    def init_schema(self) -> None:
        """Create all tables if they don't already exist."""
        cur = self.conn.cursor()

        cur.executescript("""
            CREATE TABLE IF NOT EXISTS sites (
                domain          TEXT PRIMARY KEY,
                score           REAL NOT NULL DEFAULT 0,
                tracker_count   INTEGER NOT NULL DEFAULT 0
            );

            CREATE TABLE IF NOT EXISTS score_snapshots (
                id                  INTEGER PRIMARY KEY AUTOINCREMENT,
                site_domain         TEXT NOT NULL REFERENCES sites(domain) ON DELETE CASCADE,
                date                REAL NOT NULL,
                score               REAL NOT NULL,
                change_reason       TEXT NOT NULL,
                change_description  TEXT NOT NULL DEFAULT '',
                trackers_added      TEXT NOT NULL DEFAULT '[]',
                trackers_removed    TEXT NOT NULL DEFAULT '[]'
            );

            CREATE TABLE IF NOT EXISTS trackers (
                domain          TEXT PRIMARY KEY,
                category        TEXT NOT NULL DEFAULT 'unknown',
                type            TEXT NOT NULL DEFAULT 'unknown',
                risk            TEXT NOT NULL DEFAULT 'low',
                sighting_count  INTEGER NOT NULL DEFAULT 0,
                first_seen      REAL
            );

            CREATE TABLE IF NOT EXISTS events (
                id              INTEGER PRIMARY KEY AUTOINCREMENT,
                source_domain   TEXT NOT NULL,
                tracker_domain  TEXT NOT NULL,
                tracker_type    TEXT NOT NULL DEFAULT 'unknown',
                category        TEXT NOT NULL DEFAULT 'unknown',
                detected_at     REAL NOT NULL
            );

            CREATE TABLE IF NOT EXISTS schema_version (
                version    INTEGER PRIMARY KEY,
                applied_at REAL NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_snapshots_site
                ON score_snapshots(site_domain);
            CREATE INDEX IF NOT EXISTS idx_trackers_sighting_count
                ON trackers(sighting_count DESC);
        """)

        # Record schema version (ignore if already present)
        cur.execute(
            "INSERT OR IGNORE INTO schema_version (version, applied_at) VALUES (?, ?)",
            (_CURRENT_SCHEMA_VERSION, time.time()),
        )
        self.conn.commit()
        logger.info("Schema initialised (version=%d)", _CURRENT_SCHEMA_VERSION)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Flush and close the SQLite connection."""
        try:
            self.conn.commit()
            self.conn.close()
            logger.info("Database closed — path=%r", self.db_path)
        except sqlite3.Error as exc:
            logger.warning("Error closing database: %s", exc)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Execute a single parameterized statement."""
        return self.conn.execute(sql, params)

    def commit(self) -> None:
        self.conn.commit()
