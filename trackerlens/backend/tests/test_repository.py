"""
tests/test_repository.py

Tests for storage/repository.py using in-memory SQLite (":memory:").
All tests are synchronous — repository is not async.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from trackerlens.backend.models import ScoreSnapshot, SightingEvent, TrackingEntity
from trackerlens.backend.storage.database import Database
from trackerlens.backend.storage.repository import EntityRepository, StoreReadError

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def db():
    """In-memory SQLite database, initialised fresh for each test."""
    d = Database(":memory:")
    d.init_schema()
    yield d
    d.close()


@pytest.fixture
def repo(db):
    return EntityRepository(db)


def make_snapshot(days_ago: float = 1, reason: str = "detected_change",
                  added=("ads.example.com",), removed=()) -> ScoreSnapshot:
    return ScoreSnapshot(
        date=NOW - timedelta(days=days_ago),
        score=55.0,
        change_reason=reason,
        change_description="change",
        trackers_added=list(added),
        trackers_removed=list(removed),
    )


def make_event(site: str = "news.example", tracker: str = "ads.example.com",
               at: datetime = NOW) -> SightingEvent:
    return SightingEvent(site, tracker, "pixel", "advertising", at)


# ---------------------------------------------------------------------------
# Sites + snapshot histories
# ---------------------------------------------------------------------------

class TestListSites:

    def test_empty(self, repo):
        assert repo.list_sites() == []

    def test_history_round_trips(self, repo):
        repo.save_site("news.example", score=70.0, tracker_count=5)
        snap = make_snapshot(added=("a.example", "b.example"), removed=("c.example",))
        repo.save_snapshot("news.example", snap)

        (site,) = repo.list_sites()
        assert site.domain == "news.example"
        assert site.score == 70.0
        assert site.tracker_count == 5
        (stored,) = site.score_history
        assert stored.date == snap.date
        assert stored.date.tzinfo is not None
        assert stored.trackers_added == ["a.example", "b.example"]
        assert stored.trackers_removed == ["c.example"]
        assert stored.change_reason == "detected_change"

    def test_history_in_stored_order(self, repo):
        repo.save_site("news.example")
        for d in (3, 1, 2):
            repo.save_snapshot("news.example", make_snapshot(days_ago=d))
        (site,) = repo.list_sites()
        assert [s.date for s in site.score_history] == [
            NOW - timedelta(days=3), NOW - timedelta(days=1), NOW - timedelta(days=2)
        ]

    def test_since_prefilters_sites(self, repo):
        repo.save_site("recent.example")
        repo.save_site("stale.example")
        repo.save_snapshot("recent.example", make_snapshot(days_ago=2))
        repo.save_snapshot("stale.example", make_snapshot(days_ago=30))
        sites = repo.list_sites(since=NOW - timedelta(days=7))
        assert [s.domain for s in sites] == ["recent.example"]

    def test_since_keeps_full_history(self, repo):
        repo.save_site("news.example")
        repo.save_snapshot("news.example", make_snapshot(days_ago=30))
        repo.save_snapshot("news.example", make_snapshot(days_ago=1))
        (site,) = repo.list_sites(since=NOW - timedelta(days=7))
        assert len(site.score_history) == 2

    def test_limit_keeps_store_order(self, repo):
        for i in range(5):
            repo.save_site(f"s{i}.example")
        assert [s.domain for s in repo.list_sites(limit=2)] == ["s0.example", "s1.example"]

    def test_domains_lowercased(self, repo):
        repo.save_site("News.Example")
        assert repo.list_sites()[0].domain == "news.example"

    def test_malformed_tracker_json_raises_store_error(self, repo, db):
        repo.save_site("news.example")
        repo.save_snapshot("news.example", make_snapshot())
        db.execute("UPDATE score_snapshots SET trackers_added = '{not json'")
        db.commit()
        with pytest.raises(StoreReadError):
            repo.list_sites()

    def test_non_list_tracker_json_raises_store_error(self, repo, db):
        repo.save_site("news.example")
        repo.save_snapshot("news.example", make_snapshot())
        db.execute("UPDATE score_snapshots SET trackers_removed = '{\"a\": 1}'")
        db.commit()
        with pytest.raises(StoreReadError):
            repo.list_sites()


# ---------------------------------------------------------------------------
# Trackers
# ---------------------------------------------------------------------------

class TestTrackers:

    def test_sorted_by_sighting_count(self, repo):
        repo.save_tracker(TrackingEntity("low.example", sighting_count=1))
        repo.save_tracker(TrackingEntity("high.example", sighting_count=100))
        repo.save_tracker(TrackingEntity("mid.example", sighting_count=10))
        ranked = repo.list_trackers(sort="sighting_count", limit=2)
        assert [t.domain for t in ranked] == ["high.example", "mid.example"]

    def test_unsorted_is_store_order(self, repo):
        repo.save_tracker(TrackingEntity("b.example", sighting_count=1))
        repo.save_tracker(TrackingEntity("a.example", sighting_count=100))
        assert [t.domain for t in repo.list_trackers()] == ["b.example", "a.example"]

    def test_unknown_sort_raises(self, repo):
        with pytest.raises(StoreReadError):
            repo.list_trackers(sort="risk")

    def test_upsert_updates(self, repo):
        repo.save_tracker(TrackingEntity("a.example", sighting_count=1))
        repo.save_tracker(TrackingEntity("a.example", sighting_count=2, risk="high"))
        t = repo.get_tracker("a.example")
        assert t.sighting_count == 2
        assert t.risk == "high"
        assert repo.count_trackers() == 1

    def test_get_tracker_case_insensitive(self, repo):
        repo.save_tracker(TrackingEntity("ads.example.com", first_seen=NOW))
        t = repo.get_tracker("ADS.Example.com")
        assert t is not None
        assert t.first_seen == NOW

    def test_get_missing_tracker(self, repo):
        assert repo.get_tracker("nope.example") is None


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

class TestEvents:

    def test_insertion_order_by_default(self, repo):
        repo.save_event(make_event(at=NOW))
        repo.save_event(make_event(at=NOW - timedelta(days=1)))
        events = repo.list_events()
        assert [e.detected_at for e in events] == [NOW, NOW - timedelta(days=1)]

    def test_newest_first_filtered_by_tracker(self, repo):
        repo.save_event(make_event(tracker="a.example", at=NOW - timedelta(hours=2)))
        repo.save_event(make_event(tracker="b.example", at=NOW))
        repo.save_event(make_event(tracker="a.example", at=NOW))
        events = repo.list_events(tracker_domain="A.example", newest_first=True)
        assert [e.detected_at for e in events] == [NOW, NOW - timedelta(hours=2)]
        assert all(e.tracker_domain == "a.example" for e in events)

    def test_limit(self, repo):
        for _ in range(5):
            repo.save_event(make_event())
        assert len(repo.list_events(limit=3)) == 3


# ---------------------------------------------------------------------------
# Counts + average
# ---------------------------------------------------------------------------

class TestCounts:

    def test_empty_store(self, repo):
        assert repo.count_sites() == 0
        assert repo.count_trackers() == 0
        assert repo.count_events() == 0
        assert repo.average_site_score() is None

    def test_average_site_score(self, repo):
        repo.save_site("a.example", score=20.0)
        repo.save_site("b.example", score=40.0)
        assert repo.average_site_score() == pytest.approx(30.0)

    def test_closed_connection_raises_store_error(self, repo, db):
        db.conn.close()
        with pytest.raises(StoreReadError):
            repo.count_sites()
