"""
tests/test_graph.py

Tests for aggregation/graph.py and the /api/analytics/network endpoint.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from trackerlens.backend.aggregation.graph import build_graph
from trackerlens.backend.api.main import create_app, set_repository
from trackerlens.backend.models import SightingEvent, Site, TrackingEntity
from trackerlens.backend.storage.database import Database
from trackerlens.backend.storage.repository import EntityRepository

AT = datetime(2026, 10, 1, tzinfo=timezone.utc)


def sites(n: int) -> list[Site]:
    return [Site(domain=f"site{i}.example", tracker_count=i) for i in range(n)]


def trackers(n: int) -> list[TrackingEntity]:
    return [TrackingEntity(domain=f"t{i}.example", sighting_count=i * 10) for i in range(n)]


def events(n: int, source: str = "site0.example", target: str = "t0.example") -> list[SightingEvent]:
    return [SightingEvent(source, target, "script", "analytics", AT) for _ in range(n)]


# ─── build_graph ──────────────────────────────────────────────────────────────

class TestBuildGraph:

    def test_empty_inputs(self):
        g = build_graph([], [], [])
        assert g.nodes == []
        assert g.edges == []

    def test_site_nodes_then_tracker_nodes(self):
        g = build_graph(sites(2), trackers(2), [])
        assert [(n.id, n.kind) for n in g.nodes] == [
            ("site0.example", "site"), ("site1.example", "site"),
            ("t0.example", "tracker"), ("t1.example", "tracker"),
        ]

    def test_node_weights(self):
        g = build_graph(sites(3), trackers(3), [])
        by_id = {n.id: n for n in g.nodes}
        assert by_id["site2.example"].weight == 2
        assert by_id["t2.example"].weight == 20
        assert by_id["t2.example"].label == "t2.example"

    def test_nodes_bounded_twenty_plus_twenty(self):
        g = build_graph(sites(30), trackers(25), [])
        assert sum(1 for n in g.nodes if n.kind == "site") == 20
        assert sum(1 for n in g.nodes if n.kind == "tracker") == 20

    def test_nodes_keep_store_order_not_rank(self):
        ts = [TrackingEntity("small.example", sighting_count=1),
              TrackingEntity("big.example", sighting_count=999)]
        g = build_graph([], ts, [])
        assert [n.id for n in g.nodes] == ["small.example", "big.example"]

    def test_edges_one_per_event(self):
        g = build_graph([], [], events(3))
        assert len(g.edges) == 3
        assert all(e.source == "site0.example" and e.target == "t0.example" and e.weight == 1
                   for e in g.edges)

    def test_edges_bounded_to_hundred(self):
        g = build_graph([], [], events(150))
        assert len(g.edges) == 100

    def test_edges_may_dangle(self):
        g = build_graph(sites(1), trackers(1), events(1, source="elsewhere.example",
                                                         target="unknown.example"))
        ids = {n.id for n in g.nodes}
        assert g.edges[0].source not in ids
        assert g.edges[0].target not in ids

    def test_duplicate_ids_across_kinds_kept(self):
        g = build_graph([Site("dual.example")], [TrackingEntity("dual.example")], [])
        assert [n.id for n in g.nodes] == ["dual.example", "dual.example"]
        assert {n.kind for n in g.nodes} == {"site", "tracker"}

    def test_custom_bounds(self):
        g = build_graph(sites(5), trackers(5), events(5), max_sites=1, max_trackers=2, max_edges=3)
        assert len(g.nodes) == 3
        assert len(g.edges) == 3


# ─── /api/analytics/network ───────────────────────────────────────────────────

@pytest.fixture
def client(tmp_path):
    db = Database(str(tmp_path / "graph.db"))
    db.init_schema()
    repo = EntityRepository(db)
    set_repository(repo)
    with TestClient(create_app()) as c:
        yield c, repo
    set_repository(None)
    db.close()


class TestNetworkEndpoint:

    def test_empty_store(self, client):
        c, _ = client
        resp = c.get("/api/analytics/network")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": {"nodes": [], "edges": []}}

    def test_nodes_and_dangling_edges(self, client):
        c, repo = client
        repo.save_site("news.example", score=40, tracker_count=4)
        repo.save_tracker(TrackingEntity("ads.example.com", sighting_count=9))
        repo.save_event(SightingEvent("blog.example", "cdn-tracker.example", "pixel", "ads", AT))

        data = c.get("/api/analytics/network").json()["data"]
        assert data["nodes"] == [
            {"id": "news.example", "label": "news.example", "kind": "site", "weight": 4},
            {"id": "ads.example.com", "label": "ads.example.com", "kind": "tracker", "weight": 9},
        ]
        assert data["edges"] == [
            {"source": "blog.example", "target": "cdn-tracker.example", "weight": 1}
        ]
