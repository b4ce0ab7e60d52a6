"""
aggregation/graph.py

Relationship Graph Assembler — site/tracker nodes plus sighting edges for the
network visualisation.

Nodes are the first `max_sites` sites and the first `max_trackers` trackers
in the order the store returned them (not ranked). Edges are the first
`max_edges` sighting events, one edge per event.

Edges are best-effort: an edge endpoint may name a domain that did not make
it into the bounded node set. Consumers are expected to drop or render such
dangling edges themselves. Likewise a domain that is both a site and a
tracker appears as two nodes with the same id.
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from ..models import Graph, GraphEdge, GraphNode, SightingEvent, Site, TrackingEntity

logger = logging.getLogger(__name__)

MAX_SITE_NODES = 20
MAX_TRACKER_NODES = 20
MAX_EDGES = 100


def build_graph(
    sites: Sequence[Site],
    trackers: Sequence[TrackingEntity],
    events: Iterable[SightingEvent],
    max_sites: int = MAX_SITE_NODES,
    max_trackers: int = MAX_TRACKER_NODES,
    max_edges: int = MAX_EDGES,
) -> Graph:
    nodes: list[GraphNode] = [
        GraphNode(id=site.domain, label=site.domain, kind="site", weight=site.tracker_count)
        for site in sites[:max_sites]
    ]
    nodes.extend(
        GraphNode(id=t.domain, label=t.domain, kind="tracker", weight=t.sighting_count)
        for t in trackers[:max_trackers]
    )

    edges: list[GraphEdge] = []
    for evt in events:
        if len(edges) >= max_edges:
            break
        edges.append(GraphEdge(source=evt.source_domain, target=evt.tracker_domain, weight=1))

    logger.debug("Graph built — nodes=%d edges=%d", len(nodes), len(edges))
    return Graph(nodes=nodes, edges=edges)
