"""
aggregation/__init__.py

Public API for the aggregation sub-package.
"""

from .change_feed import build_change_feed
from .graph import build_graph
from .summary import build_summary, rank_top_trackers
from .trends import TrendCapPolicy, build_trend
from .window import ChangeWindow, select_recent_changes

__all__ = [
    "ChangeWindow",
    "select_recent_changes",
    "build_change_feed",
    "build_trend",
    "TrendCapPolicy",
    "build_graph",
    "build_summary",
    "rank_top_trackers",
]
