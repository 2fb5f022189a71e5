"""Dashboard aggregation over the visit log.

Public API:
- StatsEngine: runs the six snapshot views concurrently
- parse_site_filter: maps the ``site_id`` query value to a filter
"""

from app.stats.engine import StatsEngine, get_stats_engine, parse_site_filter

__all__ = [
    "StatsEngine",
    "get_stats_engine",
    "parse_site_filter",
]
