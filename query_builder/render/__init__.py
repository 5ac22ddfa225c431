"""SQL rendering and statistics derived from query state."""

from .renderer import QueryRenderer, render, FALLBACK_SELECT
from .statistics import QueryStatistics, compute_statistics

__all__ = [
    "QueryRenderer",
    "render",
    "FALLBACK_SELECT",
    "QueryStatistics",
    "compute_statistics",
]
