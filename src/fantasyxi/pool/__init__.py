"""Player pool and lineup batch utilities (filtering, summary, export)."""

from .export import LineupExportError, export_lineups_to_csv
from .filtering import FILTERABLE_ATTRIBUTES, AttributeRange, filter_pool
from .summary import BatchStatistics, PlayerUsage, summarize_batch

__all__ = [
    "FILTERABLE_ATTRIBUTES",
    "AttributeRange",
    "BatchStatistics",
    "LineupExportError",
    "PlayerUsage",
    "export_lineups_to_csv",
    "filter_pool",
    "summarize_batch",
]
