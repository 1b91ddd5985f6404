"""Service-layer exports."""

from rollup_tracker import __version__
from rollup_tracker.services.metadata_store import RollupMetadataStore
from rollup_tracker.services.stats_algebra import (
    increment_after_page,
    increment_from_page,
    merge_into,
    merge_stats,
)

__all__ = [
    "__version__",
    "RollupMetadataStore",
    "increment_after_page",
    "increment_from_page",
    "merge_into",
    "merge_stats",
]
