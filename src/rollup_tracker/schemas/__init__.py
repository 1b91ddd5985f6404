"""Schema exports for reporting serialization."""

from rollup_tracker import __version__
from rollup_tracker.schemas.rollup_metadata import (
    ContinuousMetadataRead,
    RollupMetadataRead,
    RollupStatsRead,
)

__all__ = [
    "__version__",
    "ContinuousMetadataRead",
    "RollupMetadataRead",
    "RollupStatsRead",
]
