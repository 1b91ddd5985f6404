"""Rollup metadata value objects and ORM model exports."""

from rollup_tracker import __version__
from rollup_tracker.models.base import Base
from rollup_tracker.models.continuous import ContinuousMetadata
from rollup_tracker.models.metadata_record import RollupMetadataRecord
from rollup_tracker.models.rollup_metadata import (
    NO_ID,
    UNASSIGNED_PRIMARY_TERM,
    UNASSIGNED_SEQ_NO,
    RollupMetadata,
)
from rollup_tracker.models.stats import RollupStats
from rollup_tracker.models.status import RollupStatus

__all__ = [
    "__version__",
    "Base",
    "ContinuousMetadata",
    "NO_ID",
    "RollupMetadata",
    "RollupMetadataRecord",
    "RollupStats",
    "RollupStatus",
    "UNASSIGNED_PRIMARY_TERM",
    "UNASSIGNED_SEQ_NO",
]
