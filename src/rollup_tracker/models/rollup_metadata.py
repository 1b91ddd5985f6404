"""Aggregate root tracking one rollup run's checkpoint, status and stats."""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any, Final

from rollup_tracker.models.continuous import ContinuousMetadata
from rollup_tracker.models.stats import RollupStats
from rollup_tracker.models.status import RollupStatus
from rollup_tracker.utils.timestamps import ensure_utc

NO_ID: Final[str] = ""
UNASSIGNED_SEQ_NO: Final[int] = -2
UNASSIGNED_PRIMARY_TERM: Final[int] = 0

ROLLUP_METADATA_TYPE: Final[str] = "rollup_metadata"
ROLLUP_ID_FIELD: Final[str] = "rollup_id"
AFTER_KEY_FIELD: Final[str] = "after_key"
LAST_UPDATED_FIELD: Final[str] = "last_updated_time"
LAST_UPDATED_FIELD_IN_MILLIS: Final[str] = "last_updated_time_in_millis"
CONTINUOUS_FIELD: Final[str] = "continuous"
STATUS_FIELD: Final[str] = "status"
FAILURE_REASON_FIELD: Final[str] = "failure_reason"
STATS_FIELD: Final[str] = "stats"


@dataclass(slots=True, frozen=True)
class RollupMetadata:
    """Durable bookkeeping record of a rollup run.

    ``id``, ``seq_no`` and ``primary_term`` are assigned by the persistence
    layer and carried through both codecs untouched. ``after_key`` is exposed
    as a read-only view over a private deep copy. Updates never happen in
    place; use :meth:`copy` to derive the next value.
    """

    rollup_id: str
    last_updated_time: datetime
    status: RollupStatus
    stats: RollupStats
    id: str = NO_ID
    seq_no: int = UNASSIGNED_SEQ_NO
    primary_term: int = UNASSIGNED_PRIMARY_TERM
    after_key: Mapping[str, Any] | None = None
    continuous: ContinuousMetadata | None = None
    failure_reason: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.status, RollupStatus):
            object.__setattr__(self, "status", RollupStatus.from_token(self.status))
        object.__setattr__(
            self, "last_updated_time", ensure_utc(self.last_updated_time)
        )
        if self.after_key is not None:
            object.__setattr__(
                self,
                "after_key",
                MappingProxyType(deepcopy(dict(self.after_key))),
            )

    @classmethod
    def initial(
        cls,
        rollup_id: str,
        *,
        now: datetime | None = None,
        continuous: ContinuousMetadata | None = None,
    ) -> RollupMetadata:
        """Build the metadata a scheduler records when a run starts."""

        return cls(
            rollup_id=rollup_id,
            last_updated_time=now or datetime.now(UTC),
            status=RollupStatus.INIT,
            stats=RollupStats.empty(),
            continuous=continuous,
        )

    @property
    def is_persisted(self) -> bool:
        return self.id != NO_ID and self.seq_no != UNASSIGNED_SEQ_NO

    def copy(self, **changes: Any) -> RollupMetadata:
        return replace(self, **changes)


__all__ = [
    "AFTER_KEY_FIELD",
    "CONTINUOUS_FIELD",
    "FAILURE_REASON_FIELD",
    "LAST_UPDATED_FIELD",
    "LAST_UPDATED_FIELD_IN_MILLIS",
    "NO_ID",
    "ROLLUP_ID_FIELD",
    "ROLLUP_METADATA_TYPE",
    "RollupMetadata",
    "STATS_FIELD",
    "STATUS_FIELD",
    "UNASSIGNED_PRIMARY_TERM",
    "UNASSIGNED_SEQ_NO",
]
