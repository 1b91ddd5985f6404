"""Next processing window of a continuous rollup."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Final

from rollup_tracker.utils.timestamps import ensure_utc

NEXT_WINDOW_START_TIME_FIELD: Final[str] = "next_window_start_time"
NEXT_WINDOW_START_TIME_FIELD_IN_MILLIS: Final[str] = "next_window_start_time_in_millis"
NEXT_WINDOW_END_TIME_FIELD: Final[str] = "next_window_end_time"
NEXT_WINDOW_END_TIME_FIELD_IN_MILLIS: Final[str] = "next_window_end_time_in_millis"


@dataclass(slots=True, frozen=True)
class ContinuousMetadata:
    """Interval ``[next_window_start_time, next_window_end_time)`` to process next.

    Ordering of the two instants is trusted, not checked.
    """

    next_window_start_time: datetime
    next_window_end_time: datetime

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "next_window_start_time", ensure_utc(self.next_window_start_time)
        )
        object.__setattr__(
            self, "next_window_end_time", ensure_utc(self.next_window_end_time)
        )


__all__ = [
    "ContinuousMetadata",
    "NEXT_WINDOW_END_TIME_FIELD",
    "NEXT_WINDOW_END_TIME_FIELD_IN_MILLIS",
    "NEXT_WINDOW_START_TIME_FIELD",
    "NEXT_WINDOW_START_TIME_FIELD_IN_MILLIS",
]
