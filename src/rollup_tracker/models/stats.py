"""Work counters accumulated by a rollup run."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Final

MAX_COUNTER_VALUE: Final[int] = 2**64 - 1

PAGES_PROCESSED_FIELD: Final[str] = "pages_processed"
DOCUMENTS_PROCESSED_FIELD: Final[str] = "documents_processed"
ROLLUPS_INDEXED_FIELD: Final[str] = "rollups_indexed"
INDEX_TIME_IN_MILLIS_FIELD: Final[str] = "index_time_in_millis"
SEARCH_TIME_IN_MILLIS_FIELD: Final[str] = "search_time_in_millis"


@dataclass(slots=True, frozen=True)
class RollupStats:
    """Counters describing work done by a rollup run.

    Attribute order is the wire order in both encodings.
    """

    pages_processed: int
    documents_processed: int
    rollups_indexed: int
    index_time_in_millis: int
    search_time_in_millis: int

    def __post_init__(self) -> None:
        for counter in fields(self):
            value = getattr(self, counter.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{counter.name} must be an integer, got {value!r}")
            if not 0 <= value <= MAX_COUNTER_VALUE:
                raise ValueError(
                    f"{counter.name} must be between 0 and {MAX_COUNTER_VALUE}, got {value}"
                )

    @classmethod
    def empty(cls) -> RollupStats:
        return cls(
            pages_processed=0,
            documents_processed=0,
            rollups_indexed=0,
            index_time_in_millis=0,
            search_time_in_millis=0,
        )


__all__ = [
    "DOCUMENTS_PROCESSED_FIELD",
    "INDEX_TIME_IN_MILLIS_FIELD",
    "MAX_COUNTER_VALUE",
    "PAGES_PROCESSED_FIELD",
    "ROLLUPS_INDEXED_FIELD",
    "RollupStats",
    "SEARCH_TIME_IN_MILLIS_FIELD",
]
