"""Pydantic schemas for reporting rollup metadata."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from rollup_tracker.models.status import RollupStatus


class RollupStatsRead(BaseModel):
    """Serialized work counters."""

    model_config = ConfigDict(from_attributes=True)

    pages_processed: int = Field(ge=0)
    documents_processed: int = Field(ge=0)
    rollups_indexed: int = Field(ge=0)
    index_time_in_millis: int = Field(ge=0)
    search_time_in_millis: int = Field(ge=0)


class ContinuousMetadataRead(BaseModel):
    """Serialized next processing window."""

    model_config = ConfigDict(from_attributes=True)

    next_window_start_time: datetime
    next_window_end_time: datetime


class RollupMetadataRead(BaseModel):
    """Serialized rollup metadata for status reports."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: str
    seq_no: int
    primary_term: int
    rollup_id: str = Field(min_length=1)
    after_key: dict[str, Any] | None = None
    last_updated_time: datetime
    continuous: ContinuousMetadataRead | None = None
    status: RollupStatus
    failure_reason: str | None = None
    stats: RollupStatsRead


__all__ = [
    "ContinuousMetadataRead",
    "RollupMetadataRead",
    "RollupStatsRead",
]
