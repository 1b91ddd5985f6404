"""Stored rollup metadata row carrying both encodings and version tokens."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    DateTime,
    Index,
    LargeBinary,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from rollup_tracker.models.base import Base


class RollupMetadataRecord(Base):
    """Persisted rollup metadata keyed by id with optimistic version tokens."""

    __tablename__ = "rollup_metadata"
    __table_args__ = (
        Index(
            "ix_rollup_metadata_rollup_id_last_updated",
            "rollup_id",
            "last_updated_time",
        ),
        Index("ix_rollup_metadata_status", "status"),
    )

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    rollup_id: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    seq_no: Mapped[int] = mapped_column(BigInteger, nullable=False)
    primary_term: Mapped[int] = mapped_column(BigInteger, nullable=False)
    last_updated_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    document: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    snapshot: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)


__all__ = ["RollupMetadataRecord"]
