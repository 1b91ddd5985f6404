"""Versioned persistence of rollup metadata with optimistic concurrency."""

from __future__ import annotations

import logging
from typing import NoReturn, Protocol
from uuid import uuid4

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from rollup_tracker.config import get_settings
from rollup_tracker.database import SessionScopeFactory, session_scope
from rollup_tracker.errors import StaleVersionError
from rollup_tracker.models import (
    NO_ID,
    UNASSIGNED_SEQ_NO,
    RollupMetadata,
    RollupMetadataRecord,
)
from rollup_tracker.serialization.binary import decode_metadata, encode_metadata
from rollup_tracker.serialization.document import (
    metadata_from_document,
    metadata_to_document,
)

INITIAL_SEQ_NO = 0
INITIAL_PRIMARY_TERM = 1

_store_logger = logging.getLogger("rollup_tracker.store")


class MetadataStoreSettings(Protocol):
    """Settings contract used by the metadata store."""

    METADATA_DOCUMENT_WITH_TYPE: bool


class RollupMetadataStore:
    """Get and put rollup metadata guarded by ``seq_no``/``primary_term``.

    Each row keeps the document encoding for queries and the binary encoding
    as a snapshot. A write succeeds only when the caller's tokens match the
    stored ones; the stored ``seq_no`` is then incremented in the same
    conditional statement.
    """

    def __init__(
        self,
        *,
        session_factory: SessionScopeFactory | None = None,
        settings: MetadataStoreSettings | None = None,
    ) -> None:
        self._session_factory = session_factory or session_scope
        self._with_type = (settings or get_settings()).METADATA_DOCUMENT_WITH_TYPE

    async def get(self, metadata_id: str) -> RollupMetadata | None:
        async with self._session_factory() as session:
            record = await session.get(RollupMetadataRecord, metadata_id)
            if record is None:
                return None
            return self._from_record(record)

    async def get_snapshot(self, metadata_id: str) -> RollupMetadata | None:
        """Return the metadata decoded from its binary snapshot."""

        async with self._session_factory() as session:
            record = await session.get(RollupMetadataRecord, metadata_id)
            if record is None:
                return None
            return decode_metadata(record.snapshot).copy(
                id=record.id,
                seq_no=record.seq_no,
                primary_term=record.primary_term,
            )

    async def get_by_rollup_id(self, rollup_id: str) -> RollupMetadata | None:
        async with self._session_factory() as session:
            record = (
                await session.execute(
                    select(RollupMetadataRecord)
                    .where(RollupMetadataRecord.rollup_id == rollup_id)
                    .order_by(RollupMetadataRecord.last_updated_time.desc())
                    .limit(1)
                )
            ).scalar_one_or_none()
            if record is None:
                return None
            return self._from_record(record)

    async def put(self, metadata: RollupMetadata) -> RollupMetadata:
        """Store ``metadata`` and return it carrying its new version tokens."""

        if metadata.id == NO_ID:
            return await self._create(metadata.copy(id=uuid4().hex))
        if metadata.seq_no == UNASSIGNED_SEQ_NO:
            return await self._create(metadata)
        return await self._update(metadata)

    async def delete(self, metadata_id: str) -> bool:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(RollupMetadataRecord).where(
                    RollupMetadataRecord.id == metadata_id
                )
            )
            deleted_count = int(result.rowcount or 0)

        _store_logger.info(
            "rollup_metadata_deleted",
            extra={"metadata_id": metadata_id, "deleted_count": deleted_count},
        )
        return deleted_count == 1

    async def delete_by_rollup_id(self, rollup_id: str) -> int:
        """Remove every metadata row of a deleted rollup job."""

        async with self._session_factory() as session:
            result = await session.execute(
                delete(RollupMetadataRecord).where(
                    RollupMetadataRecord.rollup_id == rollup_id
                )
            )
            deleted_count = int(result.rowcount or 0)

        _store_logger.info(
            "rollup_metadata_deleted_for_rollup",
            extra={"rollup_id": rollup_id, "deleted_count": deleted_count},
        )
        return deleted_count

    async def _create(self, metadata: RollupMetadata) -> RollupMetadata:
        stored = metadata.copy(
            seq_no=INITIAL_SEQ_NO, primary_term=INITIAL_PRIMARY_TERM
        )
        try:
            async with self._session_factory() as session:
                existing = await session.get(RollupMetadataRecord, stored.id)
                if existing is not None:
                    self._reject(metadata, existing.seq_no, existing.primary_term)

                session.add(
                    RollupMetadataRecord(
                        id=stored.id,
                        rollup_id=stored.rollup_id,
                        status=stored.status.value,
                        seq_no=stored.seq_no,
                        primary_term=stored.primary_term,
                        last_updated_time=stored.last_updated_time,
                        document=metadata_to_document(
                            stored, with_type=self._with_type
                        ),
                        snapshot=encode_metadata(stored),
                    )
                )
                await session.flush()
        except IntegrityError:
            # A concurrent create inserted the same id after the lookup above.
            current_seq_no, current_primary_term = await self._current_tokens(
                stored.id
            )
            self._reject(metadata, current_seq_no, current_primary_term)

        self._log_saved(stored)
        return stored

    async def _update(self, metadata: RollupMetadata) -> RollupMetadata:
        stored = metadata.copy(seq_no=metadata.seq_no + 1)
        async with self._session_factory() as session:
            result = await session.execute(
                update(RollupMetadataRecord)
                .where(
                    RollupMetadataRecord.id == metadata.id,
                    RollupMetadataRecord.seq_no == metadata.seq_no,
                    RollupMetadataRecord.primary_term == metadata.primary_term,
                )
                .values(
                    rollup_id=stored.rollup_id,
                    status=stored.status.value,
                    seq_no=stored.seq_no,
                    last_updated_time=stored.last_updated_time,
                    document=metadata_to_document(stored, with_type=self._with_type),
                    snapshot=encode_metadata(stored),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                current = await session.get(RollupMetadataRecord, metadata.id)
                self._reject(
                    metadata,
                    current.seq_no if current is not None else None,
                    current.primary_term if current is not None else None,
                )

        self._log_saved(stored)
        return stored

    async def _current_tokens(self, metadata_id: str) -> tuple[int | None, int | None]:
        async with self._session_factory() as session:
            current = await session.get(RollupMetadataRecord, metadata_id)
            if current is None:
                return None, None
            return current.seq_no, current.primary_term

    def _from_record(self, record: RollupMetadataRecord) -> RollupMetadata:
        return metadata_from_document(
            record.document,
            with_type=self._with_type,
            id=record.id,
            seq_no=record.seq_no,
            primary_term=record.primary_term,
        )

    def _reject(
        self,
        metadata: RollupMetadata,
        current_seq_no: int | None,
        current_primary_term: int | None,
    ) -> NoReturn:
        _store_logger.warning(
            "rollup_metadata_version_conflict",
            extra={
                "metadata_id": metadata.id,
                "rollup_id": metadata.rollup_id,
                "seq_no": metadata.seq_no,
                "primary_term": metadata.primary_term,
            },
        )
        raise StaleVersionError(
            metadata.id,
            seq_no=metadata.seq_no,
            primary_term=metadata.primary_term,
            current_seq_no=current_seq_no,
            current_primary_term=current_primary_term,
        )

    def _log_saved(self, metadata: RollupMetadata) -> None:
        _store_logger.info(
            "rollup_metadata_saved",
            extra={
                "metadata_id": metadata.id,
                "rollup_id": metadata.rollup_id,
                "status": metadata.status.value,
                "seq_no": metadata.seq_no,
                "primary_term": metadata.primary_term,
            },
        )


__all__ = [
    "INITIAL_PRIMARY_TERM",
    "INITIAL_SEQ_NO",
    "MetadataStoreSettings",
    "RollupMetadataStore",
]
