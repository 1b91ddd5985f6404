"""Schema-locked binary encoding of rollup metadata.

Fields are written positionally in declaration order; nullable values are
preceded by a presence flag. There is no version discriminator, so both ends
must run the same field layout.
"""

from __future__ import annotations

from rollup_tracker.models.continuous import ContinuousMetadata
from rollup_tracker.models.rollup_metadata import RollupMetadata
from rollup_tracker.models.stats import RollupStats
from rollup_tracker.models.status import RollupStatus
from rollup_tracker.serialization.stream import StreamInput, StreamOutput


def write_stats(stats: RollupStats, out: StreamOutput) -> None:
    out.write_unsigned_long(stats.pages_processed)
    out.write_unsigned_long(stats.documents_processed)
    out.write_unsigned_long(stats.rollups_indexed)
    out.write_unsigned_long(stats.index_time_in_millis)
    out.write_unsigned_long(stats.search_time_in_millis)


def read_stats(sin: StreamInput) -> RollupStats:
    return RollupStats(
        pages_processed=sin.read_unsigned_long(),
        documents_processed=sin.read_unsigned_long(),
        rollups_indexed=sin.read_unsigned_long(),
        index_time_in_millis=sin.read_unsigned_long(),
        search_time_in_millis=sin.read_unsigned_long(),
    )


def write_continuous(continuous: ContinuousMetadata, out: StreamOutput) -> None:
    out.write_instant(continuous.next_window_start_time)
    out.write_instant(continuous.next_window_end_time)


def read_continuous(sin: StreamInput) -> ContinuousMetadata:
    return ContinuousMetadata(
        next_window_start_time=sin.read_instant(),
        next_window_end_time=sin.read_instant(),
    )


def write_metadata(metadata: RollupMetadata, out: StreamOutput) -> None:
    out.write_string(metadata.id)
    out.write_long(metadata.seq_no)
    out.write_long(metadata.primary_term)
    out.write_string(metadata.rollup_id)
    out.write_boolean(metadata.after_key is not None)
    if metadata.after_key is not None:
        out.write_map(metadata.after_key)
    out.write_instant(metadata.last_updated_time)
    out.write_boolean(metadata.continuous is not None)
    if metadata.continuous is not None:
        write_continuous(metadata.continuous, out)
    out.write_enum(metadata.status)
    out.write_optional_string(metadata.failure_reason)
    write_stats(metadata.stats, out)


def read_metadata(sin: StreamInput) -> RollupMetadata:
    metadata_id = sin.read_string()
    seq_no = sin.read_long()
    primary_term = sin.read_long()
    rollup_id = sin.read_string()
    after_key = sin.read_map() if sin.read_boolean() else None
    last_updated_time = sin.read_instant()
    continuous = read_continuous(sin) if sin.read_boolean() else None
    status = RollupStatus.from_ordinal(sin.read_vint())
    failure_reason = sin.read_optional_string()
    stats = read_stats(sin)

    return RollupMetadata(
        id=metadata_id,
        seq_no=seq_no,
        primary_term=primary_term,
        rollup_id=rollup_id,
        after_key=after_key,
        last_updated_time=last_updated_time,
        continuous=continuous,
        status=status,
        failure_reason=failure_reason,
        stats=stats,
    )


def encode_metadata(metadata: RollupMetadata) -> bytes:
    out = StreamOutput()
    write_metadata(metadata, out)
    return out.bytes()


def decode_metadata(data: bytes) -> RollupMetadata:
    sin = StreamInput(data)
    metadata = read_metadata(sin)
    sin.ensure_fully_consumed()
    return metadata


__all__ = [
    "decode_metadata",
    "encode_metadata",
    "read_continuous",
    "read_metadata",
    "read_stats",
    "write_continuous",
    "write_metadata",
    "write_stats",
]
