"""Field-tagged document encoding of rollup metadata.

Documents are written through :class:`DocumentBuilder` and read back from a
:class:`DocumentParser` token stream. Unknown fields are skipped so readers
tolerate additive changes; required fields that are absent (or ``null``) fail
the parse with :class:`MissingRequiredFieldError`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import Any, TypeVar

from rollup_tracker.errors import (
    MissingRequiredFieldError,
    UnexpectedTokenError,
    UnrecognizedStatusError,
)
from rollup_tracker.models.continuous import (
    NEXT_WINDOW_END_TIME_FIELD,
    NEXT_WINDOW_END_TIME_FIELD_IN_MILLIS,
    NEXT_WINDOW_START_TIME_FIELD,
    NEXT_WINDOW_START_TIME_FIELD_IN_MILLIS,
    ContinuousMetadata,
)
from rollup_tracker.models.rollup_metadata import (
    AFTER_KEY_FIELD,
    CONTINUOUS_FIELD,
    FAILURE_REASON_FIELD,
    LAST_UPDATED_FIELD,
    LAST_UPDATED_FIELD_IN_MILLIS,
    NO_ID,
    ROLLUP_ID_FIELD,
    ROLLUP_METADATA_TYPE,
    STATS_FIELD,
    STATUS_FIELD,
    UNASSIGNED_PRIMARY_TERM,
    UNASSIGNED_SEQ_NO,
    RollupMetadata,
)
from rollup_tracker.models.stats import (
    DOCUMENTS_PROCESSED_FIELD,
    INDEX_TIME_IN_MILLIS_FIELD,
    PAGES_PROCESSED_FIELD,
    ROLLUPS_INDEXED_FIELD,
    SEARCH_TIME_IN_MILLIS_FIELD,
    RollupStats,
)
from rollup_tracker.models.status import RollupStatus
from rollup_tracker.serialization.xcontent import DocumentBuilder, DocumentParser, Token

_LOGGER = logging.getLogger("rollup_tracker.document")

T = TypeVar("T")

_STATS_ENTITY = "RollupStats"
_CONTINUOUS_ENTITY = "ContinuousMetadata"
_METADATA_ENTITY = "RollupMetadata"


def write_stats_document(
    stats: RollupStats, builder: DocumentBuilder
) -> DocumentBuilder:
    return (
        builder.start_object()
        .field(PAGES_PROCESSED_FIELD, stats.pages_processed)
        .field(DOCUMENTS_PROCESSED_FIELD, stats.documents_processed)
        .field(ROLLUPS_INDEXED_FIELD, stats.rollups_indexed)
        .field(INDEX_TIME_IN_MILLIS_FIELD, stats.index_time_in_millis)
        .field(SEARCH_TIME_IN_MILLIS_FIELD, stats.search_time_in_millis)
        .end_object()
    )


def write_continuous_document(
    continuous: ContinuousMetadata, builder: DocumentBuilder
) -> DocumentBuilder:
    return (
        builder.start_object()
        .time_field(
            NEXT_WINDOW_START_TIME_FIELD,
            NEXT_WINDOW_START_TIME_FIELD_IN_MILLIS,
            continuous.next_window_start_time,
        )
        .time_field(
            NEXT_WINDOW_END_TIME_FIELD,
            NEXT_WINDOW_END_TIME_FIELD_IN_MILLIS,
            continuous.next_window_end_time,
        )
        .end_object()
    )


def write_metadata_document(
    metadata: RollupMetadata,
    builder: DocumentBuilder,
    *,
    with_type: bool = False,
) -> DocumentBuilder:
    """Write ``metadata``, nested under ``rollup_metadata`` when ``with_type``."""

    builder.start_object()
    if with_type:
        builder.start_object(ROLLUP_METADATA_TYPE)

    builder.field(ROLLUP_ID_FIELD, metadata.rollup_id)
    if metadata.after_key is not None:
        builder.field(AFTER_KEY_FIELD, metadata.after_key)
    builder.time_field(
        LAST_UPDATED_FIELD, LAST_UPDATED_FIELD_IN_MILLIS, metadata.last_updated_time
    )
    if metadata.continuous is not None:
        builder.field_name(CONTINUOUS_FIELD)
        write_continuous_document(metadata.continuous, builder)
    builder.field(STATUS_FIELD, metadata.status.value)
    builder.field(FAILURE_REASON_FIELD, metadata.failure_reason)
    builder.field_name(STATS_FIELD)
    write_stats_document(metadata.stats, builder)

    if with_type:
        builder.end_object()
    return builder.end_object()


def stats_to_document(stats: RollupStats) -> dict[str, Any]:
    return write_stats_document(stats, DocumentBuilder()).build()


def continuous_to_document(continuous: ContinuousMetadata) -> dict[str, Any]:
    return write_continuous_document(continuous, DocumentBuilder()).build()


def metadata_to_document(
    metadata: RollupMetadata, *, with_type: bool = False
) -> dict[str, Any]:
    return write_metadata_document(
        metadata, DocumentBuilder(), with_type=with_type
    ).build()


def metadata_to_json(metadata: RollupMetadata, *, with_type: bool = False) -> str:
    return write_metadata_document(
        metadata, DocumentBuilder(), with_type=with_type
    ).to_json()


def _iter_fields(parser: DocumentParser) -> Iterator[str]:
    """Yield each field name with the parser positioned on its value."""

    parser.ensure_expected_token(Token.START_OBJECT)
    while parser.next_token() is not Token.END_OBJECT:
        parser.ensure_expected_token(Token.FIELD_NAME)
        field_name = parser.current_name()
        parser.next_token()
        yield str(field_name)


def _skip_field(parser: DocumentParser, field_name: str, entity: str) -> None:
    _LOGGER.debug(
        "document_unknown_field_skipped",
        extra={"field_name": field_name, "entity": entity},
    )
    parser.skip_children()


def _require(value: T | None, field_name: str, entity: str) -> T:
    if value is None:
        _LOGGER.warning(
            "document_required_field_missing",
            extra={"field_name": field_name, "entity": entity},
        )
        raise MissingRequiredFieldError(field_name, entity)
    return value


def _long_or_null(parser: DocumentParser) -> int | None:
    if parser.current_token is Token.VALUE_NULL:
        return None
    return parser.long_value()


def _parse_status(parser: DocumentParser) -> RollupStatus | None:
    if parser.current_token is Token.VALUE_NULL:
        return None
    try:
        return RollupStatus.from_token(parser.value())
    except UnrecognizedStatusError:
        _LOGGER.warning(
            "document_status_unrecognized",
            extra={"field_name": STATUS_FIELD, "entity": _METADATA_ENTITY},
        )
        raise


def parse_stats(parser: DocumentParser) -> RollupStats:
    pages_processed: int | None = None
    documents_processed: int | None = None
    rollups_indexed: int | None = None
    index_time_in_millis: int | None = None
    search_time_in_millis: int | None = None

    for field_name in _iter_fields(parser):
        if field_name == PAGES_PROCESSED_FIELD:
            pages_processed = _long_or_null(parser)
        elif field_name == DOCUMENTS_PROCESSED_FIELD:
            documents_processed = _long_or_null(parser)
        elif field_name == ROLLUPS_INDEXED_FIELD:
            rollups_indexed = _long_or_null(parser)
        elif field_name == INDEX_TIME_IN_MILLIS_FIELD:
            index_time_in_millis = _long_or_null(parser)
        elif field_name == SEARCH_TIME_IN_MILLIS_FIELD:
            search_time_in_millis = _long_or_null(parser)
        else:
            _skip_field(parser, field_name, _STATS_ENTITY)

    return RollupStats(
        pages_processed=_require(pages_processed, PAGES_PROCESSED_FIELD, _STATS_ENTITY),
        documents_processed=_require(
            documents_processed, DOCUMENTS_PROCESSED_FIELD, _STATS_ENTITY
        ),
        rollups_indexed=_require(rollups_indexed, ROLLUPS_INDEXED_FIELD, _STATS_ENTITY),
        index_time_in_millis=_require(
            index_time_in_millis, INDEX_TIME_IN_MILLIS_FIELD, _STATS_ENTITY
        ),
        search_time_in_millis=_require(
            search_time_in_millis, SEARCH_TIME_IN_MILLIS_FIELD, _STATS_ENTITY
        ),
    )


def parse_continuous(parser: DocumentParser) -> ContinuousMetadata:
    window_start_time = None
    window_end_time = None

    for field_name in _iter_fields(parser):
        if field_name == NEXT_WINDOW_START_TIME_FIELD:
            window_start_time = parser.instant()
        elif field_name == NEXT_WINDOW_END_TIME_FIELD:
            window_end_time = parser.instant()
        else:
            _skip_field(parser, field_name, _CONTINUOUS_ENTITY)

    return ContinuousMetadata(
        next_window_start_time=_require(
            window_start_time, NEXT_WINDOW_START_TIME_FIELD, _CONTINUOUS_ENTITY
        ),
        next_window_end_time=_require(
            window_end_time, NEXT_WINDOW_END_TIME_FIELD, _CONTINUOUS_ENTITY
        ),
    )


def parse_metadata(
    parser: DocumentParser,
    *,
    id: str = NO_ID,
    seq_no: int = UNASSIGNED_SEQ_NO,
    primary_term: int = UNASSIGNED_PRIMARY_TERM,
) -> RollupMetadata:
    """Parse an unwrapped metadata object; the parser must sit on its START_OBJECT.

    ``id``, ``seq_no`` and ``primary_term`` are not part of the document and
    come from the storage envelope the document was read from.
    """

    rollup_id = None
    after_key = None
    last_updated_time = None
    continuous = None
    status = None
    failure_reason = None
    stats = None

    for field_name in _iter_fields(parser):
        if field_name == ROLLUP_ID_FIELD:
            rollup_id = parser.text_or_null()
        elif field_name == AFTER_KEY_FIELD:
            after_key = parser.map_or_null()
        elif field_name == LAST_UPDATED_FIELD:
            last_updated_time = parser.instant()
        elif field_name == CONTINUOUS_FIELD:
            if parser.current_token is not Token.VALUE_NULL:
                continuous = parse_continuous(parser)
        elif field_name == STATUS_FIELD:
            status = _parse_status(parser)
        elif field_name == FAILURE_REASON_FIELD:
            failure_reason = parser.text_or_null()
        elif field_name == STATS_FIELD:
            if parser.current_token is not Token.VALUE_NULL:
                stats = parse_stats(parser)
        else:
            _skip_field(parser, field_name, _METADATA_ENTITY)

    return RollupMetadata(
        id=id,
        seq_no=seq_no,
        primary_term=primary_term,
        rollup_id=_require(rollup_id, ROLLUP_ID_FIELD, _METADATA_ENTITY),
        after_key=after_key,
        last_updated_time=_require(
            last_updated_time, LAST_UPDATED_FIELD, _METADATA_ENTITY
        ),
        continuous=continuous,
        status=_require(status, STATUS_FIELD, _METADATA_ENTITY),
        failure_reason=failure_reason,
        stats=_require(stats, STATS_FIELD, _METADATA_ENTITY),
    )


def parse_wrapped_metadata(
    parser: DocumentParser,
    *,
    id: str = NO_ID,
    seq_no: int = UNASSIGNED_SEQ_NO,
    primary_term: int = UNASSIGNED_PRIMARY_TERM,
) -> RollupMetadata:
    """Parse metadata nested under the ``rollup_metadata`` type key."""

    parser.ensure_expected_token(Token.START_OBJECT)
    parser.next_token()
    parser.ensure_expected_token(Token.FIELD_NAME)
    if parser.current_name() != ROLLUP_METADATA_TYPE:
        raise UnexpectedTokenError(ROLLUP_METADATA_TYPE, parser.current_name())
    parser.next_token()
    metadata = parse_metadata(parser, id=id, seq_no=seq_no, primary_term=primary_term)
    parser.next_token()
    parser.ensure_expected_token(Token.END_OBJECT)
    return metadata


def _parse_root(
    parser: DocumentParser,
    *,
    with_type: bool,
    id: str,
    seq_no: int,
    primary_term: int,
) -> RollupMetadata:
    parser.next_token()
    parse = parse_wrapped_metadata if with_type else parse_metadata
    return parse(parser, id=id, seq_no=seq_no, primary_term=primary_term)


def metadata_from_document(
    document: Mapping[str, Any],
    *,
    with_type: bool = False,
    id: str = NO_ID,
    seq_no: int = UNASSIGNED_SEQ_NO,
    primary_term: int = UNASSIGNED_PRIMARY_TERM,
) -> RollupMetadata:
    return _parse_root(
        DocumentParser.from_document(document),
        with_type=with_type,
        id=id,
        seq_no=seq_no,
        primary_term=primary_term,
    )


def metadata_from_json(
    text: str | bytes,
    *,
    with_type: bool = False,
    id: str = NO_ID,
    seq_no: int = UNASSIGNED_SEQ_NO,
    primary_term: int = UNASSIGNED_PRIMARY_TERM,
) -> RollupMetadata:
    return _parse_root(
        DocumentParser.from_json(text),
        with_type=with_type,
        id=id,
        seq_no=seq_no,
        primary_term=primary_term,
    )


__all__ = [
    "continuous_to_document",
    "metadata_from_document",
    "metadata_from_json",
    "metadata_to_document",
    "metadata_to_json",
    "parse_continuous",
    "parse_metadata",
    "parse_stats",
    "parse_wrapped_metadata",
    "stats_to_document",
    "write_continuous_document",
    "write_metadata_document",
    "write_stats_document",
]
