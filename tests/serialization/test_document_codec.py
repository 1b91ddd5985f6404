"""Tests for the field-tagged document encoding of rollup metadata."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

import pytest

from rollup_tracker.errors import (
    MissingRequiredFieldError,
    UnexpectedTokenError,
    UnrecognizedStatusError,
)
from rollup_tracker.models import (
    ContinuousMetadata,
    RollupMetadata,
    RollupStats,
    RollupStatus,
)
from rollup_tracker.serialization.document import (
    continuous_to_document,
    metadata_from_document,
    metadata_from_json,
    metadata_to_document,
    metadata_to_json,
    parse_stats,
    stats_to_document,
)
from rollup_tracker.serialization.xcontent import DocumentParser
from rollup_tracker.utils.timestamps import parse_instant, to_epoch_millis


def _full_metadata() -> RollupMetadata:
    return RollupMetadata(
        rollup_id="hourly-rollup",
        after_key={"timestamp": 1_760_000_000_000, "host": "web-1"},
        last_updated_time=datetime(2026, 10, 18, 12, 30, 45, 123456, tzinfo=UTC),
        continuous=ContinuousMetadata(
            next_window_start_time=datetime(2026, 10, 18, 12, 0, tzinfo=UTC),
            next_window_end_time=datetime(2026, 10, 18, 13, 0, tzinfo=UTC),
        ),
        status=RollupStatus.STARTED,
        failure_reason=None,
        stats=RollupStats(
            pages_processed=3,
            documents_processed=17,
            rollups_indexed=5,
            index_time_in_millis=40,
            search_time_in_millis=150,
        ),
    )


def _minimal_metadata() -> RollupMetadata:
    return RollupMetadata.initial(
        "daily-rollup", now=datetime(2026, 10, 18, tzinfo=UTC)
    )


def _parse(document: dict[str, Any], **kwargs: Any) -> RollupMetadata:
    return metadata_from_document(document, **kwargs)


def test_full_metadata_round_trips() -> None:
    metadata = _full_metadata()

    assert _parse(metadata_to_document(metadata)) == metadata


def test_minimal_metadata_round_trips_with_absent_fields() -> None:
    metadata = _minimal_metadata()

    parsed = _parse(metadata_to_document(metadata))

    assert parsed == metadata
    assert parsed.after_key is None
    assert parsed.continuous is None
    assert parsed.failure_reason is None


def test_json_text_round_trips() -> None:
    metadata = _full_metadata().copy(
        status=RollupStatus.FAILED, failure_reason="search phase failed"
    )

    text = metadata_to_json(metadata)

    assert json.loads(text)["failure_reason"] == "search phase failed"
    assert metadata_from_json(text) == metadata


def test_document_keys_follow_declared_order() -> None:
    document = metadata_to_document(_full_metadata())

    assert list(document) == [
        "rollup_id",
        "after_key",
        "last_updated_time",
        "last_updated_time_in_millis",
        "continuous",
        "status",
        "failure_reason",
        "stats",
    ]
    assert document["status"] == "started"
    assert list(document["stats"]) == [
        "pages_processed",
        "documents_processed",
        "rollups_indexed",
        "index_time_in_millis",
        "search_time_in_millis",
    ]


def test_null_optionals_are_omitted_except_failure_reason() -> None:
    document = metadata_to_document(_minimal_metadata())

    assert "after_key" not in document
    assert "continuous" not in document
    assert "failure_reason" in document
    assert document["failure_reason"] is None


def test_storage_tokens_are_not_part_of_document_but_pass_through_parse() -> None:
    metadata = _full_metadata().copy(id="meta-1", seq_no=4, primary_term=2)

    document = metadata_to_document(metadata)
    parsed = _parse(document, id="meta-1", seq_no=4, primary_term=2)

    assert "id" not in document
    assert "seq_no" not in document
    assert parsed == metadata


def test_wrapped_encoding_nests_unwrapped_document() -> None:
    metadata = _full_metadata()

    wrapped = metadata_to_document(metadata, with_type=True)

    assert list(wrapped) == ["rollup_metadata"]
    assert wrapped["rollup_metadata"] == metadata_to_document(metadata)
    assert _parse(wrapped, with_type=True) == metadata


def test_wrapped_parse_rejects_unwrapped_document() -> None:
    with pytest.raises(UnexpectedTokenError):
        _parse(metadata_to_document(_full_metadata()), with_type=True)


def test_stats_and_continuous_never_wrap() -> None:
    metadata = _full_metadata()
    assert metadata.continuous is not None

    assert list(stats_to_document(metadata.stats))[0] == "pages_processed"
    assert list(continuous_to_document(metadata.continuous)) == [
        "next_window_start_time",
        "next_window_start_time_in_millis",
        "next_window_end_time",
        "next_window_end_time_in_millis",
    ]


def test_timestamp_pairs_agree_on_epoch_millis() -> None:
    document = metadata_to_document(_full_metadata())
    continuous = document["continuous"]

    pairs = [
        (document, "last_updated_time"),
        (continuous, "next_window_start_time"),
        (continuous, "next_window_end_time"),
    ]
    for container, key in pairs:
        readable = parse_instant(container[key])
        assert container[f"{key}_in_millis"] == to_epoch_millis(readable)

    assert document["last_updated_time"] == "2026-10-18T12:30:45.123456Z"
    assert document["last_updated_time_in_millis"] == 1_792_326_645_123


@pytest.mark.parametrize(
    "field_name", ["rollup_id", "last_updated_time", "status", "stats"]
)
def test_missing_required_field_is_rejected(field_name: str) -> None:
    document = metadata_to_document(_full_metadata())
    del document[field_name]

    with pytest.raises(MissingRequiredFieldError) as exc_info:
        _parse(document)

    assert exc_info.value.field_name == field_name
    assert exc_info.value.entity == "RollupMetadata"
    assert f"{field_name} must not be null" in str(exc_info.value)


@pytest.mark.parametrize("field_name", ["rollup_id", "status", "stats"])
def test_null_required_field_is_rejected(field_name: str) -> None:
    document = metadata_to_document(_full_metadata())
    document[field_name] = None

    with pytest.raises(MissingRequiredFieldError) as exc_info:
        _parse(document)

    assert exc_info.value.field_name == field_name


@pytest.mark.parametrize("field_name", ["after_key", "continuous", "failure_reason"])
def test_missing_optional_field_defaults_to_none(field_name: str) -> None:
    document = metadata_to_document(
        _full_metadata().copy(failure_reason="search phase failed")
    )
    del document[field_name]

    parsed = _parse(document)

    assert getattr(parsed, field_name) is None


@pytest.mark.parametrize(
    "field_name",
    [
        "pages_processed",
        "documents_processed",
        "rollups_indexed",
        "index_time_in_millis",
        "search_time_in_millis",
    ],
)
def test_missing_stats_field_is_rejected(field_name: str) -> None:
    document = stats_to_document(_full_metadata().stats)
    del document[field_name]
    parser = DocumentParser.from_document(document)
    parser.next_token()

    with pytest.raises(MissingRequiredFieldError) as exc_info:
        parse_stats(parser)

    assert exc_info.value.field_name == field_name
    assert exc_info.value.entity == "RollupStats"


@pytest.mark.parametrize(
    "field_name", ["next_window_start_time", "next_window_end_time"]
)
def test_missing_continuous_window_bound_is_rejected(field_name: str) -> None:
    document = metadata_to_document(_full_metadata())
    del document["continuous"][field_name]

    with pytest.raises(MissingRequiredFieldError) as exc_info:
        _parse(document)

    assert exc_info.value.field_name == field_name
    assert exc_info.value.entity == "ContinuousMetadata"


def test_continuous_window_ordering_is_not_validated() -> None:
    metadata = _full_metadata().copy(
        continuous=ContinuousMetadata(
            next_window_start_time=datetime(2026, 10, 18, 13, 0, tzinfo=UTC),
            next_window_end_time=datetime(2026, 10, 18, 12, 0, tzinfo=UTC),
        )
    )

    assert _parse(metadata_to_document(metadata)) == metadata


@pytest.mark.parametrize("status", list(RollupStatus))
def test_every_status_round_trips(status: RollupStatus) -> None:
    metadata = _full_metadata().copy(status=status)

    assert _parse(metadata_to_document(metadata)).status is status


def test_status_token_is_matched_case_insensitively() -> None:
    document = metadata_to_document(_full_metadata())
    document["status"] = "FINISHED"

    assert _parse(document).status is RollupStatus.FINISHED


@pytest.mark.parametrize("token", ["BOGUS", 3, {"state": "init"}])
def test_unrecognized_status_is_rejected(token: Any) -> None:
    document = metadata_to_document(_full_metadata())
    document["status"] = token

    with pytest.raises(UnrecognizedStatusError):
        _parse(document)


def test_unknown_fields_are_skipped() -> None:
    metadata = _full_metadata()
    document = metadata_to_document(metadata)
    document["schema_hint"] = {"nested": [1, {"deep": True}], "other": None}
    document["stats"]["shard_count"] = 12
    document["continuous"]["timezone"] = "UTC"
    document["tags"] = ["a", "b"]

    assert _parse(document) == metadata


def test_epoch_millis_timestamp_is_accepted() -> None:
    document = metadata_to_document(_minimal_metadata())
    document["last_updated_time"] = document["last_updated_time_in_millis"]

    assert _parse(document).last_updated_time == datetime(2026, 10, 18, tzinfo=UTC)


def test_missing_required_field_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    document = metadata_to_document(_full_metadata())
    del document["rollup_id"]

    with caplog.at_level(logging.WARNING, logger="rollup_tracker.document"):
        with pytest.raises(MissingRequiredFieldError):
            _parse(document)

    record = next(
        item
        for item in caplog.records
        if item.getMessage() == "document_required_field_missing"
    )
    assert getattr(record, "field_name") == "rollup_id"
    assert getattr(record, "entity") == "RollupMetadata"


@pytest.mark.parametrize("millis", [10**20, -(10**20), 10**15])
def test_out_of_range_epoch_millis_is_rejected(millis: int) -> None:
    document = metadata_to_document(_full_metadata())
    document["last_updated_time"] = millis

    with pytest.raises(UnexpectedTokenError) as exc_info:
        _parse(document)

    assert exc_info.value.actual == millis


def test_out_of_range_window_bound_is_rejected() -> None:
    document = metadata_to_document(_full_metadata())
    document["continuous"]["next_window_end_time"] = 10**20

    with pytest.raises(UnexpectedTokenError):
        _parse(document)
