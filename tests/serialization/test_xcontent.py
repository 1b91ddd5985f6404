"""Tests for document building and token-stream parsing."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from rollup_tracker.errors import UnexpectedTokenError
from rollup_tracker.serialization.xcontent import (
    DocumentBuilder,
    DocumentParser,
    Token,
    tokenize,
)


def test_builder_writes_nested_objects_in_order() -> None:
    builder = DocumentBuilder()
    builder.start_object().field("name", "hourly").start_object("inner").field(
        "count", 3
    ).end_object().field("tags", ("a", "b")).end_object()

    document = builder.build()

    assert document == {"name": "hourly", "inner": {"count": 3}, "tags": ["a", "b"]}
    assert list(document) == ["name", "inner", "tags"]


def test_builder_time_field_writes_iso_and_millis() -> None:
    instant = datetime(2026, 10, 18, 12, 0, 0, 123456, tzinfo=UTC)
    builder = DocumentBuilder().start_object()
    builder.time_field("updated", "updated_in_millis", instant).end_object()

    document = builder.build()

    assert document["updated"] == "2026-10-18T12:00:00.123456Z"
    assert document["updated_in_millis"] == 1_792_324_800_123


def test_builder_rejects_incomplete_documents() -> None:
    builder = DocumentBuilder().start_object()

    with pytest.raises(ValueError):
        builder.build()


def test_builder_requires_names_for_nested_objects() -> None:
    builder = DocumentBuilder().start_object()

    with pytest.raises(ValueError):
        builder.start_object()


def test_tokenize_walks_document_depth_first() -> None:
    tokens = list(tokenize({"a": [1, None], "b": {"c": True}}))

    assert tokens == [
        (Token.START_OBJECT, None),
        (Token.FIELD_NAME, "a"),
        (Token.START_ARRAY, None),
        (Token.VALUE_NUMBER, 1),
        (Token.VALUE_NULL, None),
        (Token.END_ARRAY, None),
        (Token.FIELD_NAME, "b"),
        (Token.START_OBJECT, None),
        (Token.FIELD_NAME, "c"),
        (Token.VALUE_BOOLEAN, True),
        (Token.END_OBJECT, None),
        (Token.END_OBJECT, None),
    ]


def test_parser_reads_maps_and_tracks_field_names() -> None:
    parser = DocumentParser.from_json('{"key": {"host": "web-1", "ids": [1, 2]}}')

    assert parser.next_token() is Token.START_OBJECT
    assert parser.next_token() is Token.FIELD_NAME
    assert parser.current_name() == "key"
    assert parser.next_token() is Token.START_OBJECT
    assert parser.map() == {"host": "web-1", "ids": [1, 2]}
    assert parser.current_token is Token.END_OBJECT
    assert parser.next_token() is Token.END_OBJECT
    assert parser.next_token() is None


def test_parser_skip_children_jumps_past_nested_containers() -> None:
    parser = DocumentParser.from_document(
        {"skip": {"a": [1, {"b": 2}]}, "keep": "value"}
    )
    parser.next_token()
    parser.next_token()
    parser.next_token()

    parser.skip_children()

    assert parser.current_token is Token.END_OBJECT
    assert parser.next_token() is Token.FIELD_NAME
    assert parser.current_name() == "keep"
    parser.next_token()
    assert parser.text() == "value"


def test_parser_scalar_accessors() -> None:
    parser = DocumentParser.from_document({"n": "42"})
    parser.next_token()
    parser.next_token()
    parser.next_token()

    assert parser.long_value() == 42

    fractional = DocumentParser([(Token.VALUE_NUMBER, 1.5)])
    fractional.next_token()
    with pytest.raises(UnexpectedTokenError):
        fractional.long_value()


def test_parser_instant_accepts_iso_strings_and_epoch_millis() -> None:
    parser = DocumentParser(
        [
            (Token.VALUE_STRING, "2026-10-18T12:00:00.123456Z"),
            (Token.VALUE_NUMBER, 1_792_324_800_123),
            (Token.VALUE_NULL, None),
        ]
    )

    parser.next_token()
    assert parser.instant() == datetime(2026, 10, 18, 12, 0, 0, 123456, tzinfo=UTC)
    parser.next_token()
    assert parser.instant() == datetime(2026, 10, 18, 12, 0, 0, 123000, tzinfo=UTC)
    parser.next_token()
    assert parser.instant() is None


def test_parser_text_rejects_non_string_tokens() -> None:
    parser = DocumentParser([(Token.VALUE_NUMBER, 5)])
    parser.next_token()

    with pytest.raises(UnexpectedTokenError) as exc_info:
        parser.text()

    assert exc_info.value.expected is Token.VALUE_STRING
    assert exc_info.value.actual is Token.VALUE_NUMBER


def test_parser_rejects_malformed_instant_text() -> None:
    parser = DocumentParser([(Token.VALUE_STRING, "yesterday")])
    parser.next_token()

    with pytest.raises(UnexpectedTokenError):
        parser.instant()
