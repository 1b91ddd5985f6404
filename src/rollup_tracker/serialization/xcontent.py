"""Field-tagged document building and token-stream parsing."""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from rollup_tracker.errors import UnexpectedTokenError
from rollup_tracker.utils.timestamps import (
    format_instant,
    from_epoch_millis,
    parse_instant,
    to_epoch_millis,
)


class Token(Enum):
    """Token kinds produced while walking a structured document."""

    START_OBJECT = "start_object"
    END_OBJECT = "end_object"
    START_ARRAY = "start_array"
    END_ARRAY = "end_array"
    FIELD_NAME = "field_name"
    VALUE_STRING = "value_string"
    VALUE_NUMBER = "value_number"
    VALUE_BOOLEAN = "value_boolean"
    VALUE_NULL = "value_null"

    @property
    def is_value(self) -> bool:
        return self in _VALUE_TOKENS


_VALUE_TOKENS = frozenset(
    {Token.VALUE_STRING, Token.VALUE_NUMBER, Token.VALUE_BOOLEAN, Token.VALUE_NULL}
)

TokenEvent = tuple[Token, Any]


def tokenize(value: Any) -> Iterator[TokenEvent]:
    """Walk a decoded document depth-first, yielding ``(token, value)`` pairs."""

    if isinstance(value, Mapping):
        yield Token.START_OBJECT, None
        for key, item in value.items():
            yield Token.FIELD_NAME, str(key)
            yield from tokenize(item)
        yield Token.END_OBJECT, None
    elif isinstance(value, (list, tuple)):
        yield Token.START_ARRAY, None
        for item in value:
            yield from tokenize(item)
        yield Token.END_ARRAY, None
    elif value is None:
        yield Token.VALUE_NULL, None
    elif isinstance(value, bool):
        yield Token.VALUE_BOOLEAN, value
    elif isinstance(value, (int, float)):
        yield Token.VALUE_NUMBER, value
    elif isinstance(value, str):
        yield Token.VALUE_STRING, value
    else:
        raise TypeError(f"Cannot tokenize value of type {type(value).__name__}")


class DocumentBuilder:
    """Build an ordered document one object and field at a time."""

    def __init__(self) -> None:
        self._root: dict[str, Any] | None = None
        self._stack: list[dict[str, Any]] = []
        self._pending_name: str | None = None

    def start_object(self, name: str | None = None) -> DocumentBuilder:
        if name is not None:
            self.field_name(name)

        new_object: dict[str, Any] = {}
        if not self._stack:
            if self._root is not None:
                raise ValueError("Document already has a root object")
            self._root = new_object
        else:
            if self._pending_name is None:
                raise ValueError("Nested objects require a field name")
            self._stack[-1][self._pending_name] = new_object
            self._pending_name = None

        self._stack.append(new_object)
        return self

    def end_object(self) -> DocumentBuilder:
        if not self._stack:
            raise ValueError("end_object() called without an open object")
        if self._pending_name is not None:
            raise ValueError(f"Field {self._pending_name!r} has no value")
        self._stack.pop()
        return self

    def field_name(self, name: str) -> DocumentBuilder:
        if not self._stack:
            raise ValueError("Fields must be written inside an object")
        self._pending_name = name
        return self

    def field(self, name: str, value: Any) -> DocumentBuilder:
        self.field_name(name)
        self._stack[-1][name] = _plain_value(value)
        self._pending_name = None
        return self

    def time_field(
        self, name: str, millis_name: str, instant: datetime
    ) -> DocumentBuilder:
        self.field(name, format_instant(instant))
        self.field(millis_name, to_epoch_millis(instant))
        return self

    def build(self) -> dict[str, Any]:
        if self._root is None or self._stack:
            raise ValueError("Document is incomplete")
        return self._root

    def to_json(self) -> str:
        return json.dumps(self.build())


def _plain_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {str(key): _plain_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain_value(item) for item in value]
    return value


class DocumentParser:
    """Pull parser over a stream of document tokens.

    The cursor starts before the first token; call :meth:`next_token` to move
    onto the opening ``START_OBJECT``.
    """

    def __init__(self, tokens: Iterable[TokenEvent]) -> None:
        self._tokens = iter(tokens)
        self._current_token: Token | None = None
        self._current_value: Any = None
        self._current_name: str | None = None

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> DocumentParser:
        return cls(tokenize(document))

    @classmethod
    def from_json(cls, text: str | bytes) -> DocumentParser:
        return cls(tokenize(json.loads(text)))

    @property
    def current_token(self) -> Token | None:
        return self._current_token

    def next_token(self) -> Token | None:
        try:
            token, value = next(self._tokens)
        except StopIteration:
            self._current_token = None
            self._current_value = None
            return None

        self._current_token = token
        self._current_value = value
        if token is Token.FIELD_NAME:
            self._current_name = value
        return token

    def current_name(self) -> str | None:
        return self._current_name

    def ensure_expected_token(self, expected: Token) -> None:
        if self._current_token is not expected:
            raise UnexpectedTokenError(expected, self._current_token)

    def value(self) -> Any:
        """Return the current scalar value, or the token itself for structure."""

        if self._current_token is not None and self._current_token.is_value:
            return self._current_value
        return self._current_token

    def text(self) -> str:
        self.ensure_expected_token(Token.VALUE_STRING)
        return str(self._current_value)

    def text_or_null(self) -> str | None:
        if self._current_token is Token.VALUE_NULL:
            return None
        return self.text()

    def long_value(self) -> int:
        value = self._current_value
        if self._current_token is Token.VALUE_NUMBER:
            if isinstance(value, float) and not value.is_integer():
                raise UnexpectedTokenError("integral number", value)
            return int(value)
        if self._current_token is Token.VALUE_STRING:
            try:
                return int(value)
            except ValueError as exc:
                raise UnexpectedTokenError("integral number", value) from exc
        raise UnexpectedTokenError(Token.VALUE_NUMBER, self._current_token)

    def instant(self) -> datetime | None:
        """Read an ISO-8601 string or epoch millis number as an instant."""

        if self._current_token is Token.VALUE_NULL:
            return None
        if self._current_token is Token.VALUE_NUMBER:
            millis = self.long_value()
            try:
                return from_epoch_millis(millis)
            except (OverflowError, ValueError) as exc:
                raise UnexpectedTokenError("epoch millis instant", millis) from exc
        if self._current_token is Token.VALUE_STRING:
            try:
                return parse_instant(self._current_value)
            except ValueError as exc:
                raise UnexpectedTokenError(
                    "ISO-8601 instant", self._current_value
                ) from exc
        raise UnexpectedTokenError(Token.VALUE_STRING, self._current_token)

    def map(self) -> dict[str, Any]:
        self.ensure_expected_token(Token.START_OBJECT)
        result: dict[str, Any] = {}
        while self.next_token() is not Token.END_OBJECT:
            self.ensure_expected_token(Token.FIELD_NAME)
            key = str(self._current_value)
            self.next_token()
            result[key] = self._read_value()
        return result

    def map_or_null(self) -> dict[str, Any] | None:
        if self._current_token is Token.VALUE_NULL:
            return None
        return self.map()

    def skip_children(self) -> None:
        if self._current_token not in (Token.START_OBJECT, Token.START_ARRAY):
            return

        depth = 1
        while depth:
            token = self.next_token()
            if token is None:
                raise UnexpectedTokenError("end of container", None)
            if token in (Token.START_OBJECT, Token.START_ARRAY):
                depth += 1
            elif token in (Token.END_OBJECT, Token.END_ARRAY):
                depth -= 1

    def _read_value(self) -> Any:
        token = self._current_token
        if token is Token.START_OBJECT:
            return self.map()
        if token is Token.START_ARRAY:
            items: list[Any] = []
            while self.next_token() is not Token.END_ARRAY:
                items.append(self._read_value())
            return items
        if token is not None and token.is_value:
            return self._current_value
        raise UnexpectedTokenError("value", token)


__all__ = [
    "DocumentBuilder",
    "DocumentParser",
    "Token",
    "tokenize",
]
