"""Positional big-endian stream primitives for the binary codec."""

from __future__ import annotations

import struct
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from io import BytesIO
from typing import Any, Final

from rollup_tracker.errors import MalformedStreamError
from rollup_tracker.utils.timestamps import from_epoch_parts, to_epoch_parts

_BYTE: Final[struct.Struct] = struct.Struct(">b")
_INT: Final[struct.Struct] = struct.Struct(">i")
_LONG: Final[struct.Struct] = struct.Struct(">q")
_UNSIGNED_LONG: Final[struct.Struct] = struct.Struct(">Q")
_DOUBLE: Final[struct.Struct] = struct.Struct(">d")

MAX_VINT_BYTES: Final[int] = 5

# Generic value type markers.
TYPE_NULL: Final[int] = -1
TYPE_STRING: Final[int] = 0
TYPE_LONG: Final[int] = 2
TYPE_DOUBLE: Final[int] = 4
TYPE_BOOLEAN: Final[int] = 5
TYPE_BYTES: Final[int] = 6
TYPE_LIST: Final[int] = 7
TYPE_MAP: Final[int] = 9


class StreamOutput:
    """In-memory writer producing the compact positional encoding."""

    def __init__(self) -> None:
        self._buffer = BytesIO()

    def bytes(self) -> bytes:
        return self._buffer.getvalue()

    def write_byte(self, value: int) -> None:
        self._buffer.write(_BYTE.pack(value))

    def write_boolean(self, value: bool) -> None:
        self.write_byte(1 if value else 0)

    def write_int(self, value: int) -> None:
        self._buffer.write(_INT.pack(value))

    def write_long(self, value: int) -> None:
        try:
            self._buffer.write(_LONG.pack(value))
        except struct.error as exc:
            raise ValueError(f"{value} does not fit a signed 64-bit long") from exc

    def write_unsigned_long(self, value: int) -> None:
        try:
            self._buffer.write(_UNSIGNED_LONG.pack(value))
        except struct.error as exc:
            raise ValueError(f"{value} does not fit an unsigned 64-bit long") from exc

    def write_double(self, value: float) -> None:
        self._buffer.write(_DOUBLE.pack(value))

    def write_vint(self, value: int) -> None:
        if value < 0 or value >= 1 << (7 * MAX_VINT_BYTES - 3):
            raise ValueError(f"{value} cannot be written as a vint")
        while value >= 0x80:
            self._buffer.write(bytes(((value & 0x7F) | 0x80,)))
            value >>= 7
        self._buffer.write(bytes((value,)))

    def write_bytes(self, value: bytes) -> None:
        self.write_vint(len(value))
        self._buffer.write(value)

    def write_string(self, value: str) -> None:
        self.write_bytes(value.encode("utf-8"))

    def write_optional_string(self, value: str | None) -> None:
        self.write_boolean(value is not None)
        if value is not None:
            self.write_string(value)

    def write_instant(self, value: datetime) -> None:
        seconds, nanos = to_epoch_parts(value)
        self.write_long(seconds)
        self.write_int(nanos)

    def write_enum(self, value: Enum) -> None:
        self.write_vint(list(type(value)).index(value))

    def write_map(self, value: Mapping[str, Any]) -> None:
        self.write_vint(len(value))
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"Map keys must be strings, got {key!r}")
            self.write_string(key)
            self.write_generic_value(item)

    def write_generic_value(self, value: Any) -> None:
        if value is None:
            self.write_byte(TYPE_NULL)
        elif isinstance(value, str):
            self.write_byte(TYPE_STRING)
            self.write_string(value)
        elif isinstance(value, bool):
            self.write_byte(TYPE_BOOLEAN)
            self.write_boolean(value)
        elif isinstance(value, int):
            self.write_byte(TYPE_LONG)
            self.write_long(value)
        elif isinstance(value, float):
            self.write_byte(TYPE_DOUBLE)
            self.write_double(value)
        elif isinstance(value, (bytes, bytearray)):
            self.write_byte(TYPE_BYTES)
            self.write_bytes(bytes(value))
        elif isinstance(value, (list, tuple)):
            self.write_byte(TYPE_LIST)
            self.write_vint(len(value))
            for item in value:
                self.write_generic_value(item)
        elif isinstance(value, Mapping):
            self.write_byte(TYPE_MAP)
            self.write_map(value)
        else:
            raise TypeError(f"Cannot write generic value of type {type(value).__name__}")


class StreamInput:
    """Reader over a buffer written by :class:`StreamOutput`."""

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(data)
        self._position = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._position

    def ensure_fully_consumed(self) -> None:
        if self.remaining:
            raise MalformedStreamError(
                f"{self.remaining} unexpected trailing bytes at offset {self._position}"
            )

    def _read(self, size: int) -> bytes:
        if size > self.remaining:
            raise MalformedStreamError(
                f"Truncated stream: needed {size} bytes at offset {self._position}, "
                f"{self.remaining} available"
            )
        chunk = self._data[self._position : self._position + size].tobytes()
        self._position += size
        return chunk

    def read_byte(self) -> int:
        return int(_BYTE.unpack(self._read(1))[0])

    def read_boolean(self) -> bool:
        value = self.read_byte()
        if value not in (0, 1):
            raise MalformedStreamError(f"Invalid boolean byte {value}")
        return value == 1

    def read_int(self) -> int:
        return int(_INT.unpack(self._read(4))[0])

    def read_long(self) -> int:
        return int(_LONG.unpack(self._read(8))[0])

    def read_unsigned_long(self) -> int:
        return int(_UNSIGNED_LONG.unpack(self._read(8))[0])

    def read_double(self) -> float:
        return float(_DOUBLE.unpack(self._read(8))[0])

    def read_vint(self) -> int:
        value = 0
        for index in range(MAX_VINT_BYTES):
            current = self._read(1)[0]
            value |= (current & 0x7F) << (7 * index)
            if not current & 0x80:
                return value
        raise MalformedStreamError(f"vint longer than {MAX_VINT_BYTES} bytes")

    def read_bytes(self) -> bytes:
        return self._read(self.read_vint())

    def read_string(self) -> str:
        raw = self.read_bytes()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedStreamError(f"Invalid UTF-8 string: {exc}") from exc

    def read_optional_string(self) -> str | None:
        if self.read_boolean():
            return self.read_string()
        return None

    def read_instant(self) -> datetime:
        seconds = self.read_long()
        nanos = self.read_int()
        if not 0 <= nanos < 1_000_000_000:
            raise MalformedStreamError(f"Invalid nanosecond adjustment {nanos}")
        try:
            return from_epoch_parts(seconds, nanos)
        except (OverflowError, ValueError) as exc:
            raise MalformedStreamError(
                f"Instant of {seconds} epoch seconds is out of range"
            ) from exc

    def read_map(self) -> dict[str, Any]:
        size = self.read_vint()
        result: dict[str, Any] = {}
        for _ in range(size):
            key = self.read_string()
            result[key] = self.read_generic_value()
        return result

    def read_generic_value(self) -> Any:
        marker = self.read_byte()
        if marker == TYPE_NULL:
            return None
        if marker == TYPE_STRING:
            return self.read_string()
        if marker == TYPE_BOOLEAN:
            return self.read_boolean()
        if marker == TYPE_LONG:
            return self.read_long()
        if marker == TYPE_DOUBLE:
            return self.read_double()
        if marker == TYPE_BYTES:
            return self.read_bytes()
        if marker == TYPE_LIST:
            return [self.read_generic_value() for _ in range(self.read_vint())]
        if marker == TYPE_MAP:
            return self.read_map()
        raise MalformedStreamError(f"Unknown generic value type {marker}")


__all__ = [
    "StreamInput",
    "StreamOutput",
]
