"""Instant helpers shared by the models and both codecs."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Final

EPOCH: Final[datetime] = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MILLISECOND: Final[timedelta] = timedelta(milliseconds=1)


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""

    if not isinstance(value, datetime):
        raise TypeError(f"Expected a datetime, got {value!r}")
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def to_epoch_millis(value: datetime) -> int:
    return (ensure_utc(value) - EPOCH) // _ONE_MILLISECOND


def from_epoch_millis(millis: int) -> datetime:
    return EPOCH + timedelta(milliseconds=millis)


def to_epoch_parts(value: datetime) -> tuple[int, int]:
    """Split an instant into epoch seconds and nanoseconds of that second."""

    delta = ensure_utc(value) - EPOCH
    seconds = delta.days * 86_400 + delta.seconds
    return seconds, delta.microseconds * 1_000


def from_epoch_parts(seconds: int, nanos: int) -> datetime:
    return EPOCH + timedelta(seconds=seconds, microseconds=nanos // 1_000)


def format_instant(value: datetime) -> str:
    """Render an instant as ISO-8601 with a ``Z`` suffix."""

    return (
        ensure_utc(value).isoformat(timespec="microseconds").replace("+00:00", "Z")
    )


def parse_instant(text: str) -> datetime:
    return ensure_utc(datetime.fromisoformat(text.strip()))


__all__ = [
    "EPOCH",
    "ensure_utc",
    "format_instant",
    "from_epoch_millis",
    "from_epoch_parts",
    "parse_instant",
    "to_epoch_millis",
    "to_epoch_parts",
]
