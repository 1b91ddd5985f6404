"""Error types raised while encoding, decoding and persisting rollup metadata."""

from __future__ import annotations

from typing import Any


class RollupMetadataError(Exception):
    """Base exception for rollup metadata failures."""


class MissingRequiredFieldError(RollupMetadataError):
    """Raised when a parsed document ends without a required field."""

    def __init__(self, field_name: str, entity: str) -> None:
        self.field_name = field_name
        self.entity = entity
        super().__init__(f"{field_name} must not be null for {entity}")


class UnrecognizedStatusError(RollupMetadataError, ValueError):
    """Raised when a status token matches none of the declared statuses."""

    def __init__(self, token: Any) -> None:
        self.token = token
        super().__init__(f"Unrecognized rollup metadata status: {token!r}")


class UnexpectedTokenError(RollupMetadataError):
    """Raised when a document token stream does not have the expected shape."""

    def __init__(self, expected: Any, actual: Any) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected token {expected} but found {actual}")


class MalformedStreamError(RollupMetadataError):
    """Raised when a binary stream is truncated or carries invalid data."""


class StaleVersionError(RollupMetadataError):
    """Raised when a write references an outdated seq_no/primary_term pair."""

    def __init__(
        self,
        metadata_id: str,
        *,
        seq_no: int,
        primary_term: int,
        current_seq_no: int | None,
        current_primary_term: int | None,
    ) -> None:
        self.metadata_id = metadata_id
        self.seq_no = seq_no
        self.primary_term = primary_term
        self.current_seq_no = current_seq_no
        self.current_primary_term = current_primary_term
        super().__init__(
            f"Version conflict for rollup metadata {metadata_id!r}: "
            f"expected seq_no={seq_no} primary_term={primary_term}, "
            f"current seq_no={current_seq_no} primary_term={current_primary_term}"
        )


__all__ = [
    "MalformedStreamError",
    "MissingRequiredFieldError",
    "RollupMetadataError",
    "StaleVersionError",
    "UnexpectedTokenError",
    "UnrecognizedStatusError",
]
