"""Lifecycle status for rollup metadata."""

from __future__ import annotations

from enum import Enum
from typing import Any

from rollup_tracker.errors import MalformedStreamError, UnrecognizedStatusError


class RollupStatus(str, Enum):
    """Lifecycle state of a rollup run.

    Declaration order is the binary ordinal. Append new members only.
    """

    INIT = "init"
    STARTED = "started"
    STOPPED = "stopped"
    FINISHED = "finished"
    FAILED = "failed"
    RETRY = "retry"

    def __str__(self) -> str:
        return self.value

    @property
    def ordinal(self) -> int:
        return _ORDINALS[self]

    @classmethod
    def from_token(cls, token: Any) -> RollupStatus:
        """Resolve a document token case-insensitively."""

        if not isinstance(token, str):
            raise UnrecognizedStatusError(token)

        try:
            return cls(token.lower())
        except ValueError as exc:
            raise UnrecognizedStatusError(token) from exc

    @classmethod
    def from_ordinal(cls, ordinal: int) -> RollupStatus:
        members = list(cls)
        if not 0 <= ordinal < len(members):
            raise MalformedStreamError(
                f"Unknown rollup status ordinal {ordinal}, expected 0..{len(members) - 1}"
            )
        return members[ordinal]


_ORDINALS: dict[RollupStatus, int] = {
    status: index for index, status in enumerate(RollupStatus)
}


__all__ = ["RollupStatus"]
