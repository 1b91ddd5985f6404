"""Tests for the rollup status lifecycle values."""

from __future__ import annotations

import pytest

from rollup_tracker.errors import MalformedStreamError, UnrecognizedStatusError
from rollup_tracker.models import RollupStatus


@pytest.mark.parametrize("status", list(RollupStatus))
def test_status_token_round_trips(status: RollupStatus) -> None:
    assert RollupStatus.from_token(str(status)) is status


def test_status_tokens_and_ordinals_follow_declaration_order() -> None:
    assert [str(status) for status in RollupStatus] == [
        "init",
        "started",
        "stopped",
        "finished",
        "failed",
        "retry",
    ]
    assert [status.ordinal for status in RollupStatus] == [0, 1, 2, 3, 4, 5]
    assert RollupStatus.from_ordinal(4) is RollupStatus.FAILED


def test_from_token_matches_case_insensitively() -> None:
    assert RollupStatus.from_token("STARTED") is RollupStatus.STARTED
    assert RollupStatus.from_token("Retry") is RollupStatus.RETRY


@pytest.mark.parametrize("token", ["BOGUS", "", "in it", 3, None])
def test_from_token_rejects_unknown_tokens(token: object) -> None:
    with pytest.raises(UnrecognizedStatusError) as exc_info:
        RollupStatus.from_token(token)

    assert exc_info.value.token == token
    assert isinstance(exc_info.value, ValueError)


@pytest.mark.parametrize("ordinal", [-1, 6, 200])
def test_from_ordinal_rejects_out_of_range_values(ordinal: int) -> None:
    with pytest.raises(MalformedStreamError):
        RollupStatus.from_ordinal(ordinal)
