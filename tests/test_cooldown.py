# tests/test_cooldown.py
"""Tests for the cooldown window policy."""

from datetime import UTC, datetime, timedelta

import pytest

from zen_rewards.core.cooldown import check_cooldown, cooldown_end
from zen_rewards.db.time import to_iso

NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=UTC)


@pytest.mark.parametrize("value", [None, "", "not-a-date", "2025-13-45T00:00:00Z"])
def test_missing_or_unreadable_cooldown_allows_play(value) -> None:
    status = check_cooldown(value, NOW)
    assert status.can_play
    assert status.cooldown_ends_at is None
    assert status.remaining_ms == 0


def test_future_cooldown_blocks_play() -> None:
    ends_at = NOW + timedelta(hours=3)
    status = check_cooldown(to_iso(ends_at), NOW)
    assert not status.can_play
    assert status.cooldown_ends_at == ends_at
    assert status.remaining_ms == 3 * 60 * 60 * 1000


def test_window_is_open_exactly_at_its_end() -> None:
    """The cooldown end instant itself is playable."""
    assert check_cooldown(to_iso(NOW), NOW).can_play
    assert not check_cooldown(NOW + timedelta(milliseconds=1), NOW).can_play


def test_past_cooldown_allows_play() -> None:
    assert check_cooldown(NOW - timedelta(seconds=1), NOW).can_play


def test_naive_timestamp_is_read_as_utc() -> None:
    status = check_cooldown("2025-03-01T13:00:00", NOW)
    assert not status.can_play
    assert status.remaining_ms == 3_600_000


def test_cooldown_end_adds_the_window() -> None:
    assert cooldown_end(NOW, 86_400) == NOW + timedelta(days=1)
