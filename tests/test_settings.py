# tests/test_settings.py
"""Tests for environment-driven settings."""

import pytest
from pydantic import ValidationError

from zen_rewards.core.deck import CARD_SYMBOLS
from zen_rewards.core.settings import Settings


def test_pair_count_can_use_every_symbol() -> None:
    assert Settings(GAME_PAIR_COUNT=len(CARD_SYMBOLS)).game_pair_count == len(CARD_SYMBOLS)


@pytest.mark.parametrize("pair_count", [0, len(CARD_SYMBOLS) + 1])
def test_pair_count_outside_the_symbol_set_is_rejected(pair_count: int) -> None:
    with pytest.raises(ValidationError):
        Settings(GAME_PAIR_COUNT=pair_count)


def test_points_cycle_defaults_to_thirty_days() -> None:
    assert Settings().zen_points_cycle_days == 30
    with pytest.raises(ValidationError):
        Settings(ZEN_POINTS_CYCLE_DAYS=0)
