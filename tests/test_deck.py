# tests/test_deck.py
"""Tests for deck generation and structural integrity checks."""

import random
from collections import Counter

import pytest

from zen_rewards.core.deck import CARD_SYMBOLS, Card, generate_deck, is_pair_complete


def test_generated_deck_has_two_cards_per_pair() -> None:
    deck = generate_deck(9)
    assert len(deck) == 18
    assert set(Counter(card.pair_id for card in deck).values()) == {2}
    assert len({card.id for card in deck}) == 18
    assert is_pair_complete(deck, 9)


def test_pairs_share_a_symbol_and_symbols_are_distinct() -> None:
    deck = generate_deck(6)
    by_pair: dict[str, set[str]] = {}
    for card in deck:
        by_pair.setdefault(card.pair_id, set()).add(card.symbol)
    assert all(len(symbols) == 1 for symbols in by_pair.values())
    assert len({next(iter(s)) for s in by_pair.values()}) == 6
    assert all(card.symbol in CARD_SYMBOLS for card in deck)


def test_card_ids_follow_pair_naming() -> None:
    deck = generate_deck(3)
    ids = sorted(card.id for card in deck)
    assert ids == ["card_0_a", "card_0_b", "card_1_a", "card_1_b", "card_2_a", "card_2_b"]


def test_seeded_rng_is_reproducible() -> None:
    assert generate_deck(9, random.Random(7)) == generate_deck(9, random.Random(7))


def test_full_vocabulary_deck() -> None:
    deck = generate_deck(len(CARD_SYMBOLS))
    assert {card.symbol for card in deck} == set(CARD_SYMBOLS)


@pytest.mark.parametrize("pair_count", [0, -1, len(CARD_SYMBOLS) + 1])
def test_pair_count_out_of_range(pair_count: int) -> None:
    with pytest.raises(ValueError):
        generate_deck(pair_count)


class TestIsPairComplete:
    """Structural checks the verifier runs on a returned deck."""

    def _deck(self) -> list[Card]:
        return [
            Card("card_0_a", "pair_0", "lotus"),
            Card("card_0_b", "pair_0", "lotus"),
            Card("card_1_a", "pair_1", "moon"),
            Card("card_1_b", "pair_1", "moon"),
        ]

    def test_valid(self) -> None:
        assert is_pair_complete(self._deck(), 2)

    def test_wrong_length(self) -> None:
        assert not is_pair_complete(self._deck()[:3], 2)
        assert not is_pair_complete(self._deck(), 3)

    def test_duplicate_card_id(self) -> None:
        deck = self._deck()
        deck[1] = Card("card_0_a", "pair_0", "lotus")
        assert not is_pair_complete(deck, 2)

    def test_pair_with_three_cards(self) -> None:
        deck = self._deck()
        deck[3] = Card("card_1_b", "pair_0", "lotus")
        assert not is_pair_complete(deck, 2)

    def test_mismatched_symbols_within_pair(self) -> None:
        deck = self._deck()
        deck[1] = Card("card_0_b", "pair_0", "tea")
        assert not is_pair_complete(deck, 2)

    def test_unknown_symbol(self) -> None:
        deck = self._deck()
        deck[0] = Card("card_0_a", "pair_0", "skull")
        deck[1] = Card("card_0_b", "pair_0", "skull")
        assert not is_pair_complete(deck, 2)

    def test_two_pairs_with_the_same_symbol(self) -> None:
        deck = self._deck()
        deck[2] = Card("card_1_a", "pair_1", "lotus")
        deck[3] = Card("card_1_b", "pair_1", "lotus")
        assert not is_pair_complete(deck, 2)


def test_card_from_dict_rejects_extra_or_missing_fields() -> None:
    with pytest.raises(ValueError):
        Card.from_dict({"id": "a", "pair_id": "p"})
    with pytest.raises(ValueError):
        Card.from_dict({"id": "a", "pair_id": "p", "symbol": "moon", "matched": True})
    with pytest.raises(TypeError):
        Card.from_dict({"id": 1, "pair_id": "p", "symbol": "moon"})
