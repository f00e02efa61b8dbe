"""Memory game deck generation and integrity checks.

A deck is a shuffled list of cards where every pair shares a ``pair_id`` and a
symbol. The verifier re-checks the same structure on completion so that a
client cannot swap in a trivially solvable deck.
"""

from __future__ import annotations

import secrets
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from random import Random
from typing import Any

# Symbol vocabulary; the default board draws nine pairs from it.
CARD_SYMBOLS: tuple[str, ...] = (
    "lotus",
    "bamboo",
    "tea",
    "yinyang",
    "wave",
    "mountain",
    "moon",
    "leaf",
    "bonsai",
    "koi",
    "lantern",
    "sakura",
)

_CARD_FIELDS = frozenset({"id", "pair_id", "symbol"})


@dataclass(frozen=True)
class Card:
    """A single face-down card."""

    id: str
    pair_id: str
    symbol: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "pair_id": self.pair_id, "symbol": self.symbol}

    @classmethod
    def from_dict(cls, data: Any) -> Card:
        if not isinstance(data, dict) or set(data) != _CARD_FIELDS:
            raise ValueError("Card must have exactly id, pair_id and symbol")
        if not all(isinstance(data[field], str) for field in _CARD_FIELDS):
            raise TypeError("Card fields must be strings")
        return cls(id=data["id"], pair_id=data["pair_id"], symbol=data["symbol"])


def _shuffle(cards: list[Card], rng: Random) -> list[Card]:
    """Return a Fisher-Yates shuffled copy of ``cards``."""
    shuffled = list(cards)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def generate_deck(pair_count: int, rng: Random | None = None) -> list[Card]:
    """Build a shuffled deck of ``pair_count`` symbol pairs.

    Args:
        pair_count: Number of pairs; must not exceed the symbol vocabulary.
        rng: Optional random source. Defaults to an OS-backed generator.

    Returns:
        A list of ``2 * pair_count`` cards in random order.

    Raises:
        ValueError: If ``pair_count`` is outside ``1..len(CARD_SYMBOLS)``.
    """
    if not 1 <= pair_count <= len(CARD_SYMBOLS):
        raise ValueError(f"pair_count must be between 1 and {len(CARD_SYMBOLS)}")

    rng = rng or secrets.SystemRandom()
    if pair_count == len(CARD_SYMBOLS):
        symbols = list(CARD_SYMBOLS)
    else:
        symbols = rng.sample(CARD_SYMBOLS, pair_count)

    cards: list[Card] = []
    for index, symbol in enumerate(symbols):
        pair_id = f"pair_{index}"
        cards.append(Card(id=f"card_{index}_a", pair_id=pair_id, symbol=symbol))
        cards.append(Card(id=f"card_{index}_b", pair_id=pair_id, symbol=symbol))

    return _shuffle(cards, rng)


def is_pair_complete(deck: Sequence[Card], pair_count: int) -> bool:
    """Return True if ``deck`` is a well-formed deck of ``pair_count`` pairs."""
    if len(deck) != 2 * pair_count:
        return False
    if len({card.id for card in deck}) != len(deck):
        return False

    pair_sizes = Counter(card.pair_id for card in deck)
    if len(pair_sizes) != pair_count or any(size != 2 for size in pair_sizes.values()):
        return False

    symbol_by_pair: dict[str, str] = {}
    for card in deck:
        if card.symbol not in CARD_SYMBOLS:
            return False
        known = symbol_by_pair.setdefault(card.pair_id, card.symbol)
        if known != card.symbol:
            return False

    # Two pairs showing the same symbol would make the board ambiguous.
    return len(set(symbol_by_pair.values())) == pair_count
