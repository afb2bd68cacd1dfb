"""
Card primitives for the heads-up table, plus a small 7-card evaluator.

The evaluator is only used by the offline showdown oracle; the engine never
ranks hands itself.
"""

from __future__ import annotations

import random
from collections import Counter
from dataclasses import dataclass, field
from itertools import combinations
from typing import Iterable, List, Optional, Sequence, Tuple

SUITS: Tuple[str, ...] = ("h", "d", "c", "s")
RANKS: Tuple[str, ...] = ("2", "3", "4", "5", "6", "7", "8", "9", "T", "J", "Q", "K", "A")
SUIT_SYMBOLS = {"h": "♥", "d": "♦", "c": "♣", "s": "♠"}
RANK_TO_INT = {rank: idx for idx, rank in enumerate(RANKS, start=2)}
INT_TO_RANK = {idx: rank for rank, idx in RANK_TO_INT.items()}

HandRank = Tuple[int, Tuple[int, ...]]

CATEGORY_NAMES = {
    9: "Straight Flush",
    8: "Four of a Kind",
    7: "Full House",
    6: "Flush",
    5: "Straight",
    4: "Three of a Kind",
    3: "Two Pair",
    2: "One Pair",
    1: "High Card",
}

_RANK_WORDS = {
    2: "Twos", 3: "Threes", 4: "Fours", 5: "Fives", 6: "Sixes", 7: "Sevens",
    8: "Eights", 9: "Nines", 10: "Tens", 11: "Jacks", 12: "Queens", 13: "Kings",
    14: "Aces",
}


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str
    face_down: bool = field(default=False, compare=False, hash=False)

    def __post_init__(self) -> None:
        if self.rank not in RANK_TO_INT:
            raise ValueError(f"invalid rank {self.rank}")
        if self.suit not in SUITS:
            raise ValueError(f"invalid suit {self.suit}")

    @property
    def value(self) -> int:
        return RANK_TO_INT[self.rank]

    def symbol(self) -> str:
        return f"{self.rank}{SUIT_SYMBOLS[self.suit]}"

    def __str__(self) -> str:
        return f"{self.rank}{self.suit}"

    def __repr__(self) -> str:
        return f"Card({self.rank!r}, {self.suit!r})"


def card_from_str(token: str) -> Card:
    token = token.strip()
    if len(token) == 3 and token[:2] == "10":
        token = "T" + token[2]
    if len(token) != 2:
        raise ValueError(f"invalid card token: {token!r}")
    return Card(rank=token[0].upper(), suit=token[1].lower())


def cards_from_iterable(tokens: Iterable[str]) -> List[Card]:
    return [card_from_str(token) for token in tokens]


def new_deck() -> List[Card]:
    return [Card(rank, suit) for suit in SUITS for rank in RANKS]


def shuffle(deck: Sequence[Card], rng: Optional[random.Random] = None) -> List[Card]:
    """Return a uniformly shuffled copy of ``deck``; the input is left as is."""
    shuffled = list(deck)
    (rng or random).shuffle(shuffled)
    return shuffled


def _straight_high(values: Iterable[int]) -> Optional[int]:
    present = set(values)
    if 14 in present:
        present.add(1)
    for high in range(14, 4, -1):
        if all(high - offset in present for offset in range(5)):
            return high
    return None


def rank_five(cards: Sequence[Card]) -> HandRank:
    """Rank exactly five cards as ``(category, tiebreakers)``."""
    values = sorted((card.value for card in cards), reverse=True)
    counts = Counter(values)
    # Highest multiplicity first, then highest rank.
    grouped = sorted(counts.items(), key=lambda item: (item[1], item[0]), reverse=True)
    shape = [count for _, count in grouped]
    ordered = tuple(value for value, _ in grouped)
    flush = len({card.suit for card in cards}) == 1
    straight = _straight_high(values) if len(counts) == 5 else None

    if flush and straight:
        return 9, (straight,)
    if shape == [4, 1]:
        return 8, ordered
    if shape == [3, 2]:
        return 7, ordered
    if flush:
        return 6, tuple(values)
    if straight:
        return 5, (straight,)
    if shape == [3, 1, 1]:
        return 4, ordered
    if shape == [2, 2, 1]:
        return 3, ordered
    if shape == [2, 1, 1, 1]:
        return 2, ordered
    return 1, tuple(values)


def best_hand_rank(cards: Sequence[Card]) -> HandRank:
    if len(cards) < 5:
        raise ValueError("at least five cards required")
    return max(rank_five(combo) for combo in combinations(cards, 5))


def hand_name(rank: HandRank) -> str:
    return CATEGORY_NAMES[rank[0]]


def describe_hand(rank: HandRank) -> str:
    category, values = rank
    top = _RANK_WORDS[values[0]]
    if category in (9, 5):
        return f"{INT_TO_RANK[values[0]]}-high"
    if category == 8:
        return f"Four {top}"
    if category == 7:
        return f"{top} full of {_RANK_WORDS[values[1]]}"
    if category == 4:
        return f"Three {top}"
    if category == 3:
        return f"{top} and {_RANK_WORDS[values[1]]}"
    if category == 2:
        return f"Pair of {top}"
    return f"{INT_TO_RANK[values[0]]}-high"
