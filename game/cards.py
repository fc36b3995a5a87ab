"""
cards.py - Card and deck primitives.

Cards are immutable values compared by (suit, rank).  Ranks are the
strings "2".."10", "J", "Q", "K", "A" in ascending order.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum

from settings import RANKS, HIGH_RANK_INDEX

RANK_ORDER: dict[str, int] = {rank: i for i, rank in enumerate(RANKS)}


class Suit(Enum):
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"


@dataclass(frozen=True)
class Card:
    suit: Suit
    rank: str

    def __post_init__(self):
        if self.rank not in RANK_ORDER:
            raise ValueError(f"Unknown rank {self.rank!r}")
        if not isinstance(self.suit, Suit):
            object.__setattr__(self, "suit", Suit(self.suit))

    @property
    def rank_order(self) -> int:
        return RANK_ORDER[self.rank]

    def as_dict(self) -> dict:
        return {"suit": self.suit.value, "rank": self.rank}

    @classmethod
    def from_dict(cls, data: dict) -> "Card":
        return cls(Suit(data["suit"]), data["rank"])

    def __str__(self) -> str:
        return f"{self.rank}{self.suit.value[0].upper()}"


def is_valid_rank(rank) -> bool:
    return isinstance(rank, str) and rank in RANK_ORDER


def rank_index(rank: str) -> int:
    """Position of *rank* in the ascending rank order."""
    return RANK_ORDER[rank]


def is_high_rank(rank: str) -> bool:
    """True for "10" and above."""
    return RANK_ORDER[rank] >= HIGH_RANK_INDEX


def rank_above(rank: str, steps: int = 1) -> str:
    """Rank *steps* above *rank*, capped at the ace."""
    return RANKS[min(RANK_ORDER[rank] + steps, len(RANKS) - 1)]


def create_deck() -> list[Card]:
    """The standard 52-card deck, suit-major in a fixed order."""
    return [Card(suit, rank) for suit in Suit for rank in RANKS]


def shuffle_deck(deck: list[Card], rng: random.Random | None = None) -> list[Card]:
    """Fisher–Yates shuffle into a new list."""
    rng = rng or random.Random()
    cards = list(deck)
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randint(0, i)
        cards[i], cards[j] = cards[j], cards[i]
    return cards


def group_by_rank(cards) -> dict[str, list[Card]]:
    """Group *cards* by rank, preserving first-seen order."""
    groups: dict[str, list[Card]] = {}
    for card in cards:
        groups.setdefault(card.rank, []).append(card)
    return groups
