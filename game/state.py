"""
state.py - Immutable game state and the actions that move it.

GameState is copy-on-write: the engine never mutates a state, it
returns a new one.  The AI's cards are held as a tuple and are the
single source of truth; the AI hand *count* is derived from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from game.cards import Card


class Player(Enum):
    HUMAN = "human"
    AI = "ai"

    @property
    def opponent(self) -> "Player":
        return Player.AI if self is Player.HUMAN else Player.HUMAN


class GameStatus(Enum):
    PLAYING = "playing"
    FINISHED = "finished"


class ActionType(Enum):
    PLAY_CARDS = "PLAY_CARDS"
    CHALLENGE = "CHALLENGE"
    PASS = "PASS"


# ══════════════════════════════════════════════════════════
#  Actions
# ══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GameAction:
    """One move by *player*.  Only PLAY_CARDS carries cards and a rank."""

    type: ActionType
    player: Player
    cards: tuple[Card, ...] = ()
    declared_rank: str | None = None

    @classmethod
    def play(cls, player: Player, cards, declared_rank: str) -> "GameAction":
        return cls(ActionType.PLAY_CARDS, player, tuple(cards), declared_rank)

    @classmethod
    def challenge(cls, player: Player) -> "GameAction":
        return cls(ActionType.CHALLENGE, player)

    @classmethod
    def pass_turn(cls, player: Player) -> "GameAction":
        return cls(ActionType.PASS, player)

    @property
    def card_count(self) -> int:
        return len(self.cards)

    @property
    def is_bluff(self) -> bool:
        """True when any played card differs from the declared rank."""
        return (self.type is ActionType.PLAY_CARDS
                and any(c.rank != self.declared_rank for c in self.cards))

    def as_dict(self) -> dict:
        data = {"type": self.type.value, "player": self.player.value}
        if self.type is ActionType.PLAY_CARDS:
            data["cards"] = [c.as_dict() for c in self.cards]
            data["declared_rank"] = self.declared_rank
        return data


@dataclass(frozen=True)
class LastPlay:
    """The most recent unresolved play on the pile."""

    actor: Player
    declared_rank: str
    actual_cards: tuple[Card, ...]

    @property
    def is_bluff(self) -> bool:
        return any(c.rank != self.declared_rank for c in self.actual_cards)

    def as_dict(self) -> dict:
        return {
            "actor": self.actor.value,
            "declared_rank": self.declared_rank,
            "actual_cards": [c.as_dict() for c in self.actual_cards],
        }


# ══════════════════════════════════════════════════════════
#  Game State
# ══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GameState:
    human_hand: tuple[Card, ...] = ()
    ai_hand: tuple[Card, ...] = ()
    center_pile: tuple[Card, ...] = ()
    current_turn: Player = Player.HUMAN
    last_play: LastPlay | None = None
    status: GameStatus = GameStatus.PLAYING
    winner: Player | None = field(default=None)

    @property
    def ai_hand_count(self) -> int:
        return len(self.ai_hand)

    @property
    def human_hand_count(self) -> int:
        return len(self.human_hand)

    @property
    def cards_in_hands(self) -> int:
        """Cards still held by both players (the pile excluded)."""
        return len(self.human_hand) + len(self.ai_hand)

    @property
    def total_cards(self) -> int:
        return len(self.human_hand) + len(self.ai_hand) + len(self.center_pile)

    @property
    def is_finished(self) -> bool:
        return self.status is GameStatus.FINISHED

    def hand_of(self, player: Player) -> tuple[Card, ...]:
        return self.human_hand if player is Player.HUMAN else self.ai_hand

    def public_view(self) -> dict:
        """Snapshot safe to hand to the human's client (AI cards hidden)."""
        return {
            "human_hand": [c.as_dict() for c in self.human_hand],
            "ai_hand_count": self.ai_hand_count,
            "center_pile_count": len(self.center_pile),
            "current_turn": self.current_turn.value,
            "last_play": (
                {"actor": self.last_play.actor.value,
                 "declared_rank": self.last_play.declared_rank,
                 "card_count": len(self.last_play.actual_cards)}
                if self.last_play else None
            ),
            "status": self.status.value,
            "winner": self.winner.value if self.winner else None,
        }
