"""
engine.py - Deterministic rules state machine for Bluff.

    initialize()            → fresh 26 / 26 deal, human to move
    apply(action, state)    → new GameState (raises InvalidMove / NoChallengeTarget)
    try_apply(action, state)→ MoveResult (never raises for rule violations)
    check_winner(state)     → Player | None

Resolution rules:
  PLAY_CARDS  cards leave the actor's hand onto the pile, the play is
              remembered as last_play, turn passes to the opponent.
  CHALLENGE   if any card of last_play differs from its declared rank the
              original actor takes the pile and the challenger moves next;
              otherwise the challenger takes the pile and the original
              actor moves next.  Pile and last_play are cleared.
  PASS        turn passes, last_play is cleared (the pile stays).

Card conservation (|human| + |ai| + |pile| == 52) holds for every
state the engine produces.
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass, replace

from game.cards import create_deck, shuffle_deck, is_valid_rank
from game.errors import GameError, InvalidMove, NoChallengeTarget
from game.state import (
    ActionType, GameAction, GameState, GameStatus, LastPlay, Player,
)
from settings import DECK_SIZE, HAND_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MoveResult:
    """Outcome of try_apply: exactly one of *state* / *error* is set."""

    state: GameState | None = None
    error: GameError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class GameEngine:
    """Stateless rules engine; every call returns a new GameState."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    # ══════════════════════════════════════════════════════
    #  Setup
    # ══════════════════════════════════════════════════════

    def initialize(self) -> GameState:
        deck = shuffle_deck(create_deck(), self._rng)
        state = GameState(
            human_hand=tuple(deck[:HAND_SIZE]),
            ai_hand=tuple(deck[HAND_SIZE:]),
            center_pile=(),
            current_turn=Player.HUMAN,
            last_play=None,
            status=GameStatus.PLAYING,
            winner=None,
        )
        logger.debug("New game dealt: %d / %d", HAND_SIZE, DECK_SIZE - HAND_SIZE)
        return state

    # ══════════════════════════════════════════════════════
    #  Actions
    # ══════════════════════════════════════════════════════

    def apply(self, action: GameAction, state: GameState) -> GameState:
        if not isinstance(action, GameAction) or not isinstance(action.type, ActionType):
            raise InvalidMove(f"Unrecognised action: {action!r}")
        if state.is_finished:
            raise InvalidMove("The game is already finished")
        if action.player is not state.current_turn:
            raise InvalidMove(
                f"It is {state.current_turn.value}'s turn, not {action.player.value}'s"
            )

        if action.type is ActionType.PLAY_CARDS:
            new_state = self._play_cards(action, state)
        elif action.type is ActionType.CHALLENGE:
            new_state = self._challenge(action, state)
        else:
            new_state = replace(
                state,
                current_turn=action.player.opponent,
                last_play=None,
            )

        return self._resolve_winner(new_state)

    def try_apply(self, action: GameAction, state: GameState) -> MoveResult:
        try:
            return MoveResult(state=self.apply(action, state))
        except GameError as exc:
            return MoveResult(error=exc)

    def check_winner(self, state: GameState) -> Player | None:
        if not state.human_hand:
            return Player.HUMAN
        if not state.ai_hand:
            return Player.AI
        return None

    # ── Internal helpers ──────────────────────────────────

    def _play_cards(self, action: GameAction, state: GameState) -> GameState:
        if not action.cards:
            raise InvalidMove("A play must contain at least one card")
        if not is_valid_rank(action.declared_rank):
            raise InvalidMove(f"Unknown declared rank {action.declared_rank!r}")

        hand = state.hand_of(action.player)
        wanted = Counter(action.cards)
        held = Counter(hand)
        if any(held[card] < n for card, n in wanted.items()):
            raise InvalidMove(
                f"{action.player.value} does not hold all of "
                f"{[str(c) for c in action.cards]}"
            )

        remaining = tuple(c for c in hand if c not in wanted)
        pile = state.center_pile + action.cards
        last_play = LastPlay(action.player, action.declared_rank, action.cards)

        if action.player is Player.HUMAN:
            return replace(state, human_hand=remaining, center_pile=pile,
                           last_play=last_play, current_turn=Player.AI)
        return replace(state, ai_hand=remaining, center_pile=pile,
                       last_play=last_play, current_turn=Player.HUMAN)

    def _challenge(self, action: GameAction, state: GameState) -> GameState:
        last = state.last_play
        if last is None:
            raise NoChallengeTarget("There is no play to challenge")
        if last.actor is action.player:
            raise NoChallengeTarget("A player cannot challenge their own play")

        challenger = action.player
        if last.is_bluff:
            loser, next_turn = last.actor, challenger
        else:
            loser, next_turn = challenger, last.actor

        logger.debug(
            "Challenge by %s: %s → %s takes %d cards",
            challenger.value, "bluff" if last.is_bluff else "truth",
            loser.value, len(state.center_pile),
        )

        if loser is Player.HUMAN:
            state = replace(state, human_hand=state.human_hand + state.center_pile)
        else:
            state = replace(state, ai_hand=state.ai_hand + state.center_pile)

        return replace(state, center_pile=(), last_play=None, current_turn=next_turn)

    def _resolve_winner(self, state: GameState) -> GameState:
        winner = self.check_winner(state)
        if winner is None:
            return state
        logger.info("Game finished: %s wins", winner.value)
        return replace(state, status=GameStatus.FINISHED, winner=winner)
