"""
error_handling.py – Validation and error bookkeeping for the AI.

Validation returns an error value instead of raising:

    err = handler.validate_game_state(state)
    if err is not None:
        ...

Every error routed through log_error() is counted by exception class;
critical errors are logged at ERROR, the rest at WARNING.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from game.cards import Card, is_valid_rank
from game.errors import ValidationError
from game.state import ActionType, GameAction, GameState, Player
from settings import DECK_SIZE

logger = logging.getLogger(__name__)


@dataclass
class LastError:
    message: str
    timestamp: float


@dataclass
class ErrorStats:
    total_errors: int = 0
    errors_by_type: dict[str, int] = field(default_factory=dict)
    last_error: LastError | None = None


class ErrorHandler:
    """Validates inputs and tallies errors raised around AI decisions."""

    def __init__(self, clock=time.time):
        self._clock = clock
        self._stats = ErrorStats()

    # ══════════════════════════════════════════════════════
    #  Validation
    # ══════════════════════════════════════════════════════

    def validate_game_state(self, state) -> ValidationError | None:
        if state is None:
            return ValidationError("Invalid game state: state is None")
        if not isinstance(state, GameState):
            return ValidationError(
                f"Invalid game state: expected GameState, got {type(state).__name__}"
            )
        cards = state.human_hand + state.ai_hand + state.center_pile
        if not all(isinstance(c, Card) for c in cards):
            return ValidationError("Invalid game state: non-card entry in a hand or pile")
        if state.total_cards != DECK_SIZE:
            return ValidationError(
                f"Invalid game state: {state.total_cards} cards in play, expected {DECK_SIZE}"
            )
        if state.last_play is not None and not isinstance(state.last_play.actor, Player):
            return ValidationError("Invalid game state: last play has no valid actor")
        return None

    def validate_action(self, action) -> ValidationError | None:
        if action is None:
            return ValidationError("Invalid action: action is None")
        if not isinstance(action, GameAction):
            return ValidationError(
                f"Invalid action: expected GameAction, got {type(action).__name__}"
            )
        if not isinstance(action.type, ActionType):
            return ValidationError(f"Invalid action: unknown action type {action.type!r}")
        if not isinstance(action.player, Player):
            return ValidationError(f"Invalid action: unknown player {action.player!r}")
        if action.type is ActionType.PLAY_CARDS:
            if not action.cards:
                return ValidationError("Invalid action: play without cards")
            if not is_valid_rank(action.declared_rank):
                return ValidationError(
                    f"Invalid action: bad declared rank {action.declared_rank!r}"
                )
        return None

    # ══════════════════════════════════════════════════════
    #  Error bookkeeping
    # ══════════════════════════════════════════════════════

    def log_error(self, error: BaseException, critical: bool, context: str) -> None:
        s = self._stats
        s.total_errors += 1
        name = type(error).__name__
        s.errors_by_type[name] = s.errors_by_type.get(name, 0) + 1
        s.last_error = LastError(f"{context}: {error}", self._clock())

        if critical:
            logger.error("Critical error - %s: %s", context, error)
        else:
            logger.warning("%s: %s", context, error)

    def handle_cache_error(self, error: BaseException, operation: str) -> None:
        self.log_error(error, False, f"Cache operation failed: {operation}")

    def handle_decision_error(self, error: BaseException) -> GameAction:
        """Count a failed decision and return the safe default (AI passes)."""
        self.log_error(error, True, "Decision making failed")
        return GameAction.pass_turn(Player.AI)

    def get_error_stats(self) -> ErrorStats:
        s = self._stats
        return ErrorStats(s.total_errors, dict(s.errors_by_type), s.last_error)
