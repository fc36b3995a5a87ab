"""game package – Card primitives, immutable state, and the rules engine."""

from .cards import Card, Suit, RANK_ORDER, create_deck, shuffle_deck
from .state import ActionType, GameAction, GameState, GameStatus, LastPlay, Player
from .engine import GameEngine, MoveResult
from .errors import (
    BluffError, GameError, InvalidMove, NoChallengeTarget,
    ValidationError, SubsystemFailure, CircuitOpenError,
)
