"""
pattern_recognition.py – Rolling pattern tracking over recent actions.

Keeps the last PATTERN_HISTORY_LIMIT actions and counts the situations
in which bluffs and challenges happen:

  Bluff triggers (PLAY_CARDS where a card differs from the declared rank)
    - under_pressure : acting hand at or below PATTERN_PRESSURE_HAND cards
    - high_cards     : declared rank "10" or above
    - low_cards      : any other declared rank

  Challenge triggers
    - after_consecutive_plays : the preceding PATTERN_STREAK_LENGTH+ actions
                                were all plays

Output: PatternPrediction with likely_to_bluff / likely_to_challenge,
each the trigger total divided by the history length.

Counters survive across sessions through the persistence store
(key "patterns").
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, asdict

from ai.persistence import KeyValueStore, safe_load, safe_save
from game.cards import is_high_rank
from game.state import ActionType, GameAction, GameState
from settings import (
    PATTERN_HISTORY_LIMIT, PATTERN_PRESSURE_HAND, PATTERN_STREAK_LENGTH,
)

logger = logging.getLogger(__name__)

_STORE_KEY = "patterns"


# ══════════════════════════════════════════════════════════
#  Configuration / Output
# ══════════════════════════════════════════════════════════

@dataclass
class PatternConfig:
    """Tunables for pattern recognition."""

    history_limit: int = PATTERN_HISTORY_LIMIT
    pressure_hand: int = PATTERN_PRESSURE_HAND
    streak_length: int = PATTERN_STREAK_LENGTH


@dataclass
class BluffTriggers:
    low_cards: int = 0
    high_cards: int = 0
    under_pressure: int = 0

    @property
    def total(self) -> int:
        return self.low_cards + self.high_cards + self.under_pressure


@dataclass
class ChallengeTriggers:
    after_consecutive_plays: int = 0

    @property
    def total(self) -> int:
        return self.after_consecutive_plays


@dataclass(frozen=True)
class PatternPrediction:
    likely_to_bluff: float = 0.0
    likely_to_challenge: float = 0.0


# ══════════════════════════════════════════════════════════
#  Pattern Recognition
# ══════════════════════════════════════════════════════════

class PatternRecognition:
    """Observes actions and estimates bluff / challenge tendencies.

    Usage:
        patterns = PatternRecognition(store)
        patterns.analyze_patterns(action, state)
        prediction = patterns.get_prediction()
    """

    def __init__(self, store: KeyValueStore | None = None,
                 config: PatternConfig | None = None):
        self.cfg = config or PatternConfig()
        self._store = store

        # Only action types are needed to detect streaks
        self._history: deque[ActionType] = deque(maxlen=self.cfg.history_limit)
        self.bluff_triggers = BluffTriggers()
        self.challenge_triggers = ChallengeTriggers()

        self._load()

    @property
    def history_length(self) -> int:
        return len(self._history)

    # ── Observation ───────────────────────────────────────

    def analyze_patterns(self, action: GameAction, state: GameState) -> None:
        """Record *action* taken in *state* and update trigger counters."""
        if action.type is ActionType.PLAY_CARDS and action.is_bluff:
            t = self.bluff_triggers
            if len(state.hand_of(action.player)) <= self.cfg.pressure_hand:
                t.under_pressure += 1
            if is_high_rank(action.declared_rank):
                t.high_cards += 1
            else:
                t.low_cards += 1

        if action.type is ActionType.CHALLENGE:
            if self._consecutive_plays() >= self.cfg.streak_length:
                self.challenge_triggers.after_consecutive_plays += 1

        self._history.append(action.type)
        self._save()

    def get_prediction(self) -> PatternPrediction:
        n = len(self._history)
        if n == 0:
            return PatternPrediction()
        return PatternPrediction(
            likely_to_bluff=self.bluff_triggers.total / n,
            likely_to_challenge=self.challenge_triggers.total / n,
        )

    def reset(self) -> None:
        """Forget everything learned (history and counters)."""
        self._history.clear()
        self.bluff_triggers = BluffTriggers()
        self.challenge_triggers = ChallengeTriggers()
        self._save()

    # ── Internal helpers ──────────────────────────────────

    def _consecutive_plays(self) -> int:
        count = 0
        for action_type in reversed(self._history):
            if action_type is not ActionType.PLAY_CARDS:
                break
            count += 1
        return count

    def _load(self) -> None:
        data = safe_load(self._store, _STORE_KEY)
        if not data:
            return
        try:
            self._history.extend(ActionType(t) for t in data.get("history", []))
            self.bluff_triggers = BluffTriggers(**data.get("bluff_triggers", {}))
            self.challenge_triggers = ChallengeTriggers(**data.get("challenge_triggers", {}))
        except (TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed pattern data: %s", exc)
            self._history.clear()
            self.bluff_triggers = BluffTriggers()
            self.challenge_triggers = ChallengeTriggers()

    def _save(self) -> None:
        safe_save(self._store, _STORE_KEY, {
            "history": [t.value for t in self._history],
            "bluff_triggers": asdict(self.bluff_triggers),
            "challenge_triggers": asdict(self.challenge_triggers),
        })
