"""
adaptive_learning.py – Cross-game learning of successful strategies.

Buckets every observed move by game stage (early / mid / late, from the
cards left in both hands) and counts how often each strategy worked:

  Plays       keyed "<stage>-<card count>-<declared rank>"
  Challenges  keyed "<stage>-challenge"

A key is created the first time a strategy is seen; its counter only
grows when the move succeeded.

Output: OptimalStrategy holding the best-scoring bluff key and challenge
key for the current stage (None when nothing was learned yet).

Unlike the per-game pattern tracker, this data persists across games
(store key "learning").
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ai.persistence import KeyValueStore, safe_load, safe_save
from game.state import ActionType, GameAction, GameState
from utils.helpers import game_stage

logger = logging.getLogger(__name__)

_STORE_KEY = "learning"


@dataclass(frozen=True)
class OptimalStrategy:
    """Best-known strategies for the current stage."""

    recommended_bluffing: str | None = None
    recommended_challenging: str | None = None


class AdaptiveLearning:
    """Counts successful strategies per game stage.

    Usage:
        learner = AdaptiveLearning(store)
        learner.learn(action, result, state)
        best = learner.get_optimal_strategy(state)
    """

    def __init__(self, store: KeyValueStore | None = None):
        self._store = store
        self.bluffs: dict[str, int] = {}
        self.challenges: dict[str, int] = {}
        self._load()

    # ── Learning ──────────────────────────────────────────

    def learn(self, action: GameAction, result: bool, state: GameState) -> None:
        """Record that *action* in *state* succeeded (*result*) or not."""
        if action.type is ActionType.PASS:
            return

        stage = game_stage(state.cards_in_hands)
        key = self.strategy_key(action, stage)
        table = self.bluffs if action.type is ActionType.PLAY_CARDS else self.challenges
        table[key] = table.get(key, 0) + (1 if result else 0)
        self._save()

    @staticmethod
    def strategy_key(action: GameAction, stage: str) -> str:
        if action.type is ActionType.PLAY_CARDS:
            return f"{stage}-{action.card_count}-{action.declared_rank}"
        return f"{stage}-challenge"

    # ── Recommendation ────────────────────────────────────

    def get_optimal_strategy(self, state: GameState) -> OptimalStrategy:
        stage = game_stage(state.cards_in_hands)
        return OptimalStrategy(
            recommended_bluffing=self._best(self.bluffs, stage),
            recommended_challenging=self._best(self.challenges, stage),
        )

    @staticmethod
    def _best(table: dict[str, int], stage: str) -> str | None:
        prefix = stage + "-"
        in_stage = [(k, v) for k, v in table.items() if k.startswith(prefix)]
        if not in_stage:
            return None
        return max(in_stage, key=lambda kv: kv[1])[0]

    # ── Persistence ───────────────────────────────────────

    def _load(self) -> None:
        data = safe_load(self._store, _STORE_KEY)
        if not isinstance(data, dict):
            return
        self.bluffs = {str(k): int(v) for k, v in data.get("bluffs", {}).items()}
        self.challenges = {str(k): int(v) for k, v in data.get("challenges", {}).items()}

    def _save(self) -> None:
        safe_save(self._store, _STORE_KEY, {
            "bluffs": dict(self.bluffs),
            "challenges": dict(self.challenges),
        })
