"""
reinforcement_learning.py – Tabular Q-learning for the AI's moves.

States are discretised from the AI's point of view:

    ai_cards, human_cards, pile_size, last_declared_rank, last_play_count

and combined with an action (type, card count, declared rank) into a
canonical JSON key.  Every key maps to a QTableEntry.

Policy: epsilon-greedy.  With probability epsilon a uniformly random
legal action is returned, otherwise the legal action with the highest
stored Q-value (PASS when nothing is known yet).

Update:  Q ← Q + α · (reward + γ · max_a' Q(next, a') − Q)

Entries are never deleted; each keeps at most RL_REWARD_HISTORY recent
rewards.  The table is persisted after every update unless autosave is
off, in which case the owner calls save() (store key "q_table").
"""

from __future__ import annotations

import logging
import random
import threading
from collections import deque
from dataclasses import dataclass, field

import numpy as np

from ai.persistence import KeyValueStore, safe_load, safe_save
from game.cards import rank_index
from game.state import ActionType, GameAction, GameState, Player
from settings import (
    RANKS, RL_LEARNING_RATE, RL_DISCOUNT_FACTOR, RL_EXPLORATION_RATE,
    RL_REWARD_HISTORY, RL_MAX_PLAY_COUNT,
)
from utils.helpers import canonical_key

logger = logging.getLogger(__name__)

_STORE_KEY = "q_table"


# ══════════════════════════════════════════════════════════
#  Configuration
# ══════════════════════════════════════════════════════════

@dataclass
class QLearningConfig:
    """Tunables for the Q-learning agent."""

    learning_rate: float = RL_LEARNING_RATE        # alpha
    discount_factor: float = RL_DISCOUNT_FACTOR    # gamma
    exploration_rate: float = RL_EXPLORATION_RATE  # epsilon
    reward_history: int = RL_REWARD_HISTORY
    max_play_count: int = RL_MAX_PLAY_COUNT
    autosave: bool = True                          # persist after every update


# ══════════════════════════════════════════════════════════
#  Table types
# ══════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RLAction:
    """Abstract action: which move, how many cards, which rank declared."""

    type: ActionType
    card_count: int | None = None
    declared_rank: str | None = None

    @classmethod
    def from_game_action(cls, action: GameAction) -> "RLAction":
        if action.type is ActionType.PLAY_CARDS:
            return cls(action.type, action.card_count, action.declared_rank)
        return cls(action.type)

    def as_dict(self) -> dict:
        return {
            "action_type": self.type.value,
            "card_count": self.card_count,
            "declared_rank": self.declared_rank,
        }


@dataclass
class QTableEntry:
    state_action: dict
    q_value: float = 0.0
    visit_count: int = 0
    reward_history: deque = field(default_factory=lambda: deque(maxlen=RL_REWARD_HISTORY))

    def as_dict(self) -> dict:
        return {
            "state_action": self.state_action,
            "q_value": self.q_value,
            "visit_count": self.visit_count,
            "reward_history": list(self.reward_history),
        }


@dataclass(frozen=True)
class ActionStats:
    q_value: float = 0.0
    visit_count: int = 0
    average_reward: float = 0.0


@dataclass(frozen=True)
class LearningProgress:
    total_states: int = 0
    average_q_value: float = 0.0
    most_visited: tuple = ()


# ══════════════════════════════════════════════════════════
#  Q-learning agent
# ══════════════════════════════════════════════════════════

class ReinforcementLearning:
    """Epsilon-greedy tabular Q-learning over discretised game states."""

    def __init__(self, store: KeyValueStore | None = None,
                 config: QLearningConfig | None = None,
                 rng: random.Random | None = None):
        self.cfg = config or QLearningConfig()
        self._store = store
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._table: dict[str, QTableEntry] = {}
        self._load()

    @property
    def exploration_rate(self) -> float:
        return self.cfg.exploration_rate

    def __len__(self) -> int:
        return len(self._table)

    # ── Discretisation ────────────────────────────────────

    @staticmethod
    def normalize_state(state: GameState) -> dict:
        last = state.last_play
        return {
            "ai_cards": state.ai_hand_count,
            "human_cards": state.human_hand_count,
            "pile_size": len(state.center_pile),
            "last_declared_rank": last.declared_rank if last else None,
            "last_play_count": len(last.actual_cards) if last else None,
        }

    @staticmethod
    def state_action_key(normalized: dict, action: RLAction) -> str:
        return canonical_key({**normalized, **action.as_dict()})

    def get_possible_actions(self, state: GameState) -> list[RLAction]:
        """Legal abstract actions for the AI in *state* (PASS first)."""
        actions = [RLAction(ActionType.PASS)]
        last = state.last_play

        if last is not None and last.actor is Player.HUMAN:
            actions.append(RLAction(ActionType.CHALLENGE))

        hand = state.ai_hand_count
        if hand > 0:
            lowest = rank_index(last.declared_rank) if last is not None else 0
            ranks = RANKS[lowest:]
            for count in range(1, min(self.cfg.max_play_count, hand) + 1):
                for rank in ranks:
                    actions.append(RLAction(ActionType.PLAY_CARDS, count, rank))

        return actions

    # ── Lookup ────────────────────────────────────────────

    def get_q_value(self, state: GameState, action: RLAction) -> float:
        key = self.state_action_key(self.normalize_state(state), action)
        entry = self._table.get(key)
        return entry.q_value if entry else 0.0

    def _max_q(self, state: GameState) -> float:
        normalized = self.normalize_state(state)
        values = [
            self._table[k].q_value
            for k in (self.state_action_key(normalized, a)
                      for a in self.get_possible_actions(state))
            if k in self._table
        ]
        return float(np.max(values)) if values else 0.0

    # ── Policy ────────────────────────────────────────────

    def suggest_action(self, state: GameState) -> RLAction:
        actions = self.get_possible_actions(state)

        if self._rng.random() < self.cfg.exploration_rate:
            choice = actions[self._rng.randrange(len(actions))]
            logger.debug("RL explore → %s", choice)
            return choice

        normalized = self.normalize_state(state)
        keys = [self.state_action_key(normalized, a) for a in actions]
        if not any(k in self._table for k in keys):
            return RLAction(ActionType.PASS)

        values = np.array([
            self._table[k].q_value if k in self._table else 0.0 for k in keys
        ])
        choice = actions[int(np.argmax(values))]
        logger.debug("RL exploit → %s (q=%.3f)", choice, float(values.max()))
        return choice

    # ── Learning ──────────────────────────────────────────

    def update_from_game_result(self, state: GameState, action: GameAction,
                                reward: float, next_state: GameState) -> float:
        """Apply one Q-learning update and return the new Q-value."""
        cfg = self.cfg
        rl_action = RLAction.from_game_action(action)
        normalized = self.normalize_state(state)
        key = self.state_action_key(normalized, rl_action)

        with self._lock:
            entry = self._table.get(key)
            if entry is None:
                entry = QTableEntry(
                    state_action={**normalized, **rl_action.as_dict()},
                    reward_history=deque(maxlen=cfg.reward_history),
                )
                self._table[key] = entry

            max_next = self._max_q(next_state)
            entry.q_value += cfg.learning_rate * (
                reward + cfg.discount_factor * max_next - entry.q_value
            )
            entry.visit_count += 1
            entry.reward_history.append(reward)
            q_value = entry.q_value

        if cfg.autosave:
            self.save()
        return q_value

    # ── Introspection ─────────────────────────────────────

    def get_action_stats(self, state: GameState, action: RLAction) -> ActionStats:
        key = self.state_action_key(self.normalize_state(state), action)
        entry = self._table.get(key)
        if entry is None:
            return ActionStats()
        avg = float(np.mean(entry.reward_history)) if entry.reward_history else 0.0
        return ActionStats(entry.q_value, entry.visit_count, avg)

    def get_learning_progress(self) -> LearningProgress:
        entries = list(self._table.values())
        if not entries:
            return LearningProgress()
        top = sorted(entries, key=lambda e: e.visit_count, reverse=True)[:10]
        return LearningProgress(
            total_states=len(entries),
            average_q_value=float(np.mean([e.q_value for e in entries])),
            most_visited=tuple((e.state_action, e.visit_count) for e in top),
        )

    # ── Persistence ───────────────────────────────────────

    def save(self) -> None:
        with self._lock:
            snapshot = {k: e.as_dict() for k, e in self._table.items()}
        safe_save(self._store, _STORE_KEY, snapshot)

    def _load(self) -> None:
        data = safe_load(self._store, _STORE_KEY)
        if not isinstance(data, dict):
            return
        for key, raw in data.items():
            try:
                self._table[key] = QTableEntry(
                    state_action=dict(raw.get("state_action", {})),
                    q_value=float(raw["q_value"]),
                    visit_count=int(raw.get("visit_count", 0)),
                    reward_history=deque(
                        (float(r) for r in raw.get("reward_history", [])),
                        maxlen=self.cfg.reward_history,
                    ),
                )
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning("Skipping malformed Q-table entry %s", key)
        logger.info("Loaded %d Q-table entries", len(self._table))
