"""
model_monitoring.py  –  Decision history and model performance tracking.

ModelMonitor records one DecisionMetrics entry per AI decision
(state snapshot, the insight summary it was based on, the chosen
action and a confidence heuristic).  A later record_outcome() attaches
the result to the most recent decision and updates the rolling
performance figures:

    accuracy                 successful decisions / decisions with outcome
    bluff_success_rate       over bluff plays only
    challenge_success_rate   over challenges only
    average_reward           mean reward over decisions with outcome

History, performance and the bluff / challenge outcome counts are
persisted under the store key "model_history" and restored on start-up.  plot_reward_trend() saves a line chart of the
recorded rewards via matplotlib.
"""

from __future__ import annotations

import logging
import time
from collections import Counter, deque
from dataclasses import dataclass, asdict, fields

import matplotlib
matplotlib.use("Agg")  # headless backend, plots are only written to disk
import matplotlib.pyplot as plt

from ai.persistence import KeyValueStore, safe_load, safe_save
from game.state import ActionType, GameAction, GameState
from settings import MONITOR_HISTORY_LIMIT
from utils.helpers import running_average

logger = logging.getLogger(__name__)

_STORE_KEY = "model_history"


@dataclass(frozen=True)
class InsightSummary:
    """The four numbers a decision was based on."""

    bluff_probability: float
    challenge_probability: float
    pattern_confidence: float
    risk_level: float
    sentiment_impact: float = 0.0


@dataclass
class DecisionOutcome:
    successful: bool
    reward: float


@dataclass
class DecisionMetrics:
    timestamp: float
    game_state: dict
    insights: InsightSummary
    decision_type: str
    confidence: float
    alternatives: tuple[str, ...]
    is_bluff: bool = False
    outcome: DecisionOutcome | None = None


@dataclass
class ModelPerformance:
    total_decisions: int = 0
    total_outcomes: int = 0
    accuracy: float = 0.0
    bluff_success_rate: float = 0.0
    challenge_success_rate: float = 0.0
    average_reward: float = 0.0
    games_played: int = 0
    games_won: int = 0


def decision_confidence(insights: InsightSummary, action: GameAction) -> float:
    if action.type is ActionType.CHALLENGE:
        return insights.bluff_probability * (1 - insights.risk_level)
    if action.type is ActionType.PLAY_CARDS and action.is_bluff:
        return (1 - insights.challenge_probability) * insights.risk_level
    return insights.pattern_confidence


class ModelMonitor:
    """Keeps a bounded decision history and aggregate performance."""

    def __init__(self, store: KeyValueStore | None = None,
                 history_limit: int = MONITOR_HISTORY_LIMIT,
                 autosave: bool = True, clock=time.time):
        self._store = store
        self.autosave = autosave
        self._clock = clock
        self._history: deque[DecisionMetrics] = deque(maxlen=history_limit)
        self._perf = ModelPerformance()
        self._bluffs = 0
        self._challenges = 0
        self._load()

    # ===========================================================
    #  Recorders
    # ===========================================================

    def record_decision(self, state: GameState, insights: InsightSummary,
                        action: GameAction, alternatives=()) -> DecisionMetrics:
        metrics = DecisionMetrics(
            timestamp=self._clock(),
            game_state={
                "ai_cards": state.ai_hand_count,
                "human_cards": state.human_hand_count,
                "center_pile": len(state.center_pile),
                "current_turn": state.current_turn.value,
            },
            insights=insights,
            decision_type=action.type.value,
            confidence=decision_confidence(insights, action),
            alternatives=tuple(alternatives),
            is_bluff=action.is_bluff,
        )
        self._history.append(metrics)
        self._perf.total_decisions += 1
        self._save()
        return metrics

    def record_outcome(self, success: bool, reward: float) -> None:
        """Attach an outcome to the most recent decision (no-op if none)."""
        if not self._history:
            return
        last = self._history[-1]
        if last.outcome is not None:
            logger.debug("Latest decision already has an outcome, ignoring")
            return
        last.outcome = DecisionOutcome(success, reward)

        p = self._perf
        hit = 1.0 if success else 0.0
        if last.decision_type == ActionType.CHALLENGE.value:
            p.challenge_success_rate = running_average(
                p.challenge_success_rate, hit, self._challenges)
            self._challenges += 1
        elif last.is_bluff:
            p.bluff_success_rate = running_average(
                p.bluff_success_rate, hit, self._bluffs)
            self._bluffs += 1

        p.accuracy = running_average(p.accuracy, hit, p.total_outcomes)
        p.average_reward = running_average(p.average_reward, reward, p.total_outcomes)
        p.total_outcomes += 1
        self._save()

    def record_game_result(self, ai_won: bool) -> None:
        self._perf.games_played += 1
        if ai_won:
            self._perf.games_won += 1
        self._save()

    # ===========================================================
    #  Read accessors
    # ===========================================================

    def get_performance_metrics(self) -> ModelPerformance:
        return ModelPerformance(**asdict(self._perf))

    def get_recent_decisions(self, limit: int = 10) -> list[DecisionMetrics]:
        if limit <= 0:
            return []
        return list(self._history)[-limit:]

    def get_decision_distribution(self) -> dict[str, int]:
        counts = Counter(d.decision_type for d in self._history)
        return {t.value: counts.get(t.value, 0) for t in ActionType}

    # ===========================================================
    #  Reports
    # ===========================================================

    def plot_reward_trend(self, path: str = "reward_trend.png") -> str | None:
        """Save a line graph of recorded rewards; return the path or None."""
        rewards = [d.outcome.reward for d in self._history if d.outcome is not None]
        if not rewards:
            return None

        fig, ax = plt.subplots()
        ax.plot(range(1, len(rewards) + 1), rewards, marker=".", linewidth=1)
        ax.set_xlabel("Decision")
        ax.set_ylabel("Reward")
        ax.set_title("AI Reward Trend")
        ax.grid(True)

        fig.savefig(path, dpi=100, bbox_inches="tight")
        plt.close(fig)
        logger.info("Reward graph saved to %s", path)
        return path

    # ── Persistence ───────────────────────────────────────

    def _save(self) -> None:
        if self.autosave:
            self.save()

    def save(self) -> None:
        safe_save(self._store, _STORE_KEY, {
            "decisions": [asdict(d) for d in self._history],
            "performance": asdict(self._perf),
            "bluff_outcomes": self._bluffs,
            "challenge_outcomes": self._challenges,
        })

    def _load(self) -> None:
        data = safe_load(self._store, _STORE_KEY)
        if not isinstance(data, dict):
            return

        for raw in data.get("decisions", []):
            try:
                self._history.append(_decision_from_dict(raw))
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning("Skipping malformed decision record")

        known = {f.name for f in fields(ModelPerformance)}
        try:
            self._perf = ModelPerformance(
                **{k: v for k, v in data.get("performance", {}).items() if k in known})
        except (TypeError, AttributeError) as exc:
            logger.warning("Ignoring malformed model performance: %s", exc)

        # Older saves lack the counts; rebuild them from the kept history.
        rated = [d for d in self._history if d.outcome is not None]
        self._challenges = int(data.get("challenge_outcomes", sum(
            d.decision_type == ActionType.CHALLENGE.value for d in rated)))
        self._bluffs = int(data.get("bluff_outcomes", sum(
            d.is_bluff and d.decision_type != ActionType.CHALLENGE.value for d in rated)))
        logger.info("Loaded %d monitored decisions", len(self._history))


def _decision_from_dict(raw: dict) -> DecisionMetrics:
    outcome = raw.get("outcome")
    return DecisionMetrics(
        timestamp=float(raw["timestamp"]),
        game_state=dict(raw["game_state"]),
        insights=InsightSummary(**raw["insights"]),
        decision_type=str(raw["decision_type"]),
        confidence=float(raw["confidence"]),
        alternatives=tuple(raw.get("alternatives", ())),
        is_bluff=bool(raw.get("is_bluff", False)),
        outcome=DecisionOutcome(**outcome) if outcome is not None else None,
    )
