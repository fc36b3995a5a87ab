"""
ai_core.py – Central AI brain that orchestrates all sub-systems.

Architecture:
    ai_core.AIBrain
      ├── pattern_recognition.PatternRecognition     (recent-move triggers)
      ├── adaptive_learning.AdaptiveLearning         (per-stage strategy counts)
      ├── behavior_analyzer.BehaviorAnalyzer         (player style)
      ├── reinforcement_learning.ReinforcementLearning (Q-table policy)
      ├── difficulty_balancer.DifficultyBalancer     (cross-game difficulty)
      ├── personality.AIPersonality                  (trait presets)
      ├── model_monitoring.ModelMonitor              (decision history)
      ├── systems.cache.TTLCache                     (decision / insight cache)
      ├── systems.error_recovery.ErrorRecovery       (breakers + retry)
      └── systems.error_handling.ErrorHandler        (validation + error stats)

The brain has two entry points:

    make_decision(state, player_chat=None) → GameAction
    update_model(action, result, state)    → reward | None

Neither ever raises for a sub-system failure: the worst case is a PASS
by the AI and a counted error.  Sub-systems are constructed by build()
and injected, so tests can swap any of them.
"""

from __future__ import annotations

import logging
import random
import time
from collections import Counter, deque
from concurrent.futures import ThreadPoolExecutor

from ai.adaptive_learning import AdaptiveLearning
from ai.behavior_analyzer import BehaviorAnalyzer
from ai.data_logger import GameSummary
from ai.difficulty_balancer import DifficultyBalancer, DifficultyModifiers
from ai.insights import ChatAnalysis, ChatAnalyzer, MLInsights
from ai.model_monitoring import InsightSummary, ModelMonitor
from ai.pattern_recognition import PatternRecognition
from ai.persistence import KeyValueStore
from ai.personality import AIPersonality
from ai.reinforcement_learning import QLearningConfig, ReinforcementLearning
from game.cards import Card, group_by_rank, rank_above, rank_index
from game.errors import SubsystemFailure
from game.state import ActionType, GameAction, GameState, Player
from settings import (
    DECK_SIZE, RANKS, DEFAULT_PERSONALITY, RECENT_MOVES_LIMIT,
    BLUFF_CHANCE_SCALE, BLUFF_RANK_JUMP,
    LEAD_BLUFF_MAX_CHALLENGE, FOLLOW_BLUFF_MAX_CHALLENGE, RISKY_BLUFF_TOLERANCE,
    BLUFF_WEIGHT_CARDS_PLAYED, BLUFF_WEIGHT_HAND_LEFT,
    BLUFF_WEIGHT_PATTERN, BLUFF_WEIGHT_PLAYER,
    CHAT_DETECTED_BLUFF_WEIGHT, CHAT_EMOTION_BONUS,
    REWARD_CHALLENGE_MULT, REWARD_PER_CARD, REWARD_BLUFF_BONUS,
    REWARD_PROGRESS_WEIGHT,
)
from systems.cache import TTLCache
from systems.error_handling import ErrorHandler
from systems.error_recovery import ErrorRecovery
from utils.helpers import clamp, game_stage

logger = logging.getLogger(__name__)

# Largest number of same-rank cards a player can legitimately hold
_SUIT_COUNT = 4


# ══════════════════════════════════════════════════════════
#  AI Brain
# ══════════════════════════════════════════════════════════

class AIBrain:
    """Decision orchestrator for the AI opponent.

    Usage:
        brain = AIBrain.build(JsonFileStore("data"))
        action = brain.make_decision(state)
        brain.update_model(action, success, state)
        ...
        brain.shutdown()
    """

    def __init__(self, *,
                 patterns: PatternRecognition,
                 learning: AdaptiveLearning,
                 behavior: BehaviorAnalyzer,
                 rl: ReinforcementLearning,
                 difficulty: DifficultyBalancer,
                 personality: AIPersonality,
                 monitor: ModelMonitor,
                 cache: TTLCache,
                 recovery: ErrorRecovery,
                 errors: ErrorHandler,
                 chat_analyzer: ChatAnalyzer | None = None,
                 rng: random.Random | None = None,
                 max_workers: int = 4):
        self.patterns = patterns
        self.learning = learning
        self.behavior = behavior
        self.rl = rl
        self.difficulty = difficulty
        self.personality = personality
        self.monitor = monitor
        self.cache = cache
        self.recovery = recovery
        self.errors = errors
        self.chat_analyzer = chat_analyzer

        self._rng = rng or random.Random()
        self._pool = ThreadPoolExecutor(max_workers=max_workers,
                                        thread_name_prefix="ai-brain")
        self.recent_moves: deque[GameAction] = deque(maxlen=RECENT_MOVES_LIMIT)

    @classmethod
    def build(cls, store: KeyValueStore | None = None, *,
              personality: str = DEFAULT_PERSONALITY,
              rng: random.Random | None = None,
              chat_analyzer: ChatAnalyzer | None = None,
              autosave: bool = True,
              start_sweeper: bool = True,
              clock=time.monotonic, sleep=time.sleep) -> "AIBrain":
        """Construct every sub-system once and wire them together."""
        rng = rng or random.Random()
        cache = TTLCache(clock=clock)
        if start_sweeper:
            cache.start_sweeper()
        return cls(
            patterns=PatternRecognition(store),
            learning=AdaptiveLearning(store),
            behavior=BehaviorAnalyzer(),
            rl=ReinforcementLearning(store, QLearningConfig(autosave=autosave), rng=rng),
            difficulty=DifficultyBalancer(store, clock=clock),
            personality=AIPersonality(personality, rng=rng),
            monitor=ModelMonitor(store, autosave=autosave),
            cache=cache,
            recovery=ErrorRecovery(clock=clock, sleep=sleep),
            errors=ErrorHandler(),
            chat_analyzer=chat_analyzer,
            rng=rng,
        )

    # ══════════════════════════════════════════════════════
    #  Decision making
    # ══════════════════════════════════════════════════════

    def make_decision(self, state: GameState, player_chat: str | None = None) -> GameAction:
        err = self.errors.validate_game_state(state)
        if err is not None:
            return self.errors.handle_decision_error(err)

        try:
            mods = self.difficulty.get_difficulty_modifiers(state)

            cached = self.recovery.with_fallback(
                lambda: self.cache.get_cached_decision(state), lambda: None, "cache"
            )
            if cached is not None and self._is_playable(cached, state):
                logger.debug("Using cached decision %s", cached.type.value)
                return cached

            insights = self.get_ml_insights(state, player_chat)
            suggestion = self.rl.suggest_action(state)

            last = state.last_play
            if last is not None and last.actor is Player.HUMAN:
                alternatives = ("PASS", "CHALLENGE")
                challenge = (suggestion.type is ActionType.CHALLENGE
                             or self.evaluate_challenge(state, insights, mods))
                decision = (GameAction.challenge(Player.AI) if challenge
                            else GameAction.pass_turn(Player.AI))
            elif state.ai_hand:
                alternatives = ("PASS", "PLAY_CARDS")
                decision = None
                if suggestion.type is ActionType.PLAY_CARDS:
                    declared = suggestion.declared_rank or RANKS[-1]
                    if self._rng.random() < mods.bluff_probability_multiplier * BLUFF_CHANCE_SCALE:
                        declared = self.select_bluff_value(declared)
                    cards = self.select_cards_for_play(state, suggestion.card_count or 1, declared)
                    if cards:
                        decision = GameAction.play(Player.AI, cards, declared)
                if decision is None:
                    decision = self.decide_card_play(state, insights, mods)
            else:
                alternatives = ("PASS",)
                decision = GameAction.pass_turn(Player.AI)

            err = self.errors.validate_action(decision)
            if err is not None:
                raise err
        except Exception as exc:
            return self.errors.handle_decision_error(exc)

        self._record_decision(state, insights, mods, decision, alternatives)
        self._cache_decision(state, decision)
        logger.debug("AI decision: %s", decision.type.value)
        return decision

    def get_ml_insights(self, state: GameState, player_chat: str | None = None) -> MLInsights:
        """Read every sub-system (cached per human hand + recent moves).

        Raises SubsystemFailure when any read fails after retries.
        """
        phase = game_stage(state.cards_in_hands)
        recent = list(self.recent_moves)

        insights = self.recovery.with_fallback(
            lambda: self.cache.get_cached_model_prediction(state.human_hand, recent, phase),
            lambda: None, "cache",
        )
        if insights is None:
            futures = [
                self._pool.submit(self.recovery.with_retry,
                                  self.patterns.get_prediction, "prediction"),
                self._pool.submit(self.recovery.with_retry,
                                  self.behavior.get_player_analysis, "strategy"),
                self._pool.submit(self.recovery.with_retry,
                                  lambda: self.learning.get_optimal_strategy(state), "learning"),
                self._pool.submit(self.recovery.with_retry,
                                  self.personality.get_personality_traits, "personality"),
            ]
            patterns, player_stats, strategy, traits = [f.result() for f in futures]
            insights = MLInsights(patterns, player_stats, strategy, traits)
            try:
                self.recovery.with_retry(
                    lambda: self.cache.cache_model_prediction(
                        state.human_hand, recent, phase, insights),
                    "cache",
                )
            except SubsystemFailure as exc:
                self.errors.handle_cache_error(exc, "cache_model_prediction")

        if player_chat:
            insights = MLInsights(
                insights.patterns, insights.player_stats, insights.optimal_strategy,
                insights.personality_traits, self.analyze_chat(player_chat),
            )
        return insights

    def analyze_chat(self, message: str) -> ChatAnalysis:
        if self.chat_analyzer is None:
            return ChatAnalysis()
        try:
            return self.chat_analyzer.analyze(message)
        except Exception as exc:
            logger.warning("Chat analysis failed: %s", exc)
            return ChatAnalysis(emotional_state="unknown")

    # ── Challenge evaluation ──────────────────────────────

    def calculate_bluff_probability(self, state: GameState, insights: MLInsights) -> float:
        """Estimated chance that the human's last play is a bluff."""
        cards_played = len(state.last_play.actual_cards)
        remaining = state.human_hand_count

        prob = ((cards_played / _SUIT_COUNT) * BLUFF_WEIGHT_CARDS_PLAYED
                + ((len(RANKS) - remaining) / len(RANKS)) * BLUFF_WEIGHT_HAND_LEFT
                + insights.patterns.likely_to_bluff * BLUFF_WEIGHT_PATTERN
                + insights.player_stats.bluff_frequency * BLUFF_WEIGHT_PLAYER)

        chat = insights.chat_analysis
        if chat is not None:
            if chat.detected_bluff:
                prob += CHAT_DETECTED_BLUFF_WEIGHT * chat.confidence
            prob += CHAT_EMOTION_BONUS.get(chat.emotional_state, 0.0)

        return clamp(prob)

    def evaluate_challenge(self, state: GameState, insights: MLInsights,
                           mods: DifficultyModifiers) -> bool:
        traits = insights.personality_traits
        bluff_prob = self.calculate_bluff_probability(state, insights)
        threshold = traits.challenge_threshold * mods.challenge_threshold_multiplier
        risk = traits.risk_tolerance * mods.risk_tolerance_multiplier
        adjusted = threshold * (1 - risk) + insights.patterns.likely_to_bluff * risk
        logger.debug("Challenge check: p(bluff)=%.2f threshold=%.2f", bluff_prob, adjusted)
        return bluff_prob > adjusted

    # ── Card play ─────────────────────────────────────────

    def decide_card_play(self, state: GameState, insights: MLInsights,
                         mods: DifficultyModifiers) -> GameAction:
        """Heuristic play used when the Q-table offers no playable move."""
        should_bluff = self._rng.random() < mods.bluff_probability_multiplier * BLUFF_CHANCE_SCALE

        chat = insights.chat_analysis
        if chat is not None:
            if chat.emotional_state in ("nervous", "aggressive"):
                should_bluff = should_bluff or self._rng.random() < 0.7
            if chat.emotional_state == "confident" and chat.confidence > 0.7:
                should_bluff = should_bluff and self._rng.random() < 0.3

        risk = insights.personality_traits.risk_tolerance * mods.risk_tolerance_multiplier
        current = state.last_play.declared_rank if state.last_play else None
        selection = self._select_best_cards(
            state.ai_hand, current, should_bluff, risk,
            insights.patterns.likely_to_challenge,
        )
        if selection is None:
            return GameAction.pass_turn(Player.AI)
        cards, declared = selection
        return GameAction.play(Player.AI, cards, declared)

    def _select_best_cards(self, hand, current: str | None, should_bluff: bool,
                           risk: float, opponent_challenge: float):
        if not hand:
            return None
        groups = group_by_rank(hand)

        if current is not None:
            floor = rank_index(current)
            valid = {r: cs for r, cs in groups.items() if rank_index(r) >= floor}
            if valid:
                rank, cards = self._best_group(valid)
                return cards, rank
            if should_bluff and opponent_challenge < FOLLOW_BLUFF_MAX_CHALLENGE:
                count = 2 if risk > RISKY_BLUFF_TOLERANCE else 1
                lowest = sorted(hand, key=lambda c: c.rank_order)[:count]
                return lowest, rank_above(current)
            return None

        rank, cards = self._best_group(groups)
        if should_bluff and opponent_challenge < LEAD_BLUFF_MAX_CHALLENGE:
            return cards, self.select_bluff_value(rank)
        return cards, rank

    @staticmethod
    def _best_group(groups: dict[str, list[Card]]) -> tuple[str, list[Card]]:
        """Largest group first, lowest rank on ties."""
        return min(groups.items(), key=lambda kv: (-len(kv[1]), rank_index(kv[0])))

    @staticmethod
    def select_bluff_value(actual_rank: str) -> str:
        return rank_above(actual_rank, BLUFF_RANK_JUMP)

    @staticmethod
    def select_cards_for_play(state: GameState, count: int, declared_rank: str) -> list[Card]:
        """Pick *count* AI cards for a play declaring *declared_rank*.

        Exact matches are used when there are enough; otherwise cards are
        taken from the ranks furthest from the declared one, whole groups
        first.  Returns [] when the hand is too small.
        """
        hand = state.ai_hand
        if not hand or count > len(hand):
            return []

        groups = group_by_rank(hand)
        matching = groups.get(declared_rank, [])
        if len(matching) >= count:
            return matching[:count]

        target = rank_index(declared_rank)
        ordered = sorted(
            groups.items(),
            key=lambda kv: (-abs(target - rank_index(kv[0])), rank_index(kv[0])),
        )
        selected: list[Card] = []
        for _, cards in ordered:
            if len(selected) >= count:
                break
            selected.extend(cards[:count - len(selected)])
        return selected

    # ══════════════════════════════════════════════════════
    #  Learning
    # ══════════════════════════════════════════════════════

    def update_model(self, action: GameAction, result: bool, state: GameState,
                     next_state: GameState | None = None) -> float | None:
        """Feed one applied action and its outcome to every learner.

        *state* is the state the action was taken in.  Returns the shaped
        reward, or None when the inputs were rejected.
        """
        err = self.errors.validate_game_state(state) or self.errors.validate_action(action)
        if err is not None:
            self.errors.log_error(err, True, "Rejected model update")
            return None

        self.recent_moves.append(action)

        try:
            self.cache.invalidate_decision_cache(state)
        except Exception as exc:
            self.errors.handle_cache_error(exc, "invalidate_decision_cache")

        reward = self.calculate_reward(action, result, state)
        after = next_state if next_state is not None else state

        ai_move = action.player is Player.AI

        updates = {
            "patterns": lambda: self.patterns.analyze_patterns(action, state),
            "learning": lambda: self.learning.learn(action, result, state),
            "player_patterns": lambda: self.behavior.update_player_patterns(action, result),
        }
        # Q-values are keyed from the AI's seat only.
        if ai_move:
            updates["reinforcement"] = (
                lambda: self.rl.update_from_game_result(state, action, reward, after)
            )
        futures = {name: self._pool.submit(fn) for name, fn in updates.items()}
        for name, future in futures.items():
            try:
                future.result()
            except Exception as exc:
                self.errors.log_error(exc, True, f"Continuing with partial model update ({name})")

        # Only AI moves have a recorded decision to attach an outcome to.
        if ai_move:
            try:
                self.recovery.with_retry(lambda: self.monitor.record_outcome(result, reward),
                                         "monitoring")
            except SubsystemFailure as exc:
                logger.warning("Could not record outcome: %s", exc)

        return reward

    @staticmethod
    def calculate_reward(action: GameAction, result: bool, state: GameState) -> float:
        reward = 1.0 if result else -1.0

        if action.type is ActionType.CHALLENGE:
            reward *= REWARD_CHALLENGE_MULT
        elif action.type is ActionType.PLAY_CARDS:
            reward *= 1 + action.card_count * REWARD_PER_CARD
            if result and action.is_bluff:
                reward *= REWARD_BLUFF_BONUS

        progress = 1 - state.cards_in_hands / DECK_SIZE
        return reward * (1 + progress * REWARD_PROGRESS_WEIGHT)

    # ══════════════════════════════════════════════════════
    #  Game lifecycle
    # ══════════════════════════════════════════════════════

    def start_game(self) -> None:
        self.difficulty.start_game()

    def record_game_end(self, summary: GameSummary) -> None:
        try:
            self.difficulty.update_metrics(summary)
        except Exception as exc:
            self.errors.log_error(exc, False, "Difficulty update failed")
        try:
            self.monitor.record_game_result(summary.winner is Player.AI)
        except Exception as exc:
            self.errors.log_error(exc, False, "Monitoring update failed")

    def get_error_stats(self):
        return self.errors.get_error_stats()

    def flush(self) -> None:
        """Persist the Q-table and decision history now."""
        self.rl.save()
        self.monitor.save()

    def shutdown(self) -> None:
        self.cache.stop_sweeper()
        self._pool.shutdown(wait=True)
        self.flush()
        logger.info("AI brain shut down")

    # ── Internal helpers ──────────────────────────────────

    def _is_playable(self, action: GameAction, state: GameState) -> bool:
        if self.errors.validate_action(action) is not None or action.player is not Player.AI:
            return False
        if action.type is ActionType.PLAY_CARDS:
            held = Counter(state.ai_hand)
            return all(held[c] >= n for c, n in Counter(action.cards).items())
        if action.type is ActionType.CHALLENGE:
            return state.last_play is not None and state.last_play.actor is Player.HUMAN
        return True

    def _record_decision(self, state: GameState, insights: MLInsights,
                         mods: DifficultyModifiers, decision: GameAction,
                         alternatives) -> None:
        chat = insights.chat_analysis
        summary = InsightSummary(
            bluff_probability=insights.patterns.likely_to_bluff * mods.bluff_probability_multiplier,
            challenge_probability=insights.patterns.likely_to_challenge,
            pattern_confidence=insights.patterns.likely_to_bluff,
            risk_level=insights.personality_traits.risk_tolerance * mods.risk_tolerance_multiplier,
            sentiment_impact=chat.sentiment if chat else 0.0,
        )
        try:
            self.recovery.with_retry(
                lambda: self.monitor.record_decision(state, summary, decision, alternatives),
                "monitoring",
            )
        except SubsystemFailure as exc:
            logger.warning("Could not record decision: %s", exc)

    def _cache_decision(self, state: GameState, decision: GameAction) -> None:
        try:
            self.recovery.with_retry(lambda: self.cache.cache_decision(state, decision), "cache")
        except SubsystemFailure as exc:
            self.errors.handle_cache_error(exc, "cache_decision")
