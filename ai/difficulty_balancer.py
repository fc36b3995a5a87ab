"""
difficulty_balancer.py – Adaptive difficulty from the player's track record.

After every finished game the balancer folds the result into the
player's metrics (win rate, cards per play, bluff / challenge success,
time to win).  Once at least DIFFICULTY_MIN_GAMES games are recorded it
adjusts the AI's DifficultySettings:

  Player winning (> 50 %)  →  AI sharpens:
    - more aggression, bluffing and risk
    - lower challenge threshold (floor 0.4)

  Exploiting weaknesses (when enabled):
    - player bluffs get caught     →  challenge more
    - player challenges badly      →  bluff more
    - player dumps many cards      →  challenge more

Per decision, getDifficultyModifiers() scales the settings by game phase:

  endgame  (< 10 cards in hands)  ahead → dampen bluff / risk
                                  behind → amplify them
  critical (AI ≤ 2 cards)         always amplify bluff / risk,
                                  lower the challenge threshold

Output: DifficultyModifiers consumed by ai_core for every decision.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, asdict, fields

from ai.data_logger import GameSummary
from ai.persistence import KeyValueStore, safe_load, safe_save
from game.state import ActionType, GameState, Player
from settings import (
    DIFFICULTY_DEFAULTS, DIFFICULTY_MIN_GAMES, DIFFICULTY_STEP,
    DIFFICULTY_CHALLENGE_FLOOR, DIFFICULTY_EXPLOIT_FLOOR,
    DIFFICULTY_WEAKNESS_RATE, DIFFICULTY_ENDGAME_CARDS,
    DIFFICULTY_CRITICAL_CARDS,
)
from utils.helpers import clamp, running_average

logger = logging.getLogger(__name__)

_STORE_KEY = "player_metrics"


# ══════════════════════════════════════════════════════════
#  Configuration
# ══════════════════════════════════════════════════════════

@dataclass
class DifficultyConfig:
    """Tunable knobs for the difficulty balancer."""

    min_games: int = DIFFICULTY_MIN_GAMES
    step: float = DIFFICULTY_STEP
    challenge_floor: float = DIFFICULTY_CHALLENGE_FLOOR
    exploit_floor: float = DIFFICULTY_EXPLOIT_FLOOR
    weakness_rate: float = DIFFICULTY_WEAKNESS_RATE
    many_cards_per_play: float = 2.0
    endgame_cards: int = DIFFICULTY_ENDGAME_CARDS
    critical_cards: int = DIFFICULTY_CRITICAL_CARDS

    # ── Endgame, AI ahead ─────────────────────────────────
    ahead_bluff_mult: float = 0.7
    ahead_challenge_mult: float = 1.2
    ahead_risk_mult: float = 0.8

    # ── Endgame, AI behind ────────────────────────────────
    behind_bluff_mult: float = 1.3
    behind_challenge_mult: float = 0.8
    behind_risk_mult: float = 1.2

    # ── Critical (AI nearly out) ──────────────────────────
    critical_bluff_mult: float = 1.5
    critical_challenge_mult: float = 0.7
    critical_risk_mult: float = 1.3


@dataclass
class DifficultySettings:
    """The AI's current difficulty, each value in [0, 1]."""

    aggressiveness: float = DIFFICULTY_DEFAULTS["aggressiveness"]
    bluff_frequency: float = DIFFICULTY_DEFAULTS["bluff_frequency"]
    challenge_threshold: float = DIFFICULTY_DEFAULTS["challenge_threshold"]
    risk_tolerance: float = DIFFICULTY_DEFAULTS["risk_tolerance"]
    adaptive_speed: float = DIFFICULTY_DEFAULTS["adaptive_speed"]
    exploit_weaknesses: bool = DIFFICULTY_DEFAULTS["exploit_weaknesses"]


@dataclass
class PlayerMetrics:
    win_rate: float = 0.0
    average_cards_per_play: float = 0.0
    bluff_success_rate: float = 0.0
    challenge_success_rate: float = 0.0
    average_time_to_win: float = 0.0
    games_played: int = 0
    games_won: int = 0


@dataclass(frozen=True)
class DifficultyModifiers:
    """Per-decision multipliers produced by the balancer."""

    bluff_probability_multiplier: float = 1.0
    challenge_threshold_multiplier: float = 1.0
    risk_tolerance_multiplier: float = 1.0
    phase: str = "normal"                # "normal" | "endgame" | "critical"


# ══════════════════════════════════════════════════════════
#  Difficulty Balancer
# ══════════════════════════════════════════════════════════

class DifficultyBalancer:
    """Cross-game difficulty adaptation.

    Usage:
        balancer = DifficultyBalancer(store)
        balancer.start_game()
        ...
        balancer.update_metrics(summary)          # after each game
        mods = balancer.get_difficulty_modifiers(state)
    """

    def __init__(self, store: KeyValueStore | None = None,
                 config: DifficultyConfig | None = None,
                 settings: DifficultySettings | None = None,
                 clock=time.monotonic):
        self.cfg = config or DifficultyConfig()
        self._store = store
        self._clock = clock
        self._metrics = PlayerMetrics()
        self._settings = settings or DifficultySettings()
        self._game_start = clock()
        self._load()

    # ══════════════════════════════════════════════════════
    #  Game results
    # ══════════════════════════════════════════════════════

    def start_game(self) -> None:
        self._game_start = self._clock()

    def update_metrics(self, summary: GameSummary) -> None:
        """Fold one finished game into the player metrics, then adapt."""
        m = self._metrics
        n = m.games_played
        duration = (summary.duration if summary.duration is not None
                    else self._clock() - self._game_start)
        player_won = summary.winner is Player.HUMAN

        m.win_rate = running_average(m.win_rate, 1.0 if player_won else 0.0, n)

        moves = summary.player_moves
        cards = sum(mv.action.card_count for mv in moves)
        m.average_cards_per_play = running_average(
            m.average_cards_per_play, cards / max(len(moves), 1), n
        )

        bluffs = [mv for mv in moves
                  if mv.action.type is ActionType.PLAY_CARDS and mv.action.is_bluff]
        if bluffs:
            m.bluff_success_rate = (
                sum(1 for mv in bluffs if not mv.was_challenged) / len(bluffs)
            )

        challenges = [mv for mv in moves if mv.action.type is ActionType.CHALLENGE]
        if challenges:
            m.challenge_success_rate = (
                sum(1 for mv in challenges if mv.was_successful) / len(challenges)
            )

        if player_won:
            m.average_time_to_win = running_average(
                m.average_time_to_win, duration, m.games_won
            )
            m.games_won += 1

        m.games_played += 1
        logger.info(
            "Player metrics: games=%d win_rate=%.2f bluff_ok=%.2f challenge_ok=%.2f",
            m.games_played, m.win_rate, m.bluff_success_rate, m.challenge_success_rate,
        )

        self._adjust_difficulty()
        safe_save(self._store, _STORE_KEY, asdict(m))

    def _adjust_difficulty(self) -> None:
        cfg = self.cfg
        m = self._metrics
        s = self._settings

        if m.games_played < cfg.min_games:
            return

        if m.win_rate > 0.5:
            s.aggressiveness = min(1.0, s.aggressiveness + cfg.step)
            s.bluff_frequency = min(1.0, s.bluff_frequency + cfg.step)
            s.challenge_threshold = max(cfg.challenge_floor, s.challenge_threshold - cfg.step)
            s.risk_tolerance = min(1.0, s.risk_tolerance + cfg.step)

        if s.exploit_weaknesses:
            if m.bluff_success_rate < cfg.weakness_rate:
                s.challenge_threshold = max(cfg.exploit_floor,
                                            s.challenge_threshold - 2 * cfg.step)
            if m.challenge_success_rate < cfg.weakness_rate:
                s.bluff_frequency = min(1.0, s.bluff_frequency + 2 * cfg.step)
            if m.average_cards_per_play > cfg.many_cards_per_play:
                s.challenge_threshold = max(cfg.exploit_floor,
                                            s.challenge_threshold - 1.5 * cfg.step)

        logger.info(
            "Difficulty adapted: aggr=%.2f bluff=%.2f challenge=%.2f risk=%.2f",
            s.aggressiveness, s.bluff_frequency, s.challenge_threshold, s.risk_tolerance,
        )

    # ══════════════════════════════════════════════════════
    #  Per-decision modifiers
    # ══════════════════════════════════════════════════════

    def get_difficulty_modifiers(self, state: GameState) -> DifficultyModifiers:
        cfg = self.cfg
        s = self._settings

        endgame = state.cards_in_hands < cfg.endgame_cards
        ahead = state.ai_hand_count < state.human_hand_count
        critical = state.ai_hand_count <= cfg.critical_cards

        bluff = s.bluff_frequency
        challenge = s.challenge_threshold
        risk = s.risk_tolerance
        phase = "normal"

        if endgame:
            phase = "endgame"
            if ahead:
                bluff *= cfg.ahead_bluff_mult
                challenge *= cfg.ahead_challenge_mult
                risk *= cfg.ahead_risk_mult
            else:
                bluff *= cfg.behind_bluff_mult
                challenge *= cfg.behind_challenge_mult
                risk *= cfg.behind_risk_mult

        if critical:
            phase = "critical"
            bluff *= cfg.critical_bluff_mult
            challenge *= cfg.critical_challenge_mult
            risk *= cfg.critical_risk_mult

        return DifficultyModifiers(
            bluff_probability_multiplier=clamp(bluff),
            challenge_threshold_multiplier=clamp(challenge, cfg.exploit_floor, 1.0),
            risk_tolerance_multiplier=clamp(risk),
            phase=phase,
        )

    # ── Accessors ─────────────────────────────────────────

    def get_player_metrics(self) -> PlayerMetrics:
        return PlayerMetrics(**asdict(self._metrics))

    def get_current_difficulty(self) -> DifficultySettings:
        return DifficultySettings(**asdict(self._settings))

    # ── Persistence ───────────────────────────────────────

    def _load(self) -> None:
        data = safe_load(self._store, _STORE_KEY)
        if not isinstance(data, dict):
            return
        known = {f.name for f in fields(PlayerMetrics)}
        try:
            self._metrics = PlayerMetrics(**{k: v for k, v in data.items() if k in known})
        except TypeError as exc:
            logger.warning("Ignoring malformed player metrics: %s", exc)
            return
        self._adjust_difficulty()
