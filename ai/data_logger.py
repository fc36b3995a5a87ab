"""
data_logger.py  –  Per-game move recording.

Tracks every move of a game together with how it turned out, and
produces the GameSummary the difficulty balancer learns from when the
game ends.  Optionally appends one summary row per game to a CSV file.

Uses only the built-in `csv` module.
"""

from __future__ import annotations

import csv
import logging
import os
import time
from dataclasses import dataclass, field

from game.state import ActionType, GameAction, GameState, Player

logger = logging.getLogger(__name__)

# Column order written to CSV
FIELDNAMES = [
    "game_id",
    "winner",
    "human_moves",
    "ai_moves",
    "human_bluffs",
    "human_challenges",
    "game_duration",
]


@dataclass
class RecordedMove:
    """One applied action plus its outcome."""

    action: GameAction
    was_challenged: bool = False
    was_successful: bool = False


@dataclass
class GameSummary:
    winner: Player
    player_moves: list[RecordedMove] = field(default_factory=list)
    ai_moves: list[RecordedMove] = field(default_factory=list)
    final_state: GameState | None = None
    duration: float | None = None        # seconds; None = let the consumer time it


class GameRecorder:
    """Collects moves during a game and summarises it at the end."""

    def __init__(self, csv_path: str | None = None, clock=time.monotonic):
        self.csv_path = csv_path
        self._clock = clock
        self._next_game_id = 1

        # Per-game accumulators (reset every start_game)
        self.game_id = 0
        self._moves: list[RecordedMove] = []
        self._start_time = 0.0

    # ── Game lifecycle ────────────────────────────────────

    def start_game(self) -> None:
        self.game_id = self._next_game_id
        self._next_game_id += 1
        self._moves = []
        self._start_time = self._clock()

    def log_move(self, action: GameAction, was_challenged: bool = False,
                 was_successful: bool = False) -> RecordedMove:
        move = RecordedMove(action, was_challenged, was_successful)
        self._moves.append(move)
        return move

    def mark_last_play_challenged(self, player: Player, caught: bool) -> None:
        """Flag the most recent play by *player* as challenged.

        *caught* is True when the challenge exposed a bluff, so the play
        did not succeed.
        """
        for move in reversed(self._moves):
            if move.action.player is player and move.action.type is ActionType.PLAY_CARDS:
                move.was_challenged = True
                move.was_successful = not caught
                return

    def end_game(self, winner: Player, final_state: GameState | None = None) -> GameSummary:
        duration = self._clock() - self._start_time
        summary = GameSummary(
            winner=winner,
            player_moves=[m for m in self._moves if m.action.player is Player.HUMAN],
            ai_moves=[m for m in self._moves if m.action.player is Player.AI],
            final_state=final_state,
            duration=duration,
        )
        if self.csv_path:
            self._write_row(summary)
        return summary

    # ── CSV helpers ───────────────────────────────────────

    def _write_row(self, summary: GameSummary) -> None:
        row = {
            "game_id": self.game_id,
            "winner": summary.winner.value,
            "human_moves": len(summary.player_moves),
            "ai_moves": len(summary.ai_moves),
            "human_bluffs": sum(1 for m in summary.player_moves if m.action.is_bluff),
            "human_challenges": sum(
                1 for m in summary.player_moves if m.action.type is ActionType.CHALLENGE
            ),
            "game_duration": round(summary.duration or 0.0, 2),
        }
        file_exists = os.path.isfile(self.csv_path)
        try:
            with open(self.csv_path, "a", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
                if not file_exists:
                    writer.writeheader()
                writer.writerow(row)
        except OSError as exc:
            logger.warning("Could not append game log to %s: %s", self.csv_path, exc)
