"""
behavior_analyzer.py  –  Player behaviour analysis.

Keeps running frequencies over every move fed to it and classifies the
player's style:

  aggressive    –  bluff_frequency > 0.6  OR  challenge_frequency > 0.6
  conservative  –  bluff_frequency < 0.3  AND challenge_frequency < 0.3
  balanced      –  middle ground (fallback)

bluff_frequency / challenge_frequency are running averages of the
success flag of plays / challenges over all moves seen.
"""

import logging
from dataclasses import dataclass

from game.state import ActionType, GameAction

logger = logging.getLogger(__name__)

AGGRESSIVE_ABOVE = 0.6
CONSERVATIVE_BELOW = 0.3


@dataclass
class PlayerStats:
    bluff_frequency: float = 0.0
    challenge_frequency: float = 0.0
    total_moves: int = 0
    play_style: str = "balanced"


class BehaviorAnalyzer:
    """Tracks observed moves and classifies the player's style."""

    def __init__(self):
        self._stats = PlayerStats()

    def update_player_patterns(self, action: GameAction, was_successful: bool) -> None:
        s = self._stats
        s.total_moves += 1
        n = s.total_moves
        hit = 1.0 if was_successful else 0.0

        if action.type is ActionType.PLAY_CARDS:
            s.bluff_frequency = (s.bluff_frequency * (n - 1) + hit) / n
        elif action.type is ActionType.CHALLENGE:
            s.challenge_frequency = (s.challenge_frequency * (n - 1) + hit) / n

        s.play_style = self.detect_player_style()

    def detect_player_style(self) -> str:
        """Return one of: 'aggressive', 'conservative', 'balanced'."""
        s = self._stats
        if s.bluff_frequency > AGGRESSIVE_ABOVE or s.challenge_frequency > AGGRESSIVE_ABOVE:
            return "aggressive"
        if s.bluff_frequency < CONSERVATIVE_BELOW and s.challenge_frequency < CONSERVATIVE_BELOW:
            return "conservative"
        return "balanced"

    def get_player_analysis(self) -> PlayerStats:
        """Snapshot copy of the current stats."""
        s = self._stats
        return PlayerStats(s.bluff_frequency, s.challenge_frequency,
                           s.total_moves, s.play_style)
