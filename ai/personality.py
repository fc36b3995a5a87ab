"""
personality.py – Named trait presets for the AI opponent.

Personality types:
- aggressive:     bluffs a lot, challenges readily, takes risks
- conservative:   plays honestly, challenges only when sure
- balanced:       middle of the road
- unpredictable:  bluff / challenge / risk are drawn fresh on every read

Each personality supplies:
- bluff_frequency      chance of bluffing when a bluff is possible
- challenge_threshold  how sure the AI must be before challenging
- risk_tolerance       appetite for risky plays
- adaptive_rate        how quickly the AI reacts to the player

Reads of an unpredictable personality are NOT repeatable; callers that
need one consistent vector for a decision should read traits once and
pass the snapshot around.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from settings import (
    PERSONALITY_AGGRESSIVE, PERSONALITY_CONSERVATIVE, PERSONALITY_BALANCED,
    PERSONALITY_UNPREDICTABLE_ADAPTIVE_RATE, DEFAULT_PERSONALITY,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersonalityTraits:
    bluff_frequency: float
    challenge_threshold: float
    risk_tolerance: float
    adaptive_rate: float


PRESETS: dict[str, PersonalityTraits] = {
    "aggressive": PersonalityTraits(**PERSONALITY_AGGRESSIVE),
    "conservative": PersonalityTraits(**PERSONALITY_CONSERVATIVE),
    "balanced": PersonalityTraits(**PERSONALITY_BALANCED),
}

UNPREDICTABLE = "unpredictable"
PERSONALITY_NAMES = tuple(PRESETS) + (UNPREDICTABLE,)


class AIPersonality:
    """Holds the active personality and samples decisions against it."""

    def __init__(self, name: str = DEFAULT_PERSONALITY,
                 rng: random.Random | None = None):
        self._rng = rng or random.Random()
        self.name = DEFAULT_PERSONALITY
        self.set_personality(name)

    def set_personality(self, name: str) -> None:
        if name not in PERSONALITY_NAMES:
            raise ValueError(f"Unknown personality {name!r}; "
                             f"expected one of {', '.join(PERSONALITY_NAMES)}")
        self.name = name
        logger.info("AI personality set to %s", name)

    def get_personality_traits(self) -> PersonalityTraits:
        if self.name == UNPREDICTABLE:
            return PersonalityTraits(
                bluff_frequency=self._rng.random(),
                challenge_threshold=self._rng.random(),
                risk_tolerance=self._rng.random(),
                adaptive_rate=PERSONALITY_UNPREDICTABLE_ADAPTIVE_RATE,
            )
        return PRESETS[self.name]

    # ── Sampling ──────────────────────────────────────────

    def should_bluff(self) -> bool:
        return self._rng.random() < self.get_personality_traits().bluff_frequency

    def should_challenge(self, confidence: float | None = None) -> bool:
        """Challenge when *confidence* (or a uniform draw) beats the threshold."""
        threshold = self.get_personality_traits().challenge_threshold
        score = self._rng.random() if confidence is None else confidence
        return score > threshold
