"""helpers.py - Reusable utility functions."""

from __future__ import annotations

import json

from settings import STAGE_EARLY_ABOVE, STAGE_MID_ABOVE


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp *value* into [low, high]."""
    return max(low, min(high, value))


def canonical_key(obj) -> str:
    """Order-independent JSON digest of *obj* (dict keys sorted)."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), default=str)


def game_stage(cards_in_hands: int) -> str:
    """Bucket a game by the cards both players still hold."""
    if cards_in_hands > STAGE_EARLY_ABOVE:
        return "early"
    if cards_in_hands > STAGE_MID_ABOVE:
        return "mid"
    return "late"


def running_average(old_avg: float, value: float, n: int) -> float:
    """Fold *value* into an average over *n* previous samples."""
    return old_avg + (value - old_avg) / (n + 1)
