"""utils package – Reusable helper functions."""

from .helpers import clamp, canonical_key, game_stage, running_average
