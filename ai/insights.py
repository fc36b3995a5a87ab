"""
insights.py – Typed bundle of everything the AI knows before deciding.

MLInsights gathers the four sub-system reads the orchestrator blends
(pattern prediction, player analysis, optimal strategy, personality)
plus an optional chat analysis supplied by an external analyzer.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Protocol

from ai.adaptive_learning import OptimalStrategy
from ai.behavior_analyzer import PlayerStats
from ai.pattern_recognition import PatternPrediction
from ai.personality import PersonalityTraits


@dataclass(frozen=True)
class ChatAnalysis:
    sentiment: float = 0.0
    confidence: float = 0.0
    detected_bluff: bool = False
    emotional_state: str = "neutral"
    key_phrases: tuple[str, ...] = ()


class ChatAnalyzer(Protocol):
    def analyze(self, message: str) -> ChatAnalysis: ...


@dataclass(frozen=True)
class MLInsights:
    patterns: PatternPrediction
    player_stats: PlayerStats
    optimal_strategy: OptimalStrategy
    personality_traits: PersonalityTraits
    chat_analysis: ChatAnalysis | None = None

    def as_dict(self) -> dict:
        return asdict(self)
