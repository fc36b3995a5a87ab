"""
cache.py – TTL cache for AI decisions and model predictions.

Entries expire after a per-entry TTL:

    decisions     30 s
    predictions    2 min
    anything else  5 min (default)

When the cache is full the oldest inserted entry is evicted first.
An optional daemon thread purges expired entries every
CACHE_SWEEP_INTERVAL seconds; stop it with stop_sweeper().

Keys are canonical JSON digests of the relevant slice of game state,
so two states that only differ in irrelevant fields share an entry.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any

from game.state import GameAction, GameState
from settings import (
    CACHE_DEFAULT_TTL, CACHE_DECISION_TTL, CACHE_PREDICTION_TTL,
    CACHE_MAX_ENTRIES, CACHE_SWEEP_INTERVAL,
)
from utils.helpers import canonical_key, game_stage

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════
#  Configuration
# ══════════════════════════════════════════════════════════

@dataclass
class CacheConfig:
    default_ttl: float = CACHE_DEFAULT_TTL
    decision_ttl: float = CACHE_DECISION_TTL
    prediction_ttl: float = CACHE_PREDICTION_TTL
    max_entries: int = CACHE_MAX_ENTRIES
    sweep_interval: float = CACHE_SWEEP_INTERVAL


@dataclass
class CacheEntry:
    value: Any
    created_at: float
    expires_at: float


@dataclass(frozen=True)
class CacheStats:
    size: int
    hits: int
    misses: int
    hit_rate: float


# ══════════════════════════════════════════════════════════
#  TTL Cache
# ══════════════════════════════════════════════════════════

class TTLCache:
    """Thread-safe TTL cache with oldest-first capacity eviction."""

    def __init__(self, config: CacheConfig | None = None, clock=time.monotonic):
        self.cfg = config or CacheConfig()
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

        self._sweeper: threading.Thread | None = None
        self._stop = threading.Event()

    def __len__(self) -> int:
        return len(self._entries)

    # ── Core operations ───────────────────────────────────

    def get(self, key: str) -> Any | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if now >= entry.expires_at:
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        now = self._clock()
        ttl = self.cfg.default_ttl if ttl is None else ttl
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.cfg.max_entries:
                oldest = next(iter(self._entries))
                del self._entries[oldest]
                logger.debug("Cache full, evicted %s", oldest)
            self._entries[key] = CacheEntry(value, now, now + ttl)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def invalidate_all(self) -> None:
        with self._lock:
            self._entries.clear()

    def purge_expired(self) -> int:
        """Drop every expired entry; return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if now >= e.expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug("Cache sweep removed %d expired entries", len(expired))
        return len(expired)

    def stats(self) -> CacheStats:
        with self._lock:
            lookups = self._hits + self._misses
            return CacheStats(
                size=len(self._entries),
                hits=self._hits,
                misses=self._misses,
                hit_rate=self._hits / lookups if lookups else 0.0,
            )

    # ── Background sweep ──────────────────────────────────

    def start_sweeper(self) -> None:
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop.clear()
        self._sweeper = threading.Thread(
            target=self._sweep_loop, name="cache-sweeper", daemon=True
        )
        self._sweeper.start()

    def stop_sweeper(self) -> None:
        self._stop.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout=1.0)
            self._sweeper = None

    def _sweep_loop(self) -> None:
        while not self._stop.wait(self.cfg.sweep_interval):
            self.purge_expired()

    # ══════════════════════════════════════════════════════
    #  Decision / prediction helpers
    # ══════════════════════════════════════════════════════

    @staticmethod
    def decision_key(state: GameState) -> str:
        last = state.last_play
        return "decision:" + canonical_key({
            "ai_cards": state.ai_hand_count,
            "human_cards": state.human_hand_count,
            "pile_size": len(state.center_pile),
            "last_play": {
                "actor": last.actor.value,
                "declared_rank": last.declared_rank,
                "count": len(last.actual_cards),
            } if last else None,
            "phase": game_stage(state.cards_in_hands),
        })

    def cache_decision(self, state: GameState, action: GameAction) -> None:
        self.set(self.decision_key(state), action, self.cfg.decision_ttl)

    def get_cached_decision(self, state: GameState) -> GameAction | None:
        return self.get(self.decision_key(state))

    def invalidate_decision_cache(self, state: GameState) -> None:
        self.delete(self.decision_key(state))

    @staticmethod
    def prediction_key(human_hand, recent_moves, phase: str) -> str:
        return "prediction:" + canonical_key({
            "hand": sorted(str(c) for c in human_hand),
            "recent": [m.as_dict() if hasattr(m, "as_dict") else m for m in recent_moves],
            "phase": phase,
        })

    def cache_model_prediction(self, human_hand, recent_moves, phase: str,
                               prediction: Any) -> None:
        self.set(self.prediction_key(human_hand, recent_moves, phase),
                 prediction, self.cfg.prediction_ttl)

    def get_cached_model_prediction(self, human_hand, recent_moves,
                                    phase: str) -> Any | None:
        return self.get(self.prediction_key(human_hand, recent_moves, phase))
