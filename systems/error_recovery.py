"""
error_recovery.py – Circuit breakers, retry with backoff, and fallbacks.

One breaker per named AI sub-system (prediction, strategy, learning,
personality, cache, monitoring; others are created on first use).
Failure counts are shared by every game running in the process.

Breaker life cycle:

    closed     every failed attempt increments failure_count;
               reaching the threshold opens the breaker
    open       calls fail fast with CircuitOpenError, the operation is
               never invoked
    half-open  once the recovery timeout has passed since the last
               failure, exactly one trial call is let through:
               success closes the breaker, failure re-opens it

with_retry() makes up to max_attempts attempts while the breaker is
closed, sleeping base_delay · 2^(attempt-1) between attempts.
with_fallback() returns the fallback's result when the primary fails.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, TypeVar

from game.errors import CircuitOpenError, SubsystemFailure
from settings import (
    RECOVERY_SERVICES, RECOVERY_FAILURE_THRESHOLD, RECOVERY_TIMEOUT,
    RETRY_MAX_ATTEMPTS, RETRY_BASE_DELAY,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ══════════════════════════════════════════════════════════
#  Configuration
# ══════════════════════════════════════════════════════════

@dataclass
class RetryConfig:
    max_attempts: int = RETRY_MAX_ATTEMPTS
    base_delay: float = RETRY_BASE_DELAY      # seconds
    exponential_backoff: bool = True

    def delay_for(self, attempt: int) -> float:
        if self.exponential_backoff:
            return self.base_delay * 2 ** (attempt - 1)
        return self.base_delay


@dataclass
class BreakerConfig:
    failure_threshold: int = RECOVERY_FAILURE_THRESHOLD
    recovery_timeout: float = RECOVERY_TIMEOUT   # seconds


@dataclass
class CircuitBreakerState:
    failure_count: int = 0
    last_failure_time: float | None = None
    is_open: bool = False
    half_open: bool = False


# ══════════════════════════════════════════════════════════
#  Error Recovery
# ══════════════════════════════════════════════════════════

class ErrorRecovery:
    """Owns the breaker map and runs operations under retry / fallback.

    Usage:
        recovery = ErrorRecovery()
        value = recovery.with_retry(lambda: predictor.get_prediction(), "prediction")
        value = recovery.with_fallback(primary, lambda: None, "cache")
    """

    def __init__(self, breaker: BreakerConfig | None = None,
                 retry: RetryConfig | None = None,
                 clock=time.monotonic, sleep=time.sleep):
        self.breaker_cfg = breaker or BreakerConfig()
        self.retry_cfg = retry or RetryConfig()
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._circuits: dict[str, CircuitBreakerState] = {
            name: CircuitBreakerState() for name in RECOVERY_SERVICES
        }

    # ── Public API ────────────────────────────────────────

    def with_retry(self, operation: Callable[[], T], service: str,
                   config: RetryConfig | None = None) -> T:
        """Run *operation* with retries under *service*'s breaker.

        Raises CircuitOpenError when the breaker refuses or trips, and
        SubsystemFailure (chained to the last error) when every attempt
        failed without tripping it.
        """
        cfg = config or self.retry_cfg
        trial = self._admit(service)
        attempts = 1 if trial else cfg.max_attempts
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            try:
                result = operation()
            except Exception as exc:
                last_error = exc
                if self._record_failure(service, trial):
                    raise CircuitOpenError(service) from exc
                logger.debug("%s attempt %d/%d failed: %s",
                             service, attempt, attempts, exc)
                if attempt < attempts:
                    self._sleep(cfg.delay_for(attempt))
            except BaseException:
                if trial:
                    self._release_trial(service)
                raise
            else:
                self._record_success(service)
                return result

        raise SubsystemFailure(
            service, f"Service {service} failed after {attempts} attempts: {last_error}"
        ) from last_error

    def with_fallback(self, primary: Callable[[], T], fallback: Callable[[], T],
                      service: str) -> T:
        try:
            return self.with_retry(primary, service)
        except SubsystemFailure as exc:
            logger.warning("Falling back for %s: %s", service, exc)
            return fallback()

    def get_circuit_state(self, service: str) -> CircuitBreakerState | None:
        with self._lock:
            state = self._circuits.get(service)
            return replace(state) if state else None

    def reset_all_circuits(self) -> None:
        with self._lock:
            for name in self._circuits:
                self._circuits[name] = CircuitBreakerState()
        logger.info("All circuit breakers reset")

    # ── Breaker transitions ───────────────────────────────

    def _admit(self, service: str) -> bool:
        """Refuse the call if open; return True for a half-open trial."""
        now = self._clock()
        with self._lock:
            state = self._circuits.setdefault(service, CircuitBreakerState())
            if not state.is_open:
                return False
            if state.half_open:
                raise CircuitOpenError(service)
            elapsed = now - (state.last_failure_time or now)
            if elapsed < self.breaker_cfg.recovery_timeout:
                raise CircuitOpenError(service)
            state.half_open = True
            logger.info("Circuit %s half-open, allowing one trial call", service)
            return True

    def _release_trial(self, service: str) -> None:
        """Drop an interrupted trial; the breaker stays open and may re-trial."""
        with self._lock:
            self._circuits[service].half_open = False

    def _record_failure(self, service: str, trial: bool) -> bool:
        """Count a failure; return True if the breaker is (re-)opened."""
        now = self._clock()
        with self._lock:
            state = self._circuits[service]
            state.failure_count += 1
            state.last_failure_time = now
            if trial or state.failure_count >= self.breaker_cfg.failure_threshold:
                state.is_open = True
                state.half_open = False
                logger.warning("Circuit %s opened after %d failures",
                               service, state.failure_count)
                return True
            return False

    def _record_success(self, service: str) -> None:
        with self._lock:
            state = self._circuits[service]
            if state.is_open:
                logger.info("Circuit %s closed after successful trial", service)
            self._circuits[service] = CircuitBreakerState()
