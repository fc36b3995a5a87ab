"""
errors.py - Exception taxonomy shared by the engine and the AI.

    BluffError
      ├── GameError
      │     ├── InvalidMove          illegal action against hand / pile / turn
      │     └── NoChallengeTarget    challenge with nothing to challenge
      ├── ValidationError            malformed state or action
      └── SubsystemFailure           wrapped failure of an AI sub-system
            └── CircuitOpenError     breaker tripped, call refused
"""

from __future__ import annotations


class BluffError(Exception):
    """Base class for every error raised by this project."""


class GameError(BluffError):
    """A rules violation detected by the game engine."""


class InvalidMove(GameError):
    pass


class NoChallengeTarget(GameError):
    pass


class ValidationError(BluffError):
    """A state or action does not have the expected shape."""


class SubsystemFailure(BluffError):
    """An AI sub-system failed after all recovery attempts."""

    def __init__(self, service: str, message: str = ""):
        self.service = service
        super().__init__(message or f"Service {service} failed")


class CircuitOpenError(SubsystemFailure):
    """The circuit breaker for *service* is open; the call was not made."""

    def __init__(self, service: str, message: str = ""):
        super().__init__(
            service,
            message or f"Service {service} is currently unavailable (circuit open)",
        )
