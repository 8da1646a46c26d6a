"""Exception taxonomy for the game core."""

from __future__ import annotations


class ScattergoriesError(Exception):
    """Base class for errors raised by the game core."""


class ConfigurationError(ScattergoriesError, ValueError):
    """Inconsistent bounds, undersized category pools and similar setup mistakes."""


class InsufficientParticipantsError(ScattergoriesError, ValueError):
    def __init__(self, count: int, minimum: int) -> None:
        super().__init__(f"need at least {minimum} participants, got {count}")
        self.count = count
        self.minimum = minimum


class TurnStateError(ScattergoriesError):
    """A session lifecycle call arrived in the wrong turn phase."""
