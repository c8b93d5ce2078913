"""Exception hierarchy for alpha generation.

Configuration errors are raised and abort construction. Universe anomalies
are logged and handed back to the caller inside ``UniverseChangeResult``;
they never interrupt processing of the rest of the tracked set.
"""

from typing import Any


class AlphaModelError(Exception):
    """Base exception for all alpha generation errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.context: dict[str, Any] = context

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{super().__str__()} [{ctx}]"
        return super().__str__()


class ConfigurationError(AlphaModelError):
    """Raised at construction time for invalid periods, durations or thresholds."""


class UniverseConsistencyError(AlphaModelError):
    """An added symbol is already tracked (upstream sent a duplicate add)."""


class StaleRemovalWarning(AlphaModelError, UserWarning):
    """A removed symbol was not tracked (duplicate or stale removal)."""
