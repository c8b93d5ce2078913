"""Alpha model protocol defining the interface all alpha models implement.

This module provides:
- AlphaModel: Runtime-checkable Protocol that alpha models must satisfy
- Type alias for alpha listener callbacks
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, Protocol, runtime_checkable

from alpha_core.models import Alpha, Symbol, UniverseChangeResult

AlphaCallback = Callable[[Alpha], None]


@runtime_checkable
class AlphaModel(Protocol):
    """Protocol that all alpha models must implement.

    Alpha models are responsible for:
    1. Creating and discarding per-symbol state as the universe changes
    2. Turning indicator state into alphas on each scheduler tick
    """

    @property
    def name(self) -> str:
        """Unique alpha model identifier (e.g., 'macd')."""
        ...

    def update(self, current_time: datetime) -> list[Alpha]:
        """Evaluate every tracked symbol and return the newly emitted alphas."""
        ...

    def on_universe_changed(
        self,
        added: Iterable[Symbol],
        removed: Iterable[Symbol],
    ) -> UniverseChangeResult:
        """Start tracking added symbols and clean up removed ones."""
        ...
