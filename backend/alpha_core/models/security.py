"""Security price holder and universe change result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from alpha_core.models.market_data import PriceObservation
from alpha_core.models.symbol import Symbol


@dataclass(slots=True)
class Security:
    """Latest known price of a subscribed instrument.

    The price stays at zero until the first observation arrives.
    """

    symbol: Symbol
    price: Decimal = Decimal("0")
    last_update: datetime | None = None

    @property
    def has_data(self) -> bool:
        return self.last_update is not None

    def set_market_price(self, observation: PriceObservation) -> None:
        """Update the current price from an observation."""
        self.price = observation.price
        self.last_update = observation.end_time


@dataclass
class UniverseChangeResult:
    """Outcome of applying one universe change delivery.

    ``errors`` and ``warnings`` hold the anomalies that were reported
    (logged) but did not stop the rest of the delivery from applying.
    """

    added: list[Symbol] = field(default_factory=list)
    removed: list[Symbol] = field(default_factory=list)
    errors: list[Exception] = field(default_factory=list)
    warnings: list[Exception] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and not self.warnings

    def extend(self, other: UniverseChangeResult) -> None:
        self.added.extend(other.added)
        self.removed.extend(other.removed)
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
