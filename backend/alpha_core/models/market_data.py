"""Price observation and consolidated bar models."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, model_validator

from alpha_core.models.symbol import Symbol


class PriceObservation(BaseModel):
    """A single validated price print for an instrument.

    ``time`` is when the observation starts, ``end_time`` when it is
    complete. For tick-like observations both are equal.
    """

    model_config = ConfigDict(frozen=True)

    symbol: Symbol
    time: datetime
    price: Decimal
    end_time: datetime | None = None

    @model_validator(mode="after")
    def _default_end_time(self):
        if self.end_time is None:
            object.__setattr__(self, "end_time", self.time)
        return self


class ConsolidatedBar(BaseModel):
    """A fixed-duration bar produced when a consolidation bucket closes."""

    model_config = ConfigDict(frozen=True)

    symbol: Symbol
    time: datetime  # Bucket start
    end_time: datetime  # Bucket end (start + period)
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    count: int = 0  # Number of observations aggregated

    @property
    def value(self) -> Decimal:
        """Scalar sample of the bar (the close)."""
        return self.close
