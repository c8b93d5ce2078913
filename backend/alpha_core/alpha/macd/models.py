"""MACD alpha model configuration."""

from datetime import timedelta
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from alpha_core.errors import ConfigurationError

MACD_ALPHA_MODEL_NAME = "macd"


class MacdAlphaConfig(BaseModel):
    """Configuration for the MACD alpha model.

    Invalid values raise ``ConfigurationError`` at construction.
    """

    model_config = ConfigDict(frozen=True)

    # Bar size fed to the MACD
    consolidator_period: timedelta = timedelta(minutes=10)

    # Validity period stamped on emitted alphas
    alpha_period: timedelta = timedelta(minutes=30)

    # |signal / price| needed for an up/down call; stored as absolute value
    bounce_threshold_percent: Decimal = Decimal("0.01")

    # MACD periods
    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9

    @field_validator("bounce_threshold_percent")
    @classmethod
    def _absolute_threshold(cls, v: Decimal) -> Decimal:
        return abs(v)

    @model_validator(mode="after")
    def _validate(self):
        if self.consolidator_period <= timedelta(0):
            raise ConfigurationError(
                "consolidator_period must be positive",
                consolidator_period=self.consolidator_period,
            )
        if self.alpha_period < timedelta(0):
            raise ConfigurationError(
                "alpha_period must not be negative",
                alpha_period=self.alpha_period,
            )
        for name in ("fast_period", "slow_period", "signal_period"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive", **{name: value})
        if not self.bounce_threshold_percent.is_finite():
            raise ConfigurationError(
                "bounce_threshold_percent must be finite",
                bounce_threshold_percent=self.bounce_threshold_percent,
            )
        return self
