"""Technical indicators (pure math, no I/O)."""

from alpha_core.indicators.indicators import (
    ExponentialMovingAverage,
    MovingAverageConvergenceDivergence,
    ema,
    macd,
)

__all__ = [
    "ExponentialMovingAverage",
    "MovingAverageConvergenceDivergence",
    "ema",
    "macd",
]
