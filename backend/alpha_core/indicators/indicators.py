"""Moving average indicators for alpha generation.

Two flavours of the same recurrence are provided:
1. Streaming indicators (``ExponentialMovingAverage``,
   ``MovingAverageConvergenceDivergence``) updated one consolidated bar at a
   time, using Decimal arithmetic so replays are bit-for-bit reproducible.
2. Batch NumPy functions (``ema``, ``macd``) computing the full series over
   a price history, used for offline checks and reporting.

Both seed each average with its first sample and then apply
``ema = value * k + ema * (1 - k)`` with ``k = 2 / (period + 1)``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Sequence

import numpy as np

from alpha_core.errors import ConfigurationError

_ZERO = Decimal("0")


def _to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _validate_period(name: str, period: int) -> int:
    if not isinstance(period, int) or isinstance(period, bool) or period <= 0:
        raise ConfigurationError(
            f"{name} must be a positive integer", **{name: period}
        )
    return period


# =============================================================================
# Streaming indicators
# =============================================================================

class ExponentialMovingAverage:
    """Exponential moving average updated one sample at a time."""

    def __init__(self, period: int):
        self.period = _validate_period("period", period)
        self.k = Decimal(2) / Decimal(period + 1)
        self.current_time: datetime | None = None
        self._current = _ZERO
        self._samples = 0

    @property
    def current(self) -> Decimal:
        return self._current

    @property
    def samples(self) -> int:
        return self._samples

    @property
    def is_ready(self) -> bool:
        return self._samples >= self.period

    def update(self, time: datetime, value) -> Decimal:
        """Feed one sample and return the new average."""
        value = _to_decimal(value)
        self._samples += 1
        if self._samples == 1:
            self._current = value
        else:
            self._current = value * self.k + self._current * (1 - self.k)
        self.current_time = time
        return self._current

    def reset(self) -> None:
        self._current = _ZERO
        self._samples = 0
        self.current_time = None

    def __repr__(self) -> str:
        return f"EMA({self.period})={self._current} samples={self._samples}"


class MovingAverageConvergenceDivergence:
    """MACD: fast EMA minus slow EMA, smoothed by a signal-line EMA.

    Outputs read as zero until ``warm_up_period`` samples have been seen.
    """

    def __init__(
        self,
        fast_period: int = 12,
        slow_period: int = 26,
        signal_period: int = 9,
    ):
        self.fast = ExponentialMovingAverage(_validate_period("fast_period", fast_period))
        self.slow = ExponentialMovingAverage(_validate_period("slow_period", slow_period))
        self.signal_line = ExponentialMovingAverage(
            _validate_period("signal_period", signal_period)
        )
        self.warm_up_period = max(fast_period, slow_period, signal_period)
        self.current_time: datetime | None = None
        self._macd = _ZERO
        self._samples = 0

    @property
    def samples(self) -> int:
        return self._samples

    @property
    def is_ready(self) -> bool:
        return self._samples >= self.warm_up_period

    def update(self, time: datetime, value) -> None:
        """Feed one consolidated sample."""
        value = _to_decimal(value)
        fast = self.fast.update(time, value)
        slow = self.slow.update(time, value)
        self._macd = fast - slow
        self.signal_line.update(time, self._macd)
        self._samples += 1
        self.current_time = time

    def macd(self) -> Decimal:
        """Fast EMA minus slow EMA."""
        return self._macd if self.is_ready else _ZERO

    def signal(self) -> Decimal:
        """EMA of the MACD line."""
        return self.signal_line.current if self.is_ready else _ZERO

    def histogram(self) -> Decimal:
        """MACD line minus signal line."""
        return self.macd() - self.signal()

    def reset(self) -> None:
        self.fast.reset()
        self.slow.reset()
        self.signal_line.reset()
        self._macd = _ZERO
        self._samples = 0
        self.current_time = None

    def __repr__(self) -> str:
        return (
            f"MACD({self.fast.period},{self.slow.period},{self.signal_line.period}) "
            f"macd={self.macd()} signal={self.signal()} samples={self._samples}"
        )


# =============================================================================
# Batch NumPy implementations
# =============================================================================

def _seeded_ema(arr: np.ndarray, period: int) -> np.ndarray:
    k = 2.0 / (period + 1)
    result = np.empty_like(arr)
    if len(arr) == 0:
        return result
    result[0] = arr[0]
    for i in range(1, len(arr)):
        result[i] = arr[i] * k + result[i - 1] * (1 - k)
    return result


def ema(values: Sequence[Decimal], period: int) -> list[Decimal]:
    """
    Calculate Exponential Moving Average over a full history.

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        List of EMA values (same length as input, NaN until ``period`` samples)
    """
    _validate_period("period", period)
    arr = np.array([float(v) for v in values], dtype=np.float64)
    result = _seeded_ema(arr, period)
    result[: period - 1] = np.nan

    return [Decimal(str(v)) if not np.isnan(v) else Decimal("NaN") for v in result]


def macd(
    values: Sequence[Decimal],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> tuple[list[Decimal], list[Decimal], list[Decimal]]:
    """
    Calculate MACD over a full history.

    Args:
        values: Sequence of consolidated bar values
        fast_period: Fast EMA period
        slow_period: Slow EMA period
        signal_period: Signal line EMA period

    Returns:
        Tuple of (macd_line, signal_line, histogram) lists, NaN during warm-up
    """
    for name, period in (
        ("fast_period", fast_period),
        ("slow_period", slow_period),
        ("signal_period", signal_period),
    ):
        _validate_period(name, period)

    arr = np.array([float(v) for v in values], dtype=np.float64)
    macd_line = _seeded_ema(arr, fast_period) - _seeded_ema(arr, slow_period)
    signal_line = _seeded_ema(macd_line, signal_period)
    histogram = macd_line - signal_line

    warm_up = max(fast_period, slow_period, signal_period)
    for series in (macd_line, signal_line, histogram):
        series[: warm_up - 1] = np.nan

    def _to_list(series: np.ndarray) -> list[Decimal]:
        return [Decimal(str(v)) if not np.isnan(v) else Decimal("NaN") for v in series]

    return _to_list(macd_line), _to_list(signal_line), _to_list(histogram)
