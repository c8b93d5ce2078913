"""Time bar consolidator for bucketing price observations into fixed bars.

Buckets are aligned to multiples of the period since the Unix epoch, so a
10 minute consolidator closes bars at :00, :10, :20, ... regardless of when
the first observation arrives.

A bucket closes when:
- an observation arrives whose timestamp falls in a later bucket, or
- ``scan()`` is called with a clock time at or past the bucket end.

Each close notifies every subscriber synchronously with a ``ConsolidatedBar``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Hashable

from alpha_core.errors import ConfigurationError
from alpha_core.models import ConsolidatedBar, PriceObservation, Symbol

logger = logging.getLogger(__name__)

BarCallback = Callable[[ConsolidatedBar], None]

_EPOCH_UTC = datetime(1970, 1, 1, tzinfo=timezone.utc)


def bucket_start(time: datetime, period: timedelta) -> datetime:
    """Get the bucket start for a timestamp, aligned to the epoch."""
    epoch = _EPOCH_UTC if time.tzinfo is not None else _EPOCH_UTC.replace(tzinfo=None)
    return epoch + ((time - epoch) // period) * period


@dataclass(slots=True)
class WorkingBar:
    """The pending (not yet closed) bucket."""

    time: datetime
    end_time: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    count: int = 1

    def add(self, price: Decimal) -> None:
        if price > self.high:
            self.high = price
        if price < self.low:
            self.low = price
        self.close = price
        self.count += 1

    def to_bar(self, symbol: Symbol) -> ConsolidatedBar:
        return ConsolidatedBar(
            symbol=symbol,
            time=self.time,
            end_time=self.end_time,
            open=self.open,
            high=self.high,
            low=self.low,
            close=self.close,
            count=self.count,
        )


class TimeBarConsolidator:
    """Consolidates observations of one symbol into fixed-duration bars.

    Usage:
        consolidator = TimeBarConsolidator(symbol, timedelta(minutes=10))
        consolidator.subscribe("macd", lambda bar: macd.update(bar.end_time, bar.value))

        for observation in observations:
            consolidator.update(observation)
    """

    def __init__(self, symbol: Symbol, period: timedelta):
        if not isinstance(period, timedelta) or period <= timedelta(0):
            raise ConfigurationError(
                "Consolidator period must be a positive duration",
                symbol=symbol,
                period=period,
            )
        self.symbol = symbol
        self.period = period
        self._subscribers: dict[Hashable, BarCallback] = {}
        self._working: WorkingBar | None = None
        self.consolidated: ConsolidatedBar | None = None

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, key: Hashable, callback: BarCallback) -> None:
        """Register a callback for closed bars under ``key``.

        Subscribing again with the same key replaces the callback.
        """
        if key in self._subscribers:
            logger.debug(f"Replacing bar subscriber {key!r} on {self.symbol}")
        self._subscribers[key] = callback

    def unsubscribe(self, key: Hashable) -> bool:
        """Remove the callback registered under ``key``.

        Returns:
            True if a callback was removed, False if none was registered
        """
        return self._subscribers.pop(key, None) is not None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def working_bar(self) -> WorkingBar | None:
        """Current pending bucket, if any."""
        return self._working

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------

    def update(self, observation: PriceObservation) -> None:
        """Add an observation, closing the pending bucket if it has been crossed."""
        if observation.symbol != self.symbol:
            logger.warning(
                f"Ignoring {observation.symbol} observation in {self.symbol} consolidator"
            )
            return

        start = bucket_start(observation.time, self.period)

        if self._working is not None:
            if start < self._working.time:
                logger.warning(
                    f"Dropping out-of-order observation for {self.symbol} at "
                    f"{observation.time} (pending bucket starts {self._working.time})"
                )
                return
            if start >= self._working.end_time:
                self._close()

        if self._working is None:
            price = observation.price
            self._working = WorkingBar(
                time=start,
                end_time=start + self.period,
                open=price,
                high=price,
                low=price,
                close=price,
            )
        else:
            self._working.add(observation.price)

    def scan(self, current_time: datetime) -> None:
        """Close the pending bucket if the clock has reached its end."""
        if self._working is not None and current_time >= self._working.end_time:
            self._close()

    def _close(self) -> None:
        bar = self._working.to_bar(self.symbol)
        self._working = None
        self.consolidated = bar
        logger.debug(
            f"Consolidated {self.symbol} {bar.time} -> {bar.end_time} "
            f"close={bar.close} ({bar.count} observations)"
        )

        for key, callback in list(self._subscribers.items()):
            try:
                callback(bar)
            except Exception as e:
                logger.error(f"Bar subscriber {key!r} failed for {self.symbol}: {e}")

    def reset(self) -> None:
        """Drop the pending bucket and the last consolidated bar."""
        self._working = None
        self.consolidated = None
