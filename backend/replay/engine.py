"""Replay engine driving an alpha model through recorded data.

Processing order before each observation at time t:
1. Apply universe snapshots and fire scheduler ticks due at or before t,
   in time order (a snapshot and a tick at the same time: snapshot first)
2. Each tick scans consolidators, then calls ``model.update(tick_time)``
3. Push the observation into the subscription manager
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable

from alpha_core.alpha import AlphaModel
from alpha_core.consolidator import bucket_start
from alpha_core.errors import ConfigurationError
from alpha_core.models import Alpha, ConsolidatedBar, PriceObservation, Symbol
from alpha_core.subscriptions import SubscriptionManager

from replay.universe import UniverseDelta, UniverseSchedule

logger = logging.getLogger(__name__)

_RECORDER_KEY = "replay-recorder"


@dataclass
class ReplayResult:
    """Everything a replay run produced."""

    alphas: list[Alpha] = field(default_factory=list)
    observations: int = 0
    ticks: int = 0
    start_time: datetime | None = None
    end_time: datetime | None = None
    universe_errors: list[str] = field(default_factory=list)
    universe_warnings: list[str] = field(default_factory=list)
    # Closed bar values per symbol, in order, as seen by the model's consolidators
    bar_closes: dict[Symbol, list[Decimal]] = field(default_factory=lambda: defaultdict(list))

    @property
    def by_symbol(self) -> dict[str, int]:
        return dict(Counter(str(a.symbol) for a in self.alphas))

    @property
    def by_direction(self) -> dict[str, int]:
        return dict(Counter(a.direction.name for a in self.alphas))


class ReplayEngine:
    """Replay observations through an alpha model on a fixed tick cadence."""

    def __init__(
        self,
        model: AlphaModel,
        subscriptions: SubscriptionManager,
        schedule: UniverseSchedule,
        tick_interval: timedelta = timedelta(minutes=1),
    ):
        if tick_interval <= timedelta(0):
            raise ConfigurationError("tick_interval must be positive", tick_interval=tick_interval)
        self.model = model
        self.subscriptions = subscriptions
        self.schedule = schedule
        self.tick_interval = tick_interval

        self._next_tick: datetime | None = None
        self._last_tick: datetime | None = None
        self._result = ReplayResult()

    def run(self, observations: Iterable[PriceObservation]) -> ReplayResult:
        """Replay observations (time ordered) and return the collected result."""
        result = self._result = ReplayResult()
        self._next_tick = None
        self._last_tick = None
        last_time: datetime | None = None

        for observation in observations:
            if self._next_tick is None:
                self._next_tick = (
                    bucket_start(observation.time, self.tick_interval) + self.tick_interval
                )
                result.start_time = observation.time

            self._advance(observation.time)
            self.subscriptions.push(observation)
            result.observations += 1
            last_time = observation.time

        if last_time is not None:
            if self._last_tick is None or self._last_tick < last_time:
                self._tick(last_time)
            result.end_time = last_time

        logger.info(
            f"Replay finished: {result.observations:,} observations, "
            f"{result.ticks:,} ticks, {len(result.alphas)} alphas"
        )
        return result

    def _advance(self, until: datetime) -> None:
        while True:
            change_time = self.schedule.next_time
            tick_due = self._next_tick <= until
            change_due = change_time is not None and change_time <= until

            if change_due and (not tick_due or change_time <= self._next_tick):
                self._apply_universe(self.schedule.pop_next())
            elif tick_due:
                self._tick(self._next_tick)
                self._next_tick += self.tick_interval
            else:
                break

    def _tick(self, tick_time: datetime) -> None:
        self.subscriptions.scan(tick_time)
        alphas = self.model.update(tick_time)
        self._result.alphas.extend(alphas)
        self._result.ticks += 1
        self._last_tick = tick_time

    def _apply_universe(self, delta: UniverseDelta) -> None:
        if delta.is_empty:
            return

        # Sorted so replays are reproducible regardless of set ordering
        added = sorted(delta.added, key=str)
        removed = sorted(delta.removed, key=str)
        logger.info(
            f"Universe change at {delta.time}: +{len(added)} -{len(removed)}"
        )
        change = self.model.on_universe_changed(added, removed)
        self._result.universe_errors.extend(str(e) for e in change.errors)
        self._result.universe_warnings.extend(str(w) for w in change.warnings)

        get_symbol_data = getattr(self.model, "get_symbol_data", None)
        if get_symbol_data is None:
            return
        for symbol in change.added:
            data = get_symbol_data(symbol)
            if data is not None:
                self._result.bar_closes[symbol] = []
                data.consolidator.subscribe(_RECORDER_KEY, self._record_bar)

    def _record_bar(self, bar: ConsolidatedBar) -> None:
        self._result.bar_closes[bar.symbol].append(bar.value)
