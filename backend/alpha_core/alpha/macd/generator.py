"""MACD alpha model implementation.

Per-symbol logic on each scheduler tick:
- normalized = MACD signal line / current price
- UP if normalized > threshold, DOWN if normalized < -threshold, else FLAT
- An alpha is emitted only when its direction differs from the last one
  emitted for that symbol

This module is pure business logic with no I/O dependencies.
"""

import logging
from datetime import datetime
from typing import Iterable, Mapping

from alpha_core.errors import StaleRemovalWarning, UniverseConsistencyError
from alpha_core.models import (
    Alpha,
    AlphaDirection,
    AlphaType,
    Symbol,
    UniverseChangeResult,
)
from alpha_core.subscriptions import SubscriptionManager
from alpha_core.alpha.macd.models import MacdAlphaConfig, MACD_ALPHA_MODEL_NAME
from alpha_core.alpha.macd.symbol_data import SymbolData
from alpha_core.alpha.protocol import AlphaCallback
from alpha_core.alpha.registry import register_alpha_model

logger = logging.getLogger(__name__)


@register_alpha_model(MACD_ALPHA_MODEL_NAME)
class MacdAlphaModel:
    """MACD bounce alpha model.

    Alpha Logic:
    - The MACD runs on consolidated bars of ``consolidator_period``
    - Its signal line, normalized by price, is compared to the bounce threshold
    - Symbols with no price yet or an indicator still warming up are skipped

    Lifecycle:
    - One SymbolData per tracked symbol, created and destroyed only by
      ``on_universe_changed``; ``update`` never adds or removes trackers
    """

    def __init__(
        self,
        subscriptions: SubscriptionManager | None = None,
        config: MacdAlphaConfig | None = None,
    ):
        self.config = config or MacdAlphaConfig()
        self.subscriptions = subscriptions or SubscriptionManager()

        self.alpha_period = self.config.alpha_period
        self.bounce_threshold = abs(self.config.bounce_threshold_percent)

        self._symbol_data: dict[Symbol, SymbolData] = {}
        self._callbacks: list[AlphaCallback] = []

    # ------------------------------------------------------------------
    # AlphaModel Protocol properties
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return MACD_ALPHA_MODEL_NAME

    @property
    def version(self) -> str:
        return "1.0.0"

    # ------------------------------------------------------------------
    # Tracked set
    # ------------------------------------------------------------------

    @property
    def symbols(self) -> set[Symbol]:
        return set(self._symbol_data)

    @property
    def symbol_data(self) -> Mapping[Symbol, SymbolData]:
        return dict(self._symbol_data)

    def get_symbol_data(self, symbol: Symbol) -> SymbolData | None:
        return self._symbol_data.get(symbol)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._symbol_data

    def __len__(self) -> int:
        return len(self._symbol_data)

    def on_alpha(self, callback: AlphaCallback) -> None:
        """Register callback for emitted alphas."""
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def off_alpha(self, callback: AlphaCallback) -> None:
        """Unregister callback for emitted alphas."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    # ------------------------------------------------------------------
    # Universe changes
    # ------------------------------------------------------------------

    def on_universe_changed(
        self,
        added: Iterable[Symbol],
        removed: Iterable[Symbol],
    ) -> UniverseChangeResult:
        """Create trackers for added symbols and clean up removed ones.

        Additions are applied first. A symbol listed in both sets therefore
        ends up untracked: a tracked one is reported as a duplicate add and
        then removed, an untracked one is added and then removed.

        Returns:
            UniverseChangeResult listing applied changes and reported anomalies
        """
        result = UniverseChangeResult()

        for symbol in added:
            if symbol in self._symbol_data:
                error = UniverseConsistencyError(
                    "Added symbol is already tracked", symbol=symbol, model=self.name
                )
                logger.error(str(error))
                result.errors.append(error)
                continue

            security = self.subscriptions.add_security(symbol)
            self._symbol_data[symbol] = SymbolData(security, self.subscriptions, self.config)
            result.added.append(symbol)
            logger.info(
                f"MACD: tracking {symbol} "
                f"({self.config.consolidator_period} bars, "
                f"{self.config.fast_period}/{self.config.slow_period}/{self.config.signal_period})"
            )

        for symbol in removed:
            data = self._symbol_data.pop(symbol, None)
            if data is None:
                warning = StaleRemovalWarning(
                    "Removed symbol is not tracked", symbol=symbol, model=self.name
                )
                logger.warning(str(warning))
                result.warnings.append(warning)
                continue

            data.cleanup()
            result.removed.append(symbol)
            logger.info(f"MACD: stopped tracking {symbol}")

        return result

    # ------------------------------------------------------------------
    # Core logic
    # ------------------------------------------------------------------

    def classify(self, data: SymbolData) -> AlphaDirection:
        """Map a tracker's normalized signal onto a direction."""
        normalized = data.signal / data.price
        if normalized > self.bounce_threshold:
            return AlphaDirection.UP
        if normalized < -self.bounce_threshold:
            return AlphaDirection.DOWN
        return AlphaDirection.FLAT

    def _evaluate(self, data: SymbolData, current_time: datetime) -> Alpha | None:
        if data.price == 0:
            logger.debug(f"MACD: {data.symbol} has no price yet, deferred")
            return None

        if not data.is_ready:
            logger.debug(
                f"MACD: {data.symbol} warming up "
                f"({data.macd.samples}/{data.macd.warm_up_period} bars), deferred"
            )
            return None

        alpha = Alpha(
            symbol=data.symbol,
            type=AlphaType.PRICE,
            direction=self.classify(data),
            period=self.alpha_period,
            generated_time_utc=current_time,
            source_model=self.name,
        )

        if alpha == data.previous_alpha:
            logger.debug(f"MACD: {data.symbol} still {alpha.direction.name}, suppressed")
            return None

        data.previous_alpha = alpha.clone()
        return alpha

    def update(self, current_time: datetime) -> list[Alpha]:
        """Evaluate every tracked symbol and return alphas whose direction changed.

        Args:
            current_time: Scheduler tick time, stamped on emitted alphas

        Returns:
            Newly emitted alphas (possibly empty), in tracking order
        """
        alphas: list[Alpha] = []

        for data in self._symbol_data.values():
            try:
                alpha = self._evaluate(data, current_time)
            except Exception:
                logger.error(f"MACD: evaluation failed for {data.symbol}", exc_info=True)
                continue

            if alpha is None:
                continue

            alphas.append(alpha)
            logger.info(
                f"MACD {alpha.direction.name}: {alpha.symbol} @ {data.price} "
                f"signal={data.signal} period={alpha.period}"
            )

        for alpha in alphas:
            for callback in self._callbacks:
                try:
                    callback(alpha)
                except Exception as e:
                    logger.error(f"MACD alpha callback error: {e}")

        return alphas
