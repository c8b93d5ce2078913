"""Per-symbol state for the MACD alpha model."""

from __future__ import annotations

import logging
from decimal import Decimal
from uuid import uuid4

from alpha_core.consolidator import TimeBarConsolidator
from alpha_core.indicators import MovingAverageConvergenceDivergence
from alpha_core.models import Alpha, ConsolidatedBar, Security, Symbol
from alpha_core.subscriptions import SubscriptionManager
from alpha_core.alpha.macd.models import MacdAlphaConfig

logger = logging.getLogger(__name__)


class SymbolData:
    """Binds one symbol's consolidator to its MACD.

    The MACD is only ever updated from the consolidator's bar-close
    callback, so every sample is bucket aligned. ``cleanup()`` must run
    before the instance is dropped, otherwise the consolidator keeps
    feeding an indicator nobody reads.
    """

    def __init__(
        self,
        security: Security,
        subscriptions: SubscriptionManager,
        config: MacdAlphaConfig,
    ):
        self.security = security
        self.previous_alpha: Alpha | None = None

        self._subscriptions = subscriptions
        self._key = f"macd:{security.symbol}:{uuid4().hex[:12]}"
        self._attached = True

        self.consolidator = TimeBarConsolidator(security.symbol, config.consolidator_period)
        self.macd = MovingAverageConvergenceDivergence(
            config.fast_period, config.slow_period, config.signal_period
        )

        self.consolidator.subscribe(self._key, self._on_data_consolidated)
        subscriptions.add_consolidator(security.symbol, self.consolidator)

    @property
    def symbol(self) -> Symbol:
        return self.security.symbol

    @property
    def price(self) -> Decimal:
        """Current security price (zero until the first observation)."""
        return self.security.price

    @property
    def signal(self) -> Decimal:
        return self.macd.signal()

    @property
    def is_ready(self) -> bool:
        return self.macd.is_ready

    @property
    def is_attached(self) -> bool:
        return self._attached

    def cleanup(self) -> bool:
        """Unsubscribe from the consolidator and detach it from the data source.

        Returns:
            False if the tracker was already cleaned up
        """
        if not self._attached:
            logger.warning(f"SymbolData for {self.symbol} already cleaned up")
            return False

        self.consolidator.unsubscribe(self._key)
        self._subscriptions.remove_consolidator(self.symbol, self.consolidator)
        self._attached = False
        return True

    def _on_data_consolidated(self, bar: ConsolidatedBar) -> None:
        self.macd.update(bar.end_time, bar.value)
