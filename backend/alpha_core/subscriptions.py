"""Subscription manager: the data source consolidators attach to.

Routes each price observation to the security price cache (the side-channel
alpha models read current prices from) and then to every consolidator
attached to the observation's symbol.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime

from alpha_core.consolidator import TimeBarConsolidator
from alpha_core.models import PriceObservation, Security, Symbol

logger = logging.getLogger(__name__)


class SubscriptionManager:
    """Per-symbol consolidator registry and security price cache.

    Usage:
        subscriptions = SubscriptionManager()
        subscriptions.add_consolidator(symbol, consolidator)

        for observation in observations:
            subscriptions.push(observation)
    """

    def __init__(self):
        self._securities: dict[Symbol, Security] = {}
        self._consolidators: dict[Symbol, list[TimeBarConsolidator]] = defaultdict(list)

    # ------------------------------------------------------------------
    # Securities
    # ------------------------------------------------------------------

    def add_security(self, symbol: Symbol) -> Security:
        """Get or create the security for a symbol."""
        security = self._securities.get(symbol)
        if security is None:
            security = Security(symbol=symbol)
            self._securities[symbol] = security
        return security

    def get_security(self, symbol: Symbol) -> Security | None:
        return self._securities.get(symbol)

    # ------------------------------------------------------------------
    # Consolidators
    # ------------------------------------------------------------------

    def add_consolidator(self, symbol: Symbol, consolidator: TimeBarConsolidator) -> None:
        """Attach a consolidator to a symbol's observation stream."""
        self.add_security(symbol)
        attached = self._consolidators[symbol]
        if any(c is consolidator for c in attached):
            return
        attached.append(consolidator)
        logger.debug(f"Attached {consolidator.period} consolidator to {symbol}")

    def remove_consolidator(self, symbol: Symbol, consolidator: TimeBarConsolidator) -> bool:
        """Detach a consolidator. Returns False if it was not attached."""
        attached = self._consolidators.get(symbol)
        if not attached:
            return False
        for i, c in enumerate(attached):
            if c is consolidator:
                del attached[i]
                if not attached:
                    del self._consolidators[symbol]
                logger.debug(f"Detached {consolidator.period} consolidator from {symbol}")
                return True
        return False

    def consolidators(self, symbol: Symbol) -> list[TimeBarConsolidator]:
        return list(self._consolidators.get(symbol, ()))

    # ------------------------------------------------------------------
    # Data flow
    # ------------------------------------------------------------------

    def push(self, observation: PriceObservation) -> None:
        """Deliver an observation: update the price cache, then consolidators."""
        self.add_security(observation.symbol).set_market_price(observation)

        for consolidator in self.consolidators(observation.symbol):
            consolidator.update(observation)

    def scan(self, current_time: datetime) -> None:
        """Let every attached consolidator close buckets that have ended."""
        for attached in list(self._consolidators.values()):
            for consolidator in list(attached):
                consolidator.scan(current_time)
