"""Data models shared by indicators, consolidators and alpha models."""

from alpha_core.models.alpha import Alpha, AlphaDirection, AlphaType
from alpha_core.models.market_data import ConsolidatedBar, PriceObservation
from alpha_core.models.security import Security, UniverseChangeResult
from alpha_core.models.symbol import Symbol

__all__ = [
    "Alpha",
    "AlphaDirection",
    "AlphaType",
    "ConsolidatedBar",
    "PriceObservation",
    "Security",
    "Symbol",
    "UniverseChangeResult",
]
