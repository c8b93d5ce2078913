"""MACD alpha model package.

Importing this package triggers registration via the
@register_alpha_model decorator on MacdAlphaModel.
"""

from alpha_core.alpha.macd.generator import MacdAlphaModel
from alpha_core.alpha.macd.models import MacdAlphaConfig, MACD_ALPHA_MODEL_NAME
from alpha_core.alpha.macd.symbol_data import SymbolData

__all__ = [
    "MacdAlphaModel",
    "MacdAlphaConfig",
    "SymbolData",
    "MACD_ALPHA_MODEL_NAME",
]
