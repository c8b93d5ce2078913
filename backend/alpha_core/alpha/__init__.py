"""Alpha model plugin system.

Public API:
- AlphaModel: Protocol that all alpha models must implement
- register_alpha_model: Decorator to register an alpha model class
- create_alpha_model: Factory function to instantiate alpha models by name
- list_alpha_models: Discover all registered alpha models
- get_alpha_model_class: Get alpha model class by name without instantiating

Importing this package auto-registers all built-in alpha models.
"""

from alpha_core.alpha.protocol import AlphaCallback, AlphaModel
from alpha_core.alpha.registry import (
    create_alpha_model,
    get_alpha_model_class,
    list_alpha_models,
    register_alpha_model,
)

# Import built-in alpha models to trigger auto-registration
import alpha_core.alpha.macd  # noqa: F401

__all__ = [
    "AlphaCallback",
    "AlphaModel",
    "create_alpha_model",
    "get_alpha_model_class",
    "list_alpha_models",
    "register_alpha_model",
]
