"""Alpha model registry: look up alpha model classes by name.

Usage:
    @register_alpha_model("my_model")
    class MyAlphaModel:
        ...

    model = create_alpha_model("my_model", subscriptions=subscriptions)
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

# model name -> model class
_MODELS: dict[str, type] = {}


def register_alpha_model(name: str):
    """Class decorator registering an alpha model under ``name``.

    Raises:
        ValueError: If ``name`` is already taken by another class.
    """

    def decorator(cls):
        existing = _MODELS.get(name)
        if existing is not None:
            raise ValueError(
                f"Alpha model '{name}' is already registered by {existing.__name__}"
            )
        _MODELS[name] = cls
        logger.debug("Registered alpha model: %s -> %s", name, cls.__name__)
        return cls

    return decorator


def get_alpha_model_class(name: str) -> type:
    """Return the class registered under ``name``.

    Raises:
        KeyError: If nothing is registered under ``name``.
    """
    try:
        return _MODELS[name]
    except KeyError:
        available = ", ".join(list_alpha_models()) or "(none)"
        raise KeyError(f"Unknown alpha model '{name}'. Available: {available}") from None


def create_alpha_model(name: str, **kwargs: Any):
    """Instantiate the alpha model registered under ``name`` with ``kwargs``."""
    return get_alpha_model_class(name)(**kwargs)


def list_alpha_models() -> list[str]:
    return sorted(_MODELS)
