"""Strategy registry for discovering and instantiating strategies.

Usage:
    @register_strategy("my_strategy", config=MyStrategyConfig)
    class MyStrategy(BaseStrategy):
        ...

    strategy = create_strategy("my_strategy", config={"period": 10})
    strategies = list_strategies()

Configs are validated when the strategy is created, so a bad parameter
bag fails before any evaluation is attempted.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from tradecore.errors import UnknownStrategyError
from tradecore.models.config import parse_config

logger = logging.getLogger(__name__)

# Global registry: strategy_name -> (strategy_class, config_class)
_REGISTRY: dict[str, tuple[type, type[BaseModel]]] = {}
# Alternate spellings -> registered name
_ALIASES: dict[str, str] = {}


def normalize_name(name: str) -> str:
    """Lower-case and use underscores ('Day-Trading' -> 'day_trading')."""
    return name.strip().lower().replace("-", "_").replace(" ", "_")


def register_strategy(
    name: str,
    config: type[BaseModel],
    aliases: tuple[str, ...] = (),
):
    """Decorator to register a strategy class under a given name.

    Args:
        name: Unique strategy name (e.g., 'scalping').
        config: Pydantic model holding the strategy's parameters.
        aliases: Extra names that resolve to this strategy.

    Returns:
        Decorator that registers the class and returns it unchanged.

    Raises:
        ValueError: If a strategy with the same name is already registered.
    """
    key = normalize_name(name)

    def decorator(cls):
        if key in _REGISTRY or key in _ALIASES:
            raise ValueError(
                f"Strategy '{key}' is already registered by {_REGISTRY[_resolve(key)][0].__name__}"
            )
        _REGISTRY[key] = (cls, config)
        for alias in aliases:
            _ALIASES[normalize_name(alias)] = key
        logger.debug("Registered strategy: %s -> %s", key, cls.__name__)
        return cls

    return decorator


def _resolve(name: str) -> str:
    key = normalize_name(name)
    return _ALIASES.get(key, key)


def canonical_name(name: str) -> str:
    """Registered name for a strategy name or alias ('grid' -> 'grid_trading').

    Raises:
        UnknownStrategyError: If nothing is registered under the name.
    """
    key = _resolve(name)
    if key not in _REGISTRY:
        raise UnknownStrategyError(name, list_strategies())
    return key


def _lookup(name: str) -> tuple[type, type[BaseModel]]:
    entry = _REGISTRY.get(_resolve(name))
    if entry is None:
        raise UnknownStrategyError(name, list_strategies())
    return entry


def create_strategy(name: str, config: BaseModel | Mapping[str, Any] | None = None):
    """Create a strategy instance by name.

    Args:
        name: Registered strategy name or alias.
        config: Config model instance or raw parameter mapping; None for defaults.

    Returns:
        An instance of the registered strategy class.

    Raises:
        UnknownStrategyError: If no strategy is registered under the given name.
        InvalidParameterError: If the config fails validation.
    """
    cls, config_cls = _lookup(name)
    return cls(config=parse_config(config_cls, config))


def validate_strategy_config(
    name: str, config: BaseModel | Mapping[str, Any] | None
) -> BaseModel:
    """Validate parameters for a strategy without instantiating it."""
    _, config_cls = _lookup(name)
    return parse_config(config_cls, config)


def get_strategy_class(name: str) -> type:
    """Get the strategy class by name (without instantiating).

    Raises:
        UnknownStrategyError: If no strategy is registered under the given name.
    """
    return _lookup(name)[0]


def get_config_class(name: str) -> type[BaseModel]:
    """Get the config model registered for a strategy."""
    return _lookup(name)[1]


def list_strategies() -> list[str]:
    """Return a sorted list of registered strategy names."""
    return sorted(_REGISTRY.keys())
