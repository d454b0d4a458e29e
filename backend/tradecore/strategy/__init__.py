"""Strategy evaluator: protocol, registry and the built-in variants.

Importing this package registers every built-in strategy.
"""

from tradecore.strategy.base import BaseStrategy
from tradecore.strategy.protocol import PriceMap, Strategy
from tradecore.strategy.registry import (
    canonical_name,
    create_strategy,
    get_config_class,
    get_strategy_class,
    list_strategies,
    normalize_name,
    register_strategy,
    validate_strategy_config,
)

# Built-in variants (registered on import)
from tradecore.strategy.day_trading import DayTradingConfig, DayTradingStrategy
from tradecore.strategy.grid import GridTradingConfig, GridTradingStrategy
from tradecore.strategy.mean_reversion import MeanReversionConfig, MeanReversionStrategy
from tradecore.strategy.scalping import ScalpingConfig, ScalpingStrategy
from tradecore.strategy.swing_trading import SwingTradingConfig, SwingTradingStrategy
from tradecore.strategy.triangular_arbitrage import (
    ArbitrageLeg,
    TriangularArbitrageConfig,
    TriangularArbitrageStrategy,
)

__all__ = [
    "BaseStrategy",
    "PriceMap",
    "Strategy",
    "canonical_name",
    "create_strategy",
    "get_config_class",
    "get_strategy_class",
    "list_strategies",
    "normalize_name",
    "register_strategy",
    "validate_strategy_config",
    "DayTradingConfig",
    "DayTradingStrategy",
    "GridTradingConfig",
    "GridTradingStrategy",
    "MeanReversionConfig",
    "MeanReversionStrategy",
    "ScalpingConfig",
    "ScalpingStrategy",
    "SwingTradingConfig",
    "SwingTradingStrategy",
    "ArbitrageLeg",
    "TriangularArbitrageConfig",
    "TriangularArbitrageStrategy",
]
