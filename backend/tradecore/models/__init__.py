"""Data models for bars, indicators, signals, and risk."""

from tradecore.models.bar import Bar, BarSeries
from tradecore.models.config import IndicatorConfig, parse_config
from tradecore.models.indicator import (
    BollingerPoint,
    IchimokuPoint,
    IndicatorFrame,
    IndicatorSnapshot,
    MacdPoint,
    PriceLevel,
    StochasticPoint,
)
from tradecore.models.risk import (
    CandidateOrder,
    OrderSide,
    RiskCheck,
    RiskChecks,
    RiskLimits,
    RiskVerdict,
    TradeStatistics,
)
from tradecore.models.signal import Action, RiskLevels, Signal

__all__ = [
    "Bar",
    "BarSeries",
    "IndicatorConfig",
    "parse_config",
    "BollingerPoint",
    "IchimokuPoint",
    "IndicatorFrame",
    "IndicatorSnapshot",
    "MacdPoint",
    "PriceLevel",
    "StochasticPoint",
    "CandidateOrder",
    "OrderSide",
    "RiskCheck",
    "RiskChecks",
    "RiskLimits",
    "RiskVerdict",
    "TradeStatistics",
    "Action",
    "RiskLevels",
    "Signal",
]
