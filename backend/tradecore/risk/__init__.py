"""Pre-trade risk gate, its checks, and position sizing."""

from tradecore.risk.checks import (
    check_correlation,
    check_leverage,
    check_loss,
    check_market_hours,
    check_position_size,
)
from tradecore.risk.gate import RiskGate, day_start, month_start
from tradecore.risk.hours import ContinuousMarketHours, MarketHours, SessionMarketHours
from tradecore.risk.sizing import recommend_from_statistics, recommend_position_size

__all__ = [
    "check_correlation",
    "check_leverage",
    "check_loss",
    "check_market_hours",
    "check_position_size",
    "RiskGate",
    "day_start",
    "month_start",
    "ContinuousMarketHours",
    "MarketHours",
    "SessionMarketHours",
    "recommend_from_statistics",
    "recommend_position_size",
]
