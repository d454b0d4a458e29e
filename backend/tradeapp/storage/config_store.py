"""Risk limits and strategy parameters served from a TradingConfig."""

from __future__ import annotations

from typing import Any

from tradecore.models import RiskLimits
from tradeapp.trading_config import TradingConfig


class YamlConfigStore:
    """RiskLimitsStore and StrategyConfigStore over a loaded trading.yaml."""

    def __init__(self, config: TradingConfig):
        self._config = config

    @property
    def config(self) -> TradingConfig:
        return self._config

    async def get_risk_limits(self, user_id: str) -> RiskLimits | None:
        user = self._config.get_user(user_id)
        return user.risk_limits if user else None

    async def get_strategy_config(self, user_id: str, strategy: str) -> dict[str, Any] | None:
        user = self._config.get_user(user_id)
        if user is None:
            return None
        entry = user.get_strategy(strategy)
        if entry is None:
            return None
        return dict(entry.params)

    async def is_strategy_enabled(self, user_id: str, strategy: str) -> bool:
        user = self._config.get_user(user_id)
        if user is None:
            return True
        entry = user.get_strategy(strategy)
        return entry is None or entry.enabled
