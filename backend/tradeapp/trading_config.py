"""Trading configuration loaded from trading.yaml.

Supports:
- Per-user risk limits (missing fields fall back to RiskLimits defaults)
- Per-user strategy entries with parameters validated against the
  strategy's config model at load time
- An optional trading session restricting when orders are accepted
- No YAML file = default limits, no user strategies, 24/7 market
"""

import logging
from datetime import time
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from tradecore.errors import UnknownStrategyError
from tradecore.models import RiskLimits
from tradecore.risk import ContinuousMarketHours, MarketHours, SessionMarketHours
from tradecore.strategy import canonical_name, validate_strategy_config
from tradeapp.config import get_settings

logger = logging.getLogger(__name__)


class StrategyEntry(BaseModel):
    """A single strategy entry for one user."""

    name: str
    enabled: bool = True
    params: dict[str, Any] = {}

    @model_validator(mode="after")
    def _validate(self):
        try:
            self.name = canonical_name(self.name)
        except UnknownStrategyError as exc:
            raise ValueError(str(exc)) from exc
        # InvalidParameterError is already a ValueError
        validate_strategy_config(self.name, self.params)
        return self


class UserConfig(BaseModel):
    """A user's risk limits, simulated balance and strategies."""

    risk_limits: RiskLimits = RiskLimits()
    balance: Decimal = Field(default=Decimal("0"), ge=0)
    strategies: list[StrategyEntry] = []

    @model_validator(mode="after")
    def _validate(self):
        names = [s.name for s in self.strategies]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate strategy entries: {duplicates}")
        return self

    def get_strategy(self, name: str) -> StrategyEntry | None:
        """Entry for a strategy name or alias; None if not configured."""
        try:
            key = canonical_name(name)
        except UnknownStrategyError:
            return None
        return next((s for s in self.strategies if s.name == key), None)


class SessionConfig(BaseModel):
    """Daily trading session; omit for 24/7 markets."""

    open: time
    close: time
    weekdays: list[int] = [0, 1, 2, 3, 4]
    timezone: str = "UTC"
    symbols: list[str] | None = None

    def to_market_hours(self) -> SessionMarketHours:
        return SessionMarketHours(
            open=self.open,
            close=self.close,
            weekdays=self.weekdays,
            tz=self.timezone,
            symbols=self.symbols,
        )


class TradingConfig(BaseModel):
    """Top-level trading.yaml configuration."""

    users: dict[str, UserConfig] = {}
    session: SessionConfig | None = None

    def get_user(self, user_id: str) -> UserConfig | None:
        return self.users.get(user_id)

    def market_hours(self) -> MarketHours:
        if self.session is None:
            return ContinuousMarketHours()
        return self.session.to_market_hours()


def load_trading_config(path: Path | None = None) -> TradingConfig:
    """Load trading config from YAML file.

    With no path, reads ``Settings.trading_config_path``. Falls back to
    defaults (no users, 24/7 market) if the file doesn't exist.
    """
    config_path = Path(path) if path else Path(get_settings().trading_config_path)

    # Environment overrides for Settings live next to the YAML file
    env_path = config_path.parent / ".env"
    load_dotenv(env_path, override=False)

    if not config_path.exists():
        logger.info("No trading config found at %s, using defaults", config_path)
        return TradingConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    config = TradingConfig(**raw)
    logger.info(
        "Loaded trading config: %d users, %d strategy entries, session=%s",
        len(config.users),
        sum(len(u.strategies) for u in config.users.values()),
        "24/7" if config.session is None else f"{config.session.open}-{config.session.close}",
    )
    return config
