"""Mean reversion strategy: fade closes far from their rolling mean.

The z-score of the latest close is measured against the mean and
population standard deviation of the last ``lookback`` closes. Beyond
``z_threshold`` the strategy trades back toward the mean, with higher
confidence when RSI agrees.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tradecore.indicators import rsi
from tradecore.models.bar import BarSeries
from tradecore.models.signal import Action, Signal
from tradecore.strategy.base import BaseStrategy, percent_levels
from tradecore.strategy.protocol import PriceMap
from tradecore.strategy.registry import register_strategy

MEAN_REVERSION_STRATEGY_NAME = "mean_reversion"


class MeanReversionConfig(BaseModel):
    """Configuration for the mean reversion strategy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    lookback: int = Field(default=20, ge=2, le=1000)
    z_threshold: Decimal = Field(default=Decimal("2"), gt=0)
    rsi_period: int = Field(default=14, ge=2, le=200)
    rsi_overbought: Decimal = Field(default=Decimal("70"), gt=0, lt=100)
    rsi_oversold: Decimal = Field(default=Decimal("30"), gt=0, lt=100)

    stop_loss_pct: Decimal = Field(default=Decimal("3.0"), gt=0, lt=100)
    take_profit_pct: Decimal = Field(default=Decimal("2.0"), gt=0, lt=100)

    @model_validator(mode="after")
    def _validate(self):
        if self.rsi_oversold >= self.rsi_overbought:
            raise ValueError("rsi_oversold must be below rsi_overbought")
        return self


def z_score(values: list[Decimal]) -> tuple[Decimal, Decimal, Decimal]:
    """Return (mean, population std, z-score of the last value).

    A flat window has zero deviation and a z-score of 0.
    """
    mean = sum(values, Decimal("0")) / len(values)
    variance = sum(((v - mean) ** 2 for v in values), Decimal("0")) / len(values)
    std = variance.sqrt()
    if std == 0:
        return mean, std, Decimal("0")
    return mean, std, (values[-1] - mean) / std


@register_strategy(MEAN_REVERSION_STRATEGY_NAME, config=MeanReversionConfig)
class MeanReversionStrategy(BaseStrategy):
    NAME = MEAN_REVERSION_STRATEGY_NAME
    CONFIG = MeanReversionConfig

    @property
    def min_bars(self) -> int:
        return max(self.config.lookback, self.config.rsi_period + 1)

    def _evaluate(self, symbol: str, series: BarSeries, prices: PriceMap) -> Signal:
        cfg = self.config
        closes = series.closes()
        mean, std, z = z_score(closes[-cfg.lookback:])
        current_rsi = rsi(closes, cfg.rsi_period)[-1]

        indicators = {"mean": mean, "std_dev": std, "z_score": z, "rsi": current_rsi}

        if z > cfg.z_threshold:
            action = Action.SELL
            reason = f"Price {z:.2f} standard deviations above mean"
            rsi_agrees = current_rsi > cfg.rsi_overbought
            rsi_reason = " + RSI overbought"
        elif z < -cfg.z_threshold:
            action = Action.BUY
            reason = f"Price {abs(z):.2f} standard deviations below mean"
            rsi_agrees = current_rsi < cfg.rsi_oversold
            rsi_reason = " + RSI oversold"
        else:
            return self.hold(symbol, series, "Price within normal range", indicators=indicators)

        confidence = 0.6
        if rsi_agrees:
            confidence = 0.8
            reason += rsi_reason

        levels = percent_levels(action, closes[-1], cfg.stop_loss_pct, cfg.take_profit_pct)
        return self.signal(symbol, series, action, confidence, reason, indicators, levels)
