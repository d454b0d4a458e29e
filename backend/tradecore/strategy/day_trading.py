"""Day trading strategy: SMA trend filter, RSI entry, volume confirmation.

Signal Logic:
- BUY: short SMA above long SMA and RSI oversold (0.7), plus a volume
  spike (0.9)
- SELL: short SMA below long SMA and RSI overbought (0.7), plus a volume
  spike (0.9)
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tradecore.indicators import rsi, sma
from tradecore.models.bar import BarSeries
from tradecore.models.signal import Action, Signal
from tradecore.strategy.base import BaseStrategy, percent_levels
from tradecore.strategy.protocol import PriceMap
from tradecore.strategy.registry import register_strategy

DAY_TRADING_STRATEGY_NAME = "day_trading"


class DayTradingConfig(BaseModel):
    """Configuration for the day trading strategy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    sma_short: int = Field(default=20, ge=1, le=500)
    sma_long: int = Field(default=50, ge=2, le=1000)
    rsi_period: int = Field(default=14, ge=2, le=200)
    rsi_overbought: Decimal = Field(default=Decimal("70"), gt=0, lt=100)
    rsi_oversold: Decimal = Field(default=Decimal("30"), gt=0, lt=100)

    # Current volume / mean volume of the last `volume_lookback` bars
    volume_lookback: int = Field(default=20, ge=1, le=500)
    volume_threshold: Decimal = Field(default=Decimal("1.5"), gt=0)

    stop_loss_pct: Decimal = Field(default=Decimal("2.0"), gt=0, lt=100)
    take_profit_pct: Decimal = Field(default=Decimal("4.0"), gt=0, lt=100)

    @model_validator(mode="after")
    def _validate(self):
        if self.sma_short >= self.sma_long:
            raise ValueError("sma_short must be shorter than sma_long")
        if self.rsi_oversold >= self.rsi_overbought:
            raise ValueError("rsi_oversold must be below rsi_overbought")
        return self


@register_strategy(DAY_TRADING_STRATEGY_NAME, config=DayTradingConfig, aliases=("daytrading",))
class DayTradingStrategy(BaseStrategy):
    NAME = DAY_TRADING_STRATEGY_NAME
    CONFIG = DayTradingConfig

    @property
    def min_bars(self) -> int:
        cfg = self.config
        return max(cfg.sma_long, cfg.rsi_period + 1, cfg.volume_lookback)

    def _evaluate(self, symbol: str, series: BarSeries, prices: PriceMap) -> Signal:
        cfg = self.config
        closes = series.closes()
        sma_short = sma(closes, cfg.sma_short)[-1]
        sma_long = sma(closes, cfg.sma_long)[-1]
        current_rsi = rsi(closes, cfg.rsi_period)[-1]

        recent_volumes = series.volumes()[-cfg.volume_lookback:]
        avg_volume = sum(recent_volumes, Decimal("0")) / len(recent_volumes)
        volume_ratio = recent_volumes[-1] / avg_volume if avg_volume > 0 else Decimal("0")

        bullish = sma_short > sma_long
        if current_rsi < cfg.rsi_oversold:
            rsi_signal = Action.BUY
        elif current_rsi > cfg.rsi_overbought:
            rsi_signal = Action.SELL
        else:
            rsi_signal = Action.HOLD
        high_volume = volume_ratio > cfg.volume_threshold

        indicators = {
            "sma_short": sma_short,
            "sma_long": sma_long,
            "rsi": current_rsi,
            "volume_ratio": volume_ratio,
            "trend_signal": "BULLISH" if bullish else "BEARISH",
            "rsi_signal": rsi_signal.value,
            "volume_signal": "HIGH" if high_volume else "NORMAL",
        }

        if bullish and rsi_signal == Action.BUY:
            action, reason = Action.BUY, "Bullish trend + RSI oversold"
        elif not bullish and rsi_signal == Action.SELL:
            action, reason = Action.SELL, "Bearish trend + RSI overbought"
        else:
            return self.hold(symbol, series, "No clear signal", indicators=indicators)

        confidence = 0.7
        if high_volume:
            confidence = 0.9
            reason += " + High volume"

        levels = percent_levels(action, closes[-1], cfg.stop_loss_pct, cfg.take_profit_pct)
        return self.signal(symbol, series, action, confidence, reason, indicators, levels)
