"""Swing trading strategy: EMA trend, RSI pullback, EMA momentum.

TP/SL based on ATR:
- SL = entry -/+ stop_atr_mult * ATR
- TP = entry +/- target_atr_mult * ATR
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tradecore.indicators import atr, ema, rsi
from tradecore.models.bar import BarSeries
from tradecore.models.signal import Action, Signal
from tradecore.strategy.base import BaseStrategy, distance_levels
from tradecore.strategy.protocol import PriceMap
from tradecore.strategy.registry import register_strategy

SWING_TRADING_STRATEGY_NAME = "swing_trading"


class SwingTradingConfig(BaseModel):
    """Configuration for the swing trading strategy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ema_short: int = Field(default=12, ge=1, le=500)
    ema_long: int = Field(default=26, ge=2, le=1000)
    rsi_period: int = Field(default=14, ge=2, le=200)
    rsi_buy_below: Decimal = Field(default=Decimal("40"), gt=0, lt=100)
    rsi_sell_above: Decimal = Field(default=Decimal("60"), gt=0, lt=100)
    atr_period: int = Field(default=14, ge=1, le=200)

    # TP/SL multipliers (based on ATR)
    stop_atr_mult: Decimal = Field(default=Decimal("2"), gt=0)
    target_atr_mult: Decimal = Field(default=Decimal("3"), gt=0)

    @model_validator(mode="after")
    def _validate(self):
        if self.ema_short >= self.ema_long:
            raise ValueError("ema_short must be shorter than ema_long")
        if self.rsi_buy_below > self.rsi_sell_above:
            raise ValueError("rsi_buy_below must not exceed rsi_sell_above")
        return self


@register_strategy(SWING_TRADING_STRATEGY_NAME, config=SwingTradingConfig, aliases=("swing",))
class SwingTradingStrategy(BaseStrategy):
    NAME = SWING_TRADING_STRATEGY_NAME
    CONFIG = SwingTradingConfig

    @property
    def min_bars(self) -> int:
        cfg = self.config
        return max(cfg.ema_long, cfg.ema_short + 1, cfg.rsi_period + 1, cfg.atr_period)

    def _evaluate(self, symbol: str, series: BarSeries, prices: PriceMap) -> Signal:
        cfg = self.config
        closes = series.closes()
        ema_short = ema(closes, cfg.ema_short)
        ema_long = ema(closes, cfg.ema_long)[-1]
        current_rsi = rsi(closes, cfg.rsi_period)[-1]
        current_atr = atr(series.highs(), series.lows(), closes, cfg.atr_period)[-1]

        bullish = ema_short[-1] > ema_long
        rising = ema_short[-1] > ema_short[-2]
        if current_rsi < cfg.rsi_buy_below:
            rsi_signal = Action.BUY
        elif current_rsi > cfg.rsi_sell_above:
            rsi_signal = Action.SELL
        else:
            rsi_signal = Action.HOLD

        indicators = {
            "ema_short": ema_short[-1],
            "ema_long": ema_long,
            "rsi": current_rsi,
            "atr": current_atr,
            "trend_signal": "BULLISH" if bullish else "BEARISH",
            "rsi_signal": rsi_signal.value,
            "momentum_signal": "BULLISH" if rising else "BEARISH",
        }

        if bullish and rsi_signal == Action.BUY:
            action, reason = Action.BUY, "Bullish trend + RSI oversold"
            with_momentum = rising
            momentum_reason = " + Bullish momentum"
        elif not bullish and rsi_signal == Action.SELL:
            action, reason = Action.SELL, "Bearish trend + RSI overbought"
            with_momentum = not rising
            momentum_reason = " + Bearish momentum"
        else:
            return self.hold(symbol, series, "No clear signal", indicators=indicators)

        if current_atr <= 0:
            return self.hold(symbol, series, "Zero volatility", indicators=indicators)

        confidence = 0.7
        if with_momentum:
            confidence = 0.85
            reason += momentum_reason

        levels = distance_levels(
            action,
            closes[-1],
            current_atr * cfg.stop_atr_mult,
            current_atr * cfg.target_atr_mult,
        )
        if levels is None:
            return self.hold(symbol, series, "Volatility exceeds price", indicators=indicators)
        return self.signal(symbol, series, action, confidence, reason, indicators, levels)
