"""Scalping strategy: RSI extremes confirmed by MACD histogram crossovers.

- RSI below oversold -> BUY vote, above overbought -> SELL vote
- MACD histogram crossing above zero -> BUY vote, below zero -> SELL vote

Both votes agreeing give confidence 0.8, a lone vote 0.6. Opposing votes
cancel out to HOLD. Stop and target are tight fixed percentages.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tradecore.indicators import macd, rsi
from tradecore.models.bar import BarSeries
from tradecore.models.signal import Action, Signal
from tradecore.strategy.base import BaseStrategy, Vote, combine_votes, percent_levels, snapshot_value
from tradecore.strategy.protocol import PriceMap
from tradecore.strategy.registry import register_strategy

SCALPING_STRATEGY_NAME = "scalping"


class ScalpingConfig(BaseModel):
    """Configuration for the scalping strategy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    rsi_period: int = Field(default=14, ge=2, le=200)
    rsi_overbought: Decimal = Field(default=Decimal("70"), gt=0, lt=100)
    rsi_oversold: Decimal = Field(default=Decimal("30"), gt=0, lt=100)
    macd_fast: int = Field(default=12, ge=1, le=200)
    macd_slow: int = Field(default=26, ge=2, le=400)
    macd_signal: int = Field(default=9, ge=1, le=200)

    # Percent of entry price
    stop_loss_pct: Decimal = Field(default=Decimal("0.5"), gt=0, lt=100)
    take_profit_pct: Decimal = Field(default=Decimal("1.0"), gt=0, lt=100)

    @model_validator(mode="after")
    def _validate(self):
        if self.rsi_oversold >= self.rsi_overbought:
            raise ValueError("rsi_oversold must be below rsi_overbought")
        if self.macd_fast >= self.macd_slow:
            raise ValueError("macd_fast must be shorter than macd_slow")
        return self


@register_strategy(SCALPING_STRATEGY_NAME, config=ScalpingConfig)
class ScalpingStrategy(BaseStrategy):
    NAME = SCALPING_STRATEGY_NAME
    CONFIG = ScalpingConfig

    @property
    def min_bars(self) -> int:
        # Two consecutive histogram values are needed to detect a zero cross
        cfg = self.config
        return max(cfg.rsi_period + 1, cfg.macd_slow + cfg.macd_signal)

    def _evaluate(self, symbol: str, series: BarSeries, prices: PriceMap) -> Signal:
        cfg = self.config
        closes = series.closes()
        rsi_values = rsi(closes, cfg.rsi_period)
        macd_values = macd(closes, cfg.macd_fast, cfg.macd_slow, cfg.macd_signal)

        current_rsi = rsi_values[-1]
        current_macd, previous_macd = macd_values[-1], macd_values[-2]

        if current_rsi < cfg.rsi_oversold:
            rsi_vote: Vote = (Action.BUY, "RSI oversold")
        elif current_rsi > cfg.rsi_overbought:
            rsi_vote = (Action.SELL, "RSI overbought")
        else:
            rsi_vote = (Action.HOLD, "")

        hist, prev_hist = current_macd.histogram, previous_macd.histogram
        if hist > 0 and prev_hist <= 0:
            macd_vote: Vote = (Action.BUY, "MACD bullish crossover")
        elif hist < 0 and prev_hist >= 0:
            macd_vote = (Action.SELL, "MACD bearish crossover")
        else:
            macd_vote = (Action.HOLD, "")

        action, confidence, reason = combine_votes([rsi_vote, macd_vote], agree=0.8, single=0.6)
        indicators = {
            "rsi": current_rsi,
            "macd": snapshot_value(current_macd),
            "rsi_signal": rsi_vote[0].value,
            "macd_signal": macd_vote[0].value,
        }
        if action == Action.HOLD:
            return self.hold(symbol, series, reason, indicators=indicators)

        levels = percent_levels(action, closes[-1], cfg.stop_loss_pct, cfg.take_profit_pct)
        return self.signal(symbol, series, action, confidence, reason, indicators, levels)
