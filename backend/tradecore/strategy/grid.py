"""Grid trading strategy.

Builds ``grid_levels`` symmetric levels around a base price: level ``i``
buys at ``base * (1 - spacing * i)`` and sells at ``base * (1 + spacing * i)``.
With no configured base the grid centres on the recent mean close.
A BUY or SELL fires when the latest close is within ``tolerance_pct`` of one
of those prices; otherwise the grid is just being monitored.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tradecore.models.bar import BarSeries
from tradecore.models.signal import Action, RiskLevels, Signal
from tradecore.strategy.base import BaseStrategy
from tradecore.strategy.protocol import PriceMap
from tradecore.strategy.registry import register_strategy

GRID_STRATEGY_NAME = "grid_trading"

_HUNDRED = Decimal("100")


class GridTradingConfig(BaseModel):
    """Configuration for the grid trading strategy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    grid_levels: int = Field(default=10, ge=1, le=100)
    grid_spacing_pct: Decimal = Field(default=Decimal("1.0"), gt=0, lt=100)
    # None -> mean of the closes before the latest bar
    base_price: Decimal | None = Field(default=None, gt=0)
    base_lookback: int = Field(default=20, ge=1, le=500)
    total_investment: Decimal = Field(default=Decimal("1000"), gt=0)
    tolerance_pct: Decimal = Field(default=Decimal("0.1"), gt=0)

    @model_validator(mode="after")
    def _validate(self):
        if self.grid_spacing_pct * self.grid_levels >= _HUNDRED:
            raise ValueError("grid_spacing_pct * grid_levels must stay below 100")
        if self.tolerance_pct * 2 > self.grid_spacing_pct:
            raise ValueError("tolerance_pct must be at most half of grid_spacing_pct")
        return self


@dataclass(frozen=True, slots=True)
class GridLevel:
    level: int
    buy_price: Decimal
    sell_price: Decimal
    investment: Decimal
    quantity: Decimal


def build_grid(base_price: Decimal, config: GridTradingConfig) -> list[GridLevel]:
    """Grid levels ordered from the innermost (level 1) outward."""
    spacing = config.grid_spacing_pct / _HUNDRED
    per_level = config.total_investment / config.grid_levels
    levels = []
    for i in range(1, config.grid_levels + 1):
        buy_price = base_price * (1 - spacing * i)
        levels.append(
            GridLevel(
                level=i,
                buy_price=buy_price,
                sell_price=base_price * (1 + spacing * i),
                investment=per_level,
                quantity=per_level / buy_price,
            )
        )
    return levels


def default_base_price(series: BarSeries, lookback: int) -> Decimal:
    """Mean close of up to ``lookback`` bars preceding the latest one.

    A single bar has no history, so the grid centres on its close.
    """
    closes = series.closes()
    history = closes[-lookback - 1:-1]
    if not history:
        return closes[-1]
    return sum(history, Decimal(0)) / len(history)


@register_strategy(GRID_STRATEGY_NAME, config=GridTradingConfig, aliases=("grid",))
class GridTradingStrategy(BaseStrategy):
    NAME = GRID_STRATEGY_NAME
    CONFIG = GridTradingConfig

    @property
    def min_bars(self) -> int:
        return 1

    def _evaluate(self, symbol: str, series: BarSeries, prices: PriceMap) -> Signal:
        cfg = self.config
        price = series.closes()[-1]
        base_price = cfg.base_price or default_base_price(series, cfg.base_lookback)
        grid = build_grid(base_price, cfg)
        spacing = cfg.grid_spacing_pct / _HUNDRED
        tolerance = cfg.tolerance_pct / _HUNDRED

        metadata = {
            "base_price": base_price,
            "grid_levels": [asdict(level) for level in grid],
        }

        for level in grid:
            if abs(price - level.buy_price) / price <= tolerance:
                levels = RiskLevels(
                    stop_loss=grid[-1].buy_price * (1 - spacing),
                    take_profit=price * (1 + spacing),
                )
                return self._fire(symbol, series, Action.BUY, level, levels, metadata)
            if abs(price - level.sell_price) / price <= tolerance:
                levels = RiskLevels(
                    stop_loss=grid[-1].sell_price * (1 + spacing),
                    take_profit=price * (1 - spacing),
                )
                return self._fire(symbol, series, Action.SELL, level, levels, metadata)

        return self.hold(
            symbol, series, "Grid trading - monitoring levels", confidence=0.5, metadata=metadata
        )

    def _fire(
        self,
        symbol: str,
        series: BarSeries,
        action: Action,
        level: GridLevel,
        levels: RiskLevels,
        metadata: dict,
    ) -> Signal:
        side = "buy" if action == Action.BUY else "sell"
        metadata["current_level"] = asdict(level)
        return self.signal(
            symbol,
            series,
            action,
            0.8,
            f"Grid {side} level {level.level} reached",
            indicators={"grid_level": level.level},
            levels=levels,
            metadata=metadata,
        )
