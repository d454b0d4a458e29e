"""Triangular arbitrage across a closed loop of currency pairs.

Starting with one unit of the loop's base asset, each leg converts the
running amount: a ``buy`` leg divides by the pair price (quote -> base), a
``sell`` leg multiplies by it (base -> quote). The final amount is the
round-trip factor; profit% = (factor - 1) * 100.

Default loop: USDT -> BTC (buy BTCUSDT) -> ETH (buy ETHBTC) -> USDT (sell ETHUSDT).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tradecore.models.bar import BarSeries
from tradecore.models.signal import Action, Signal
from tradecore.strategy.base import BaseStrategy
from tradecore.strategy.protocol import PriceMap
from tradecore.strategy.registry import register_strategy

TRIANGULAR_ARBITRAGE_STRATEGY_NAME = "triangular_arbitrage"


class ArbitrageLeg(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    symbol: str
    side: Literal["buy", "sell"]
    from_asset: str
    to_asset: str


DEFAULT_LEGS: tuple[ArbitrageLeg, ...] = (
    ArbitrageLeg(symbol="BTCUSDT", side="buy", from_asset="USDT", to_asset="BTC"),
    ArbitrageLeg(symbol="ETHBTC", side="buy", from_asset="BTC", to_asset="ETH"),
    ArbitrageLeg(symbol="ETHUSDT", side="sell", from_asset="ETH", to_asset="USDT"),
)


class TriangularArbitrageConfig(BaseModel):
    """Configuration for the triangular arbitrage strategy."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    legs: tuple[ArbitrageLeg, ...] = DEFAULT_LEGS
    # Minimum round-trip profit, in percent
    min_profit_threshold: Decimal = Field(default=Decimal("0.5"), ge=0)

    @model_validator(mode="after")
    def _validate(self):
        if len(self.legs) < 3:
            raise ValueError("an arbitrage loop needs at least 3 legs")
        for prev, leg in zip(self.legs, self.legs[1:]):
            if prev.to_asset != leg.from_asset:
                raise ValueError(
                    f"leg {leg.symbol} starts from {leg.from_asset}, expected {prev.to_asset}"
                )
        if self.legs[-1].to_asset != self.legs[0].from_asset:
            raise ValueError("arbitrage legs must return to the starting asset")
        return self

    @property
    def path(self) -> str:
        return " -> ".join([self.legs[0].from_asset, *(leg.to_asset for leg in self.legs)])


def round_trip_factor(legs: tuple[ArbitrageLeg, ...], prices: PriceMap) -> Decimal:
    """Amount of the starting asset held after walking every leg with one unit.

    Raises:
        KeyError: If a leg's price is missing
        ValueError: If a leg's price is not positive
    """
    amount = Decimal("1")
    for leg in legs:
        price = prices[leg.symbol]
        if price <= 0:
            raise ValueError(f"non-positive price for {leg.symbol}: {price}")
        amount = amount / price if leg.side == "buy" else amount * price
    return amount


@register_strategy(
    TRIANGULAR_ARBITRAGE_STRATEGY_NAME,
    config=TriangularArbitrageConfig,
    aliases=("arbitrage",),
)
class TriangularArbitrageStrategy(BaseStrategy):
    """Works from live prices only; bars are optional."""

    NAME = TRIANGULAR_ARBITRAGE_STRATEGY_NAME
    CONFIG = TriangularArbitrageConfig

    @property
    def min_bars(self) -> int:
        return 0

    @property
    def required_prices(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(leg.symbol for leg in self.config.legs))

    def _evaluate(self, symbol: str, series: BarSeries, prices: PriceMap) -> Signal:
        cfg = self.config
        missing = [s for s in self.required_prices if s not in prices]
        if missing:
            return self.hold(symbol, series, f"Error getting prices: missing {', '.join(missing)}")

        try:
            factor = round_trip_factor(cfg.legs, prices)
        except ValueError as exc:
            return self.hold(symbol, series, f"Error getting prices: {exc}")

        profit = (factor - 1) * 100
        leg_prices = {s: prices[s] for s in self.required_prices}
        indicators = {"prices": leg_prices, "factor": factor, "profit_pct": profit}

        if profit <= cfg.min_profit_threshold:
            return self.hold(
                symbol,
                series,
                "No arbitrage opportunities found",
                confidence=0.5,
                indicators=indicators,
            )

        metadata = {
            "path": cfg.path,
            "trades": [
                {
                    "from": leg.from_asset,
                    "to": leg.to_asset,
                    "symbol": leg.symbol,
                    "side": leg.side,
                    "rate": prices[leg.symbol],
                }
                for leg in cfg.legs
            ],
        }
        return self.signal(
            symbol,
            series,
            Action.ARBITRAGE,
            0.9,
            f"Arbitrage opportunity: {profit:.2f}% profit",
            indicators,
            metadata=metadata,
        )
