"""Shared plumbing for rule-based strategy variants."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from decimal import Decimal
from typing import Any, ClassVar

from pydantic import BaseModel

from tradecore.models.bar import BarSeries
from tradecore.models.config import parse_config
from tradecore.models.signal import Action, RiskLevels, Signal
from tradecore.strategy.protocol import PriceMap

INSUFFICIENT_DATA = "Insufficient data"

_HUNDRED = Decimal("100")

# A single indicator's opinion: (direction, human-readable reason)
Vote = tuple[Action, str]


def snapshot_value(value: Any) -> Any:
    """Make an indicator value safe to store in ``Signal.indicators``."""
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return value


def percent_levels(
    action: Action,
    price: Decimal,
    stop_loss_pct: Decimal,
    take_profit_pct: Decimal,
) -> RiskLevels:
    """Stop and target a fixed percentage away from ``price``."""
    stop = stop_loss_pct / _HUNDRED
    target = take_profit_pct / _HUNDRED
    if action == Action.BUY:
        return RiskLevels(stop_loss=price * (1 - stop), take_profit=price * (1 + target))
    return RiskLevels(stop_loss=price * (1 + stop), take_profit=price * (1 - target))


def distance_levels(
    action: Action,
    price: Decimal,
    stop_distance: Decimal,
    target_distance: Decimal,
) -> RiskLevels | None:
    """Stop and target a fixed absolute distance away from ``price``.

    Returns None when the level below the price would not be positive.
    """
    if action == Action.BUY:
        stop_loss, take_profit = price - stop_distance, price + target_distance
    else:
        stop_loss, take_profit = price + stop_distance, price - target_distance
    if stop_loss <= 0 or take_profit <= 0:
        return None
    return RiskLevels(stop_loss=stop_loss, take_profit=take_profit)


def combine_votes(votes: list[Vote], agree: float, single: float) -> tuple[Action, float, str]:
    """Combine independent indicator votes.

    All directional votes agreeing -> ``agree`` confidence (or ``single``
    when only one indicator voted). Opposing votes or no votes -> HOLD, 0.
    """
    directional = [(action, reason) for action, reason in votes if action != Action.HOLD]
    if not directional:
        return Action.HOLD, 0.0, "No clear signal"

    actions = {action for action, _ in directional}
    reason = " + ".join(reason for _, reason in directional)
    if len(actions) > 1:
        return Action.HOLD, 0.0, f"Conflicting signals: {' vs '.join(r for _, r in directional)}"

    confidence = agree if len(directional) > 1 else single
    return directional[0][0], confidence, reason


class BaseStrategy:
    """Base class for registered variants.

    Subclasses set ``NAME`` and ``CONFIG``, implement ``min_bars`` and
    ``_evaluate``; ``evaluate`` guards against short series.
    """

    NAME: ClassVar[str] = ""
    CONFIG: ClassVar[type[BaseModel]]

    def __init__(self, config: BaseModel | Mapping[str, Any] | None = None):
        self.config = parse_config(self.CONFIG, config)

    @property
    def name(self) -> str:
        return self.NAME

    @property
    def min_bars(self) -> int:
        raise NotImplementedError

    @property
    def required_prices(self) -> tuple[str, ...]:
        return ()

    def evaluate(
        self,
        symbol: str,
        series: BarSeries,
        prices: PriceMap | None = None,
    ) -> Signal:
        if len(series) < self.min_bars:
            return self.hold(symbol, series, INSUFFICIENT_DATA)
        return self._evaluate(symbol, series, prices or {})

    def _evaluate(self, symbol: str, series: BarSeries, prices: PriceMap) -> Signal:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Signal construction
    # ------------------------------------------------------------------

    def hold(
        self,
        symbol: str,
        series: BarSeries,
        reason: str,
        confidence: float = 0.0,
        indicators: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Signal:
        latest = series.latest
        return Signal(
            strategy=self.name,
            symbol=symbol,
            timestamp=latest.open_time if latest else None,
            price=latest.close if latest else None,
            action=Action.HOLD,
            confidence=confidence,
            reason=reason,
            indicators=indicators or {},
            metadata=metadata or {},
        )

    def signal(
        self,
        symbol: str,
        series: BarSeries,
        action: Action,
        confidence: float,
        reason: str,
        indicators: dict[str, Any],
        levels: RiskLevels | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Signal:
        latest = series.latest
        return Signal(
            strategy=self.name,
            symbol=symbol,
            timestamp=latest.open_time if latest else None,
            price=latest.close if latest else None,
            action=action,
            confidence=confidence,
            reason=reason,
            indicators=indicators,
            risk_management=levels,
            metadata=metadata or {},
        )
