"""Strategy protocol defining the interface all strategy variants implement."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Protocol, runtime_checkable

from tradecore.models.bar import BarSeries
from tradecore.models.signal import Signal

# Latest prices keyed by symbol, for strategies that need live quotes
PriceMap = Mapping[str, Decimal]


@runtime_checkable
class Strategy(Protocol):
    """Protocol that all trading strategies must implement.

    A strategy is stateless once constructed: ``evaluate`` is a pure function
    of its arguments and the strategy's validated config, so one instance can
    be shared across symbols and users.
    """

    @property
    def name(self) -> str:
        """Registered strategy identifier (e.g. 'scalping')."""
        ...

    @property
    def min_bars(self) -> int:
        """Bars needed before the strategy can produce a directional signal."""
        ...

    @property
    def required_prices(self) -> tuple[str, ...]:
        """Symbols whose latest price must be supplied to ``evaluate``.

        Empty for strategies that work from bars alone.
        """
        ...

    def evaluate(
        self,
        symbol: str,
        series: BarSeries,
        prices: PriceMap | None = None,
    ) -> Signal:
        """Evaluate the latest bar of ``series`` and return a signal.

        Args:
            symbol: Symbol the signal is for.
            series: Bars, oldest first.
            prices: Latest prices for ``required_prices``.

        Returns:
            Signal; HOLD with confidence 0 and reason "Insufficient data"
            when ``series`` is shorter than ``min_bars``.
        """
        ...
