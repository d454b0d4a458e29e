"""Indicator output types.

Per-bar indicator values are produced in bulk, so the structured points are
slotted frozen dataclasses rather than pydantic models. Every field is a
Decimal, or None while the indicator is still warming up.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from tradecore.models.bar import Bar


@dataclass(frozen=True, slots=True)
class MacdPoint:
    """MACD line, its signal EMA, and the histogram (macd - signal)."""

    macd: Decimal
    signal: Decimal | None = None
    histogram: Decimal | None = None


@dataclass(frozen=True, slots=True)
class BollingerPoint:
    upper: Decimal
    middle: Decimal
    lower: Decimal


@dataclass(frozen=True, slots=True)
class StochasticPoint:
    k: Decimal
    d: Decimal | None = None


@dataclass(frozen=True, slots=True)
class IchimokuPoint:
    """Ichimoku cloud values for one bar.

    ``span_a``/``span_b`` are the leading spans computed at this bar (plotted
    ``displacement`` bars ahead); ``current_span_a``/``current_span_b`` are the
    spans projected onto this bar from ``displacement`` bars back.
    """

    conversion: Decimal
    base: Decimal | None = None
    span_a: Decimal | None = None
    span_b: Decimal | None = None
    current_span_a: Decimal | None = None
    current_span_b: Decimal | None = None


@dataclass(frozen=True, slots=True)
class PriceLevel:
    """A support or resistance level found at ``index``."""

    price: Decimal
    index: int
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class IndicatorSnapshot:
    """One bar together with every indicator value computed for it."""

    bar: Bar
    values: dict[str, Any]
    supports: tuple[PriceLevel, ...] = ()
    resistances: tuple[PriceLevel, ...] = ()

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self.values[name]


@dataclass(frozen=True, slots=True)
class IndicatorFrame:
    """Composite output of ``IndicatorCalculator.compute_all``."""

    points: tuple[IndicatorSnapshot, ...]
    supports: tuple[PriceLevel, ...] = ()
    resistances: tuple[PriceLevel, ...] = ()
    columns: tuple[str, ...] = field(default=())

    def __len__(self) -> int:
        return len(self.points)

    def __getitem__(self, index: int) -> IndicatorSnapshot:
        return self.points[index]

    def column(self, name: str) -> list[Any]:
        """Return one indicator's values aligned with the bars."""
        if name not in self.columns:
            raise KeyError(name)
        return [p.values[name] for p in self.points]
