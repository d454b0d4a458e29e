"""Price levels: support/resistance detection and Fibonacci retracement."""

from __future__ import annotations

from decimal import Decimal

from tradecore.errors import InvalidParameterError
from tradecore.indicators.indicators import Number, _as_decimal, _check_period
from tradecore.models.bar import BarSeries
from tradecore.models.indicator import PriceLevel

FIBONACCI_RATIOS: tuple[Decimal, ...] = (
    Decimal("0"),
    Decimal("0.236"),
    Decimal("0.382"),
    Decimal("0.5"),
    Decimal("0.618"),
    Decimal("0.786"),
    Decimal("1"),
)

LevelsByBar = list[tuple[tuple[PriceLevel, ...], tuple[PriceLevel, ...]]]


def support_resistance(
    series: BarSeries,
    window: int = 20,
) -> tuple[list[PriceLevel], list[PriceLevel], LevelsByBar]:
    """
    Find local supports (lows) and resistances (highs).

    Bar ``i`` is a support when no low in the ``window`` bars on either side
    is below its low, and a resistance when no high on either side is above
    its high. Only bars with a full window on both sides qualify.

    Returns:
        Tuple of (supports, resistances, per_bar_levels). Supports and
        resistances are ordered by index; per_bar_levels pairs each bar with
        the levels confirmed at or before its timestamp.
    """
    _check_period(window, "window")
    bars = series.bars
    supports: list[PriceLevel] = []
    resistances: list[PriceLevel] = []

    for i in range(window, len(bars) - window):
        current = bars[i]
        neighbours = bars[i - window:i] + bars[i + 1:i + window + 1]
        if all(b.low >= current.low for b in neighbours):
            supports.append(PriceLevel(price=current.low, index=i, timestamp=current.open_time))
        if all(b.high <= current.high for b in neighbours):
            resistances.append(PriceLevel(price=current.high, index=i, timestamp=current.open_time))

    return supports, resistances, levels_as_of(series, supports, resistances)


def levels_as_of(
    series: BarSeries,
    supports: list[PriceLevel],
    resistances: list[PriceLevel],
) -> LevelsByBar:
    """Annotate each bar with the levels whose timestamp is at or before its own."""
    annotated: LevelsByBar = []
    s_count = r_count = 0
    for bar in series.bars:
        while s_count < len(supports) and supports[s_count].timestamp <= bar.open_time:
            s_count += 1
        while r_count < len(resistances) and resistances[r_count].timestamp <= bar.open_time:
            r_count += 1
        annotated.append((tuple(supports[:s_count]), tuple(resistances[:r_count])))
    return annotated


def fibonacci_retracement(swing_high: Number, swing_low: Number) -> dict[Decimal, Decimal]:
    """
    Calculate Fibonacci retracement levels between a swing low and high.

    level(r) = swing_low + (swing_high - swing_low) * r
    """
    high = _as_decimal(swing_high)
    low = _as_decimal(swing_low)
    if high < low:
        raise InvalidParameterError(f"swing_high {high} is below swing_low {low}")
    span = high - low
    return {ratio: low + span * ratio for ratio in FIBONACCI_RATIOS}
