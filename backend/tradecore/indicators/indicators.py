"""Moving averages, volatility, volume, and trend indicators.

Every function is pure: it takes plain sequences (usually the columns of a
``BarSeries``), never mutates them, and returns a new list of the same
length. Positions without enough history are ``None``.

Two arithmetic paths are used:
1. Exact Decimal - windowed sums and cumulative sums (SMA, Bollinger,
   VWAP, OBV, PSAR, rolling extrema), so results do not drift.
2. NumPy float64 - recursive smoothers (EMA, ATR) where the recursion
   itself is an approximation; results are converted back to Decimal.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

import numpy as np

from tradecore.errors import InvalidParameterError
from tradecore.models.indicator import BollingerPoint, IchimokuPoint

Number = Decimal | float | int

_ZERO = Decimal("0")
_TWO = Decimal("2")


# =============================================================================
# Helpers
# =============================================================================

def _check_period(period: int, name: str = "period") -> None:
    """Reject non-integer and non-positive periods."""
    if isinstance(period, bool) or not isinstance(period, int) or period < 1:
        raise InvalidParameterError(f"{name} must be a positive integer, got {period!r}")


def _as_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _decimals(values: Sequence[Number]) -> list[Decimal]:
    return [_as_decimal(v) for v in values]


def _to_array(values: Sequence[Number | None]) -> np.ndarray:
    return np.array(
        [np.nan if v is None else float(v) for v in values], dtype=np.float64
    )


def _to_decimals(arr: np.ndarray) -> list[Decimal | None]:
    return [None if np.isnan(v) else Decimal(str(float(v))) for v in arr]


def _ema_np(arr: np.ndarray, period: int) -> np.ndarray:
    """EMA over a float array that may start with NaN padding.

    Seeded with the SMA of the first ``period`` finite values.
    """
    result = np.full(len(arr), np.nan)
    finite = np.flatnonzero(~np.isnan(arr))
    if len(finite) == 0:
        return result
    start = int(finite[0])
    seed_idx = start + period - 1
    if seed_idx >= len(arr):
        return result

    multiplier = 2.0 / (period + 1)
    result[seed_idx] = np.mean(arr[start:seed_idx + 1])
    for i in range(seed_idx + 1, len(arr)):
        result[i] = arr[i] * multiplier + result[i - 1] * (1 - multiplier)
    return result


def _sma_np(arr: np.ndarray, period: int) -> np.ndarray:
    """SMA over a float array that may start with NaN padding."""
    result = np.full(len(arr), np.nan)
    for i in range(period - 1, len(arr)):
        window = arr[i - period + 1:i + 1]
        if not np.isnan(window).any():
            result[i] = np.mean(window)
    return result


# =============================================================================
# Moving averages
# =============================================================================

def sma(values: Sequence[Number], period: int) -> list[Decimal | None]:
    """
    Calculate Simple Moving Average.

    Uses an exact Decimal running sum, so point ``i`` equals the arithmetic
    mean of ``values[i - period + 1 : i + 1]``.

    Args:
        values: Sequence of price values
        period: SMA period

    Returns:
        List of SMA values (same length as input, None for the first period-1)
    """
    _check_period(period)
    vals = _decimals(values)
    result: list[Decimal | None] = [None] * len(vals)
    if len(vals) < period:
        return result

    window_sum = sum(vals[:period], _ZERO)
    result[period - 1] = window_sum / period
    for i in range(period, len(vals)):
        window_sum += vals[i] - vals[i - period]
        result[i] = window_sum / period
    return result


def ema(values: Sequence[Number], period: int) -> list[Decimal | None]:
    """
    Calculate Exponential Moving Average.

    The first value is the SMA of the first ``period`` values, then
    ``ema = value * k + prev * (1 - k)`` with ``k = 2 / (period + 1)``.

    Args:
        values: Sequence of price values
        period: EMA period

    Returns:
        List of EMA values (same length as input, None for the first period-1)
    """
    _check_period(period)
    return _to_decimals(_ema_np(_to_array(values), period))


def highest(values: Sequence[Number], period: int) -> list[Decimal | None]:
    """Highest value over the trailing ``period`` values."""
    _check_period(period)
    vals = _decimals(values)
    result: list[Decimal | None] = [None] * len(vals)
    for i in range(period - 1, len(vals)):
        result[i] = max(vals[i - period + 1:i + 1])
    return result


def lowest(values: Sequence[Number], period: int) -> list[Decimal | None]:
    """Lowest value over the trailing ``period`` values."""
    _check_period(period)
    vals = _decimals(values)
    result: list[Decimal | None] = [None] * len(vals)
    for i in range(period - 1, len(vals)):
        result[i] = min(vals[i - period + 1:i + 1])
    return result


# =============================================================================
# Volatility
# =============================================================================

def bollinger_bands(
    closes: Sequence[Number],
    period: int = 20,
    std_dev: Number = 2,
) -> list[BollingerPoint | None]:
    """
    Calculate Bollinger Bands.

    middle = SMA(period); upper/lower = middle +/- std_dev * population
    standard deviation of the same window.

    Args:
        closes: Sequence of close prices
        period: Window length
        std_dev: Band width in standard deviations

    Returns:
        List of BollingerPoint (None for the first period-1)
    """
    _check_period(period)
    width = _as_decimal(std_dev)
    if width <= 0:
        raise InvalidParameterError(f"std_dev must be positive, got {std_dev!r}")

    vals = _decimals(closes)
    middles = sma(vals, period)
    result: list[BollingerPoint | None] = [None] * len(vals)
    for i in range(period - 1, len(vals)):
        mean = middles[i]
        window = vals[i - period + 1:i + 1]
        variance = sum(((v - mean) ** 2 for v in window), _ZERO) / period
        band = width * variance.sqrt()
        result[i] = BollingerPoint(upper=mean + band, middle=mean, lower=mean - band)
    return result


def true_range(
    highs: Sequence[Number],
    lows: Sequence[Number],
    closes: Sequence[Number],
) -> list[Decimal]:
    """
    Calculate True Range.

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))
    The first bar has no previous close, so its TR is high - low.
    """
    h, l, c = _decimals(highs), _decimals(lows), _decimals(closes)
    if not h:
        return []

    result = [h[0] - l[0]]
    for i in range(1, len(h)):
        hl = h[i] - l[i]
        hc = abs(h[i] - c[i - 1])
        lc = abs(l[i] - c[i - 1])
        result.append(max(hl, hc, lc))
    return result


def atr(
    highs: Sequence[Number],
    lows: Sequence[Number],
    closes: Sequence[Number],
    period: int = 14,
) -> list[Decimal | None]:
    """
    Calculate Average True Range (ATR).

    Uses Wilder's smoothing (RMA): seeded with the mean of the first
    ``period`` true ranges, then ``atr = (prev * (period - 1) + tr) / period``.

    Returns:
        List of ATR values (None for the first period-1)
    """
    _check_period(period)
    tr = _to_array(true_range(highs, lows, closes))
    result = np.full(len(tr), np.nan)
    if len(tr) < period:
        return _to_decimals(result)

    result[period - 1] = np.mean(tr[:period])
    for i in range(period, len(tr)):
        result[i] = (result[i - 1] * (period - 1) + tr[i]) / period
    return _to_decimals(result)


# =============================================================================
# Trend
# =============================================================================

def psar(
    highs: Sequence[Number],
    lows: Sequence[Number],
    acceleration: Number = Decimal("0.02"),
    maximum: Number = Decimal("0.2"),
) -> list[Decimal | None]:
    """
    Calculate Parabolic SAR.

    Starts in an uptrend with SAR at the first low. Each bar moves SAR toward
    the extreme point by the acceleration factor, which grows by
    ``acceleration`` on every new extreme and is capped at ``maximum``. The
    trend flips (SAR jumps to the extreme point) when price crosses SAR.
    """
    step = _as_decimal(acceleration)
    cap = _as_decimal(maximum)
    if step <= 0 or cap <= 0 or step > cap:
        raise InvalidParameterError(
            f"PSAR requires 0 < acceleration <= maximum, got {acceleration!r}/{maximum!r}"
        )

    h, l = _decimals(highs), _decimals(lows)
    result: list[Decimal | None] = [None] * len(h)
    if not h:
        return result

    rising = True
    af = step
    extreme = h[0]
    sar = l[0]
    result[0] = sar

    for i in range(1, len(h)):
        sar = sar + af * (extreme - sar)
        if rising:
            # SAR never moves inside the previous two bars' range
            sar = min(sar, l[i - 1], l[i - 2] if i >= 2 else l[i - 1])
            if l[i] < sar:
                rising = False
                sar, extreme, af = extreme, l[i], step
            elif h[i] > extreme:
                extreme = h[i]
                af = min(af + step, cap)
        else:
            sar = max(sar, h[i - 1], h[i - 2] if i >= 2 else h[i - 1])
            if h[i] > sar:
                rising = True
                sar, extreme, af = extreme, h[i], step
            elif l[i] < extreme:
                extreme = l[i]
                af = min(af + step, cap)
        result[i] = sar

    return result


def _midpoints(h: list[Decimal], l: list[Decimal], period: int) -> list[Decimal | None]:
    hh = highest(h, period)
    ll = lowest(l, period)
    return [
        None if hi is None or lo is None else (hi + lo) / _TWO
        for hi, lo in zip(hh, ll)
    ]


def ichimoku(
    highs: Sequence[Number],
    lows: Sequence[Number],
    conversion_period: int = 9,
    base_period: int = 26,
    span_b_period: int = 52,
    displacement: int = 26,
) -> list[IchimokuPoint | None]:
    """
    Calculate the Ichimoku cloud.

    conversion/base lines are midpoints of the rolling high-low range;
    span A is their average and span B the midpoint over ``span_b_period``.
    Spans are projected ``displacement`` bars forward, which is exposed as
    ``current_span_a``/``current_span_b`` on the bar they land on.
    """
    for name, value in (
        ("conversion_period", conversion_period),
        ("base_period", base_period),
        ("span_b_period", span_b_period),
        ("displacement", displacement),
    ):
        _check_period(value, name)

    h, l = _decimals(highs), _decimals(lows)
    conversion = _midpoints(h, l, conversion_period)
    base = _midpoints(h, l, base_period)
    span_b = _midpoints(h, l, span_b_period)
    span_a = [
        None if c is None or b is None else (c + b) / _TWO
        for c, b in zip(conversion, base)
    ]

    result: list[IchimokuPoint | None] = [None] * len(h)
    for i in range(len(h)):
        if conversion[i] is None:
            continue
        back = i - displacement
        result[i] = IchimokuPoint(
            conversion=conversion[i],
            base=base[i],
            span_a=span_a[i],
            span_b=span_b[i],
            current_span_a=span_a[back] if back >= 0 else None,
            current_span_b=span_b[back] if back >= 0 else None,
        )
    return result


# =============================================================================
# Volume
# =============================================================================

def vwap(
    highs: Sequence[Number],
    lows: Sequence[Number],
    closes: Sequence[Number],
    volumes: Sequence[Number],
) -> list[Decimal | None]:
    """
    Calculate Volume Weighted Average Price (VWAP).

    Cumulative from the first bar and never reset:
    ``VWAP[i] = sum(typical * volume)[0..i] / sum(volume)[0..i]``.
    None while cumulative volume is still zero.
    """
    h, l, c, v = _decimals(highs), _decimals(lows), _decimals(closes), _decimals(volumes)
    result: list[Decimal | None] = []
    cum_vol = _ZERO
    cum_pv = _ZERO

    for i in range(len(c)):
        tp = (h[i] + l[i] + c[i]) / 3
        cum_vol += v[i]
        cum_pv += tp * v[i]
        result.append(cum_pv / cum_vol if cum_vol > 0 else None)

    return result


def obv(closes: Sequence[Number], volumes: Sequence[Number]) -> list[Decimal]:
    """
    Calculate On Balance Volume.

    Starts at 0; adds the bar's volume on an up close, subtracts it on a
    down close, carries the previous value on an unchanged close.
    """
    c, v = _decimals(closes), _decimals(volumes)
    if not c:
        return []

    result = [_ZERO]
    for i in range(1, len(c)):
        if c[i] > c[i - 1]:
            result.append(result[-1] + v[i])
        elif c[i] < c[i - 1]:
            result.append(result[-1] - v[i])
        else:
            result.append(result[-1])
    return result
