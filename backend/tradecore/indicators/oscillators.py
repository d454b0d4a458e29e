"""Bounded oscillators and MACD.

RSI, Stochastic, Williams %R and MFI all report values in [0, 100].
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal

import numpy as np

from tradecore.errors import InvalidParameterError
from tradecore.indicators.indicators import (
    Number,
    _check_period,
    _ema_np,
    _sma_np,
    _to_array,
    _to_decimals,
)
from tradecore.models.indicator import MacdPoint, StochasticPoint


def _bounded(value: float) -> float:
    return float(min(100.0, max(0.0, value)))


def rsi(closes: Sequence[Number], period: int = 14) -> list[Decimal | None]:
    """
    Calculate Relative Strength Index with Wilder smoothing.

    Needs ``period`` price changes, so the first value is at index ``period``.
    When the average loss is zero the RSI is 100.
    """
    _check_period(period)
    arr = _to_array(closes)
    result = np.full(len(arr), np.nan)
    if len(arr) <= period:
        return _to_decimals(result)

    deltas = np.diff(arr)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = float(np.mean(gains[:period]))
    avg_loss = float(np.mean(losses[:period]))
    result[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period + 1, len(arr)):
        avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period
        result[i] = _rsi_value(avg_gain, avg_loss)

    return _to_decimals(result)


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return _bounded(100.0 - 100.0 / (1.0 + rs))


def _range_position(
    highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int
) -> np.ndarray:
    """Where each close sits in its trailing high-low range, 0 = low, 100 = high."""
    result = np.full(len(closes), np.nan)
    for i in range(period - 1, len(closes)):
        hh = np.max(highs[i - period + 1:i + 1])
        ll = np.min(lows[i - period + 1:i + 1])
        if hh == ll:
            result[i] = 50.0
        else:
            result[i] = _bounded(100.0 * (closes[i] - ll) / (hh - ll))
    return result


def stochastic(
    highs: Sequence[Number],
    lows: Sequence[Number],
    closes: Sequence[Number],
    k_period: int = 14,
    d_period: int = 3,
) -> list[StochasticPoint | None]:
    """
    Calculate the Stochastic oscillator.

    %K = 100 * (close - lowest low) / (highest high - lowest low) over
    ``k_period`` (50 when the range is flat); %D = SMA(%K, d_period).
    """
    _check_period(k_period, "k_period")
    _check_period(d_period, "d_period")
    k = _range_position(_to_array(highs), _to_array(lows), _to_array(closes), k_period)
    d = _sma_np(k, d_period)

    k_values = _to_decimals(k)
    d_values = _to_decimals(d)
    return [
        None if kv is None else StochasticPoint(k=kv, d=dv)
        for kv, dv in zip(k_values, d_values)
    ]


def williams_r(
    highs: Sequence[Number],
    lows: Sequence[Number],
    closes: Sequence[Number],
    period: int = 14,
) -> list[Decimal | None]:
    """
    Calculate Williams %R as a magnitude in [0, 100].

    ``100 * (highest high - close) / (highest high - lowest low)``: 0 means
    the close is at the top of the range, 100 at the bottom. This is the
    classic %R with the sign dropped.
    """
    _check_period(period)
    position = _range_position(_to_array(highs), _to_array(lows), _to_array(closes), period)
    return _to_decimals(np.where(np.isnan(position), np.nan, 100.0 - position))


def mfi(
    highs: Sequence[Number],
    lows: Sequence[Number],
    closes: Sequence[Number],
    volumes: Sequence[Number],
    period: int = 14,
) -> list[Decimal | None]:
    """
    Calculate Money Flow Index.

    Raw money flow is typical price * volume, classed positive or negative
    by the direction of the typical price. MFI = 100 - 100 / (1 + pos / neg)
    over the trailing ``period`` flows; 100 with no negative flow, 50 with
    no flow at all.
    """
    _check_period(period)
    h, l, c, v = _to_array(highs), _to_array(lows), _to_array(closes), _to_array(volumes)
    n = len(c)
    result = np.full(n, np.nan)
    if n <= period:
        return _to_decimals(result)

    typical = (h + l + c) / 3.0
    flow = typical * v
    positive = np.zeros(n)
    negative = np.zeros(n)
    for i in range(1, n):
        if typical[i] > typical[i - 1]:
            positive[i] = flow[i]
        elif typical[i] < typical[i - 1]:
            negative[i] = flow[i]

    for i in range(period, n):
        pos = float(np.sum(positive[i - period + 1:i + 1]))
        neg = float(np.sum(negative[i - period + 1:i + 1]))
        if neg == 0:
            result[i] = 50.0 if pos == 0 else 100.0
        else:
            result[i] = _bounded(100.0 - 100.0 / (1.0 + pos / neg))

    return _to_decimals(result)


def macd(
    closes: Sequence[Number],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> list[MacdPoint | None]:
    """
    Calculate MACD.

    MACD line = EMA(fast) - EMA(slow), available from index slow-1.
    Signal = EMA(signal_period) of the MACD line, histogram = MACD - signal,
    both available from index slow + signal - 2.
    """
    _check_period(fast_period, "fast_period")
    _check_period(slow_period, "slow_period")
    _check_period(signal_period, "signal_period")
    if fast_period >= slow_period:
        raise InvalidParameterError(
            f"fast_period ({fast_period}) must be shorter than slow_period ({slow_period})"
        )

    arr = _to_array(closes)
    line = _ema_np(arr, fast_period) - _ema_np(arr, slow_period)
    signal = _ema_np(line, signal_period)
    histogram = line - signal

    result: list[MacdPoint | None] = []
    for m, s, h in zip(_to_decimals(line), _to_decimals(signal), _to_decimals(histogram)):
        result.append(None if m is None else MacdPoint(macd=m, signal=s, histogram=h))
    return result
