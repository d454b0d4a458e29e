"""Tests for technical indicators."""

import math
from decimal import Decimal

import pytest

from tradecore.errors import InvalidParameterError
from tradecore.indicators import (
    atr,
    bollinger_bands,
    ema,
    highest,
    ichimoku,
    lowest,
    macd,
    mfi,
    obv,
    psar,
    rsi,
    sma,
    stochastic,
    true_range,
    vwap,
    williams_r,
)


def _wave(n: int) -> list[Decimal]:
    """Deterministic closes that change direction often."""
    return [
        Decimal("100") + Decimal(str(round(math.sin(i / 3) * 5 + (i % 7) - 3, 4)))
        for i in range(n)
    ]


def _hlc(closes: list[Decimal], spread: str = "1"):
    s = Decimal(spread)
    return [c + s for c in closes], [c - s for c in closes], closes


class TestSMA:
    def test_sma_basic(self):
        values = [Decimal(str(i)) for i in range(1, 11)]  # 1-10
        result = sma(values, 3)

        assert result[0] is None
        assert result[1] is None
        # (1+2+3)/3 = 2, then (2+3+4)/3 = 3
        assert result[2] == Decimal("2")
        assert result[3] == Decimal("3")

    def test_sma_equals_trailing_mean(self):
        closes = _wave(60)
        result = sma(closes, 7)
        for i in range(6, len(closes)):
            assert result[i] == sum(closes[i - 6:i + 1], Decimal("0")) / 7

    def test_sma_is_idempotent(self):
        closes = _wave(40)
        assert sma(closes, 5) == sma(closes, 5)

    def test_period_longer_than_series(self):
        assert sma([Decimal("1"), Decimal("2")], 5) == [None, None]

    @pytest.mark.parametrize("period", [0, -3])
    def test_invalid_period(self, period):
        with pytest.raises(InvalidParameterError):
            sma([Decimal("1")], period)


class TestEMA:
    def test_ema_seeded_with_sma(self):
        values = [Decimal(str(i)) for i in range(1, 11)]  # 1-10
        result = ema(values, 5)

        assert result[0] is None
        assert result[3] is None
        # 5th value is the SMA of the first 5 = 3
        assert result[4] == Decimal("3")
        assert result[5] > result[4]

    def test_ema_insufficient_data(self):
        result = ema([Decimal("100"), Decimal("101"), Decimal("102")], 10)
        assert result == [None, None, None]


class TestWarmUp:
    @pytest.mark.parametrize("period", [1, 2, 5, 14])
    def test_first_period_minus_one_points_are_none(self, period):
        closes = _wave(30)
        highs, lows, _ = _hlc(closes)
        for result in (
            sma(closes, period),
            ema(closes, period),
            highest(highs, period),
            lowest(lows, period),
            atr(highs, lows, closes, period),
            bollinger_bands(closes, period),
            stochastic(highs, lows, closes, period, 1),
            williams_r(highs, lows, closes, period),
        ):
            assert len(result) == len(closes)
            assert all(v is None for v in result[:period - 1])
            assert all(v is not None for v in result[period - 1:])


class TestBoundedOscillators:
    def test_rsi_first_value_at_period(self):
        closes = _wave(30)
        result = rsi(closes, 14)
        assert all(v is None for v in result[:14])
        assert all(v is not None for v in result[14:])

    def test_rsi_all_gains_is_100(self):
        closes = [Decimal(100 + i) for i in range(20)]
        assert rsi(closes, 14)[-1] == Decimal("100")

    def test_rsi_all_losses_is_0(self):
        closes = [Decimal(100 - i) for i in range(20)]
        assert rsi(closes, 14)[-1] == Decimal("0")

    def test_values_within_0_100(self):
        closes = _wave(120)
        highs, lows, _ = _hlc(closes)
        volumes = [Decimal(100 + (i * 37) % 50) for i in range(len(closes))]

        series = [
            rsi(closes, 14),
            [p.k if p else None for p in stochastic(highs, lows, closes, 14, 3)],
            williams_r(highs, lows, closes, 14),
            mfi(highs, lows, closes, volumes, 14),
        ]
        for values in series:
            for v in values:
                if v is not None:
                    assert Decimal("0") <= v <= Decimal("100")

    def test_flat_range_is_50(self):
        closes = [Decimal("100")] * 20
        stoch = stochastic(closes, closes, closes, 14, 3)
        assert stoch[-1].k == Decimal("50")
        assert stoch[-1].d == Decimal("50")
        assert williams_r(closes, closes, closes, 14)[-1] == Decimal("50")

    def test_williams_r_is_magnitude(self):
        closes = [Decimal(100 + i) for i in range(20)]
        highs, lows, _ = _hlc(closes, "0")
        # Close at the top of the range
        assert williams_r(highs, lows, closes, 14)[-1] == Decimal("0")
        falling = list(reversed(closes))
        assert williams_r(falling, falling, falling, 14)[-1] == Decimal("100")

    def test_mfi_first_value_at_period(self):
        closes = _wave(20)
        highs, lows, _ = _hlc(closes)
        result = mfi(highs, lows, closes, [Decimal("10")] * 20, 14)
        assert result[13] is None
        assert result[14] is not None

    def test_mfi_no_negative_flow_is_100(self):
        closes = [Decimal(100 + i) for i in range(20)]
        highs, lows, _ = _hlc(closes)
        assert mfi(highs, lows, closes, [Decimal("10")] * 20, 14)[-1] == Decimal("100")

    def test_mfi_no_flow_is_50(self):
        closes = [Decimal(100 + i) for i in range(20)]
        highs, lows, _ = _hlc(closes)
        assert mfi(highs, lows, closes, [Decimal("0")] * 20, 14)[-1] == Decimal("50")


class TestMACD:
    def test_line_and_signal_warm_up(self):
        closes = _wave(20)
        result = macd(closes, 3, 5, 3)

        assert result[3] is None
        assert result[4] is not None
        assert result[4].signal is None
        # Signal and histogram start at slow + signal - 2
        assert result[5].signal is None
        assert result[6].signal is not None
        assert result[6].histogram == pytest.approx(result[6].macd - result[6].signal, abs=Decimal("1e-9"))

    def test_fast_not_shorter_than_slow(self):
        with pytest.raises(InvalidParameterError):
            macd(_wave(40), 26, 12, 9)


class TestBollingerBands:
    def test_population_std(self):
        closes = [Decimal(i) for i in range(1, 6)]
        point = bollinger_bands(closes, 5, 2)[-1]

        # mean 3, population variance 2
        band = 2 * Decimal(2).sqrt()
        assert point.middle == Decimal("3")
        assert point.upper == Decimal("3") + band
        assert point.lower == Decimal("3") - band

    def test_constant_series_collapses(self):
        point = bollinger_bands([Decimal("50")] * 20, 20, 2)[-1]
        assert point.upper == point.middle == point.lower == Decimal("50")


class TestATR:
    def test_true_range_first_bar(self):
        tr = true_range([Decimal("12"), Decimal("15")], [Decimal("10"), Decimal("13")], [Decimal("11"), Decimal("14")])
        assert tr[0] == Decimal("2")
        # max(15-13, |15-11|, |13-11|)
        assert tr[1] == Decimal("4")

    def test_atr_constant_range(self):
        highs = [Decimal("102")] * 20
        lows = [Decimal("100")] * 20
        closes = [Decimal("101")] * 20

        result = atr(highs, lows, closes, 9)
        assert result[-1] == Decimal("2")

    def test_atr_insufficient_data(self):
        highs = [Decimal("102")] * 5
        result = atr(highs, [Decimal("100")] * 5, [Decimal("101")] * 5, 9)
        assert result == [None] * 5


class TestPSAR:
    def test_rising_market_stays_below_lows(self):
        lows = [Decimal(10 + i) for i in range(30)]
        highs = [low + 1 for low in lows]
        result = psar(highs, lows)

        assert result[0] == lows[0]
        for i in range(1, len(lows)):
            assert result[i] <= lows[i]

    def test_trend_flip(self):
        lows = [Decimal(10 + i) for i in range(15)] + [Decimal(20 - i) for i in range(15)]
        highs = [low + 1 for low in lows]
        result = psar(highs, lows)
        # After the reversal SAR ends up above price
        assert result[-1] > highs[-1]

    @pytest.mark.parametrize("step,cap", [(0, 0.2), (0.3, 0.2), (-0.1, 0.2)])
    def test_invalid_acceleration(self, step, cap):
        with pytest.raises(InvalidParameterError):
            psar([Decimal("2")], [Decimal("1")], step, cap)


class TestIchimoku:
    def test_warm_up_and_displacement(self):
        closes = _wave(40)
        highs, lows, _ = _hlc(closes)
        result = ichimoku(highs, lows, 3, 5, 8, 4)

        assert result[1] is None
        assert result[2].conversion is not None
        assert result[2].base is None
        assert result[7].span_b is not None
        assert result[7].current_span_b is None
        # Span B computed at index 7 lands on index 11
        assert result[11].current_span_b == result[7].span_b


class TestVolume:
    def test_vwap_five_bars(self):
        highs = [Decimal(x) for x in ("12", "13", "14", "12", "15")]
        lows = [Decimal(x) for x in ("8", "9", "10", "9", "12")]
        closes = [Decimal(x) for x in ("10", "11", "12", "9", "12")]
        volumes = [Decimal(x) for x in ("100", "200", "0", "300", "100")]
        # typical prices: 10, 11, 12, 10, 13

        result = vwap(highs, lows, closes, volumes)

        assert result[0] == Decimal("10")
        assert result[1] == Decimal("3200") / Decimal("300")
        # Zero-volume bar leaves the cumulative sums unchanged
        assert result[2] == result[1]
        assert result[3] == Decimal("6200") / Decimal("600")
        assert result[4] == Decimal("7500") / Decimal("700")

    def test_vwap_none_until_volume(self):
        prices = [Decimal("10")] * 3
        result = vwap(prices, prices, prices, [Decimal("0"), Decimal("0"), Decimal("5")])
        assert result == [None, None, Decimal("10")]

    def test_obv(self):
        closes = [Decimal(x) for x in ("10", "11", "11", "10")]
        volumes = [Decimal(x) for x in ("5", "6", "7", "8")]
        assert obv(closes, volumes) == [Decimal("0"), Decimal("6"), Decimal("6"), Decimal("-2")]


class TestExtrema:
    def test_highest_lowest(self):
        values = [Decimal(x) for x in ("3", "1", "4", "1", "5")]
        assert highest(values, 3) == [None, None, Decimal("4"), Decimal("4"), Decimal("5")]
        assert lowest(values, 3) == [None, None, Decimal("1"), Decimal("1"), Decimal("1")]
