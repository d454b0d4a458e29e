"""Tests for the composite indicator calculator and level detection."""

import math
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest

from tradecore.errors import IndicatorComputationError, InvalidParameterError
from tradecore.indicators import (
    IndicatorCalculator,
    IndicatorFrameBuilder,
    fibonacci_retracement,
    generate_signals,
    signal_score,
    support_resistance,
)
from tradecore.models import (
    Action,
    Bar,
    BarSeries,
    BollingerPoint,
    IndicatorConfig,
    MacdPoint,
    StochasticPoint,
)

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _make_series(closes, spread: str = "1", symbol: str = "BTCUSDT") -> BarSeries:
    s = Decimal(spread)
    bars = []
    for i, close in enumerate(closes):
        c = Decimal(str(close))
        bars.append(Bar(
            open_time=T0 + timedelta(hours=i),
            open=c, high=c + s, low=c - s, close=c,
            volume=Decimal(100 + (i * 13) % 40),
        ))
    return BarSeries(symbol=symbol, timeframe="1h", bars=tuple(bars))


def _wave_series(n: int) -> BarSeries:
    return _make_series([round(100 + math.sin(i / 4) * 8 + (i % 5), 4) for i in range(n)])


class TestComputeAll:
    def test_columns_in_declared_order(self):
        frame = IndicatorCalculator().compute_all(_wave_series(250))

        assert frame.columns == (
            "sma20", "sma50", "sma200", "ema12", "ema26",
            "rsi", "macd", "bollinger_bands", "stochastic", "williams_r",
            "atr", "psar", "vwap", "obv", "mfi", "ichimoku",
        )
        assert len(frame) == 250
        assert frame[-1]["sma200"] is not None
        assert frame[198]["sma200"] is None

    def test_series_not_modified(self):
        series = _wave_series(80)
        before = series.closes()
        IndicatorCalculator().compute_all(series)
        assert series.closes() == before

    def test_short_series_yields_warm_up_values(self):
        frame = IndicatorCalculator().compute_all(_wave_series(30))
        assert frame.column("sma50") == [None] * 30
        assert frame[-1]["rsi"] is not None

    def test_custom_config(self):
        config = IndicatorConfig(sma_periods=(5,), ema_periods=(3,))
        frame = IndicatorCalculator(config).compute_all(_wave_series(40))
        assert frame.columns[:2] == ("sma5", "ema3")

    def test_failure_names_the_indicator(self):
        with patch("tradecore.indicators.composite.rsi", side_effect=ValueError("boom")):
            with pytest.raises(IndicatorComputationError) as exc_info:
                IndicatorCalculator().compute_all(_wave_series(60))

        assert exc_info.value.indicator == "rsi"
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_compute_latest(self):
        calc = IndicatorCalculator()
        series = _wave_series(60)
        latest = calc.compute_latest(series)
        assert latest.bar == series.latest
        assert calc.compute_latest(BarSeries()) is None


class TestFrameBuilder:
    def test_misaligned_column_rejected(self):
        builder = IndicatorFrameBuilder(_wave_series(5))
        with pytest.raises(ValueError, match="has 3 values"):
            builder.add("x", [1, 2, 3])

    def test_duplicate_column_rejected(self):
        builder = IndicatorFrameBuilder(_wave_series(2)).add("x", [1, 2])
        with pytest.raises(ValueError, match="already added"):
            builder.add("x", [3, 4])

    def test_unknown_column(self):
        frame = IndicatorFrameBuilder(_wave_series(2)).add("x", [1, 2]).build()
        assert frame.column("x") == [1, 2]
        with pytest.raises(KeyError):
            frame.column("y")

    def test_supplied_per_bar_levels_are_used(self):
        series = _make_series([5, 4, 3, 2, 3, 4, 5, 4, 3])
        supports, resistances, per_bar = support_resistance(series, window=2)

        with patch("tradecore.indicators.composite.levels_as_of") as derive:
            frame = IndicatorFrameBuilder(series).with_levels(supports, resistances, per_bar).build()

        derive.assert_not_called()
        assert frame[4].supports == tuple(supports)
        assert frame[6].resistances == tuple(resistances)

    def test_misaligned_per_bar_levels_rejected(self):
        with pytest.raises(ValueError, match="per_bar has 1 entries"):
            IndicatorFrameBuilder(_wave_series(2)).with_levels([], [], [((), ())])


class TestSupportResistance:
    def test_local_extrema(self):
        series = _make_series([5, 4, 3, 2, 3, 4, 5, 4, 3])
        supports, resistances, per_bar = support_resistance(series, window=2)

        assert [s.index for s in supports] == [3]
        assert supports[0].price == Decimal("1")
        assert [r.index for r in resistances] == [6]
        assert resistances[0].price == Decimal("6")

        assert len(per_bar) == len(series)
        assert per_bar[2] == ((), ())
        assert per_bar[3][0] == tuple(supports)
        assert per_bar[5][1] == ()
        assert per_bar[6][1] == tuple(resistances)

    def test_too_short_for_window(self):
        supports, resistances, per_bar = support_resistance(_make_series([1, 2, 3]), window=2)
        assert supports == []
        assert resistances == []
        assert per_bar == [((), ())] * 3

    def test_frame_carries_levels(self):
        config = IndicatorConfig(support_resistance_window=2)
        frame = IndicatorCalculator(config).compute_all(_make_series([5, 4, 3, 2, 3, 4, 5, 4, 3]))
        assert [s.index for s in frame.supports] == [3]
        assert frame[2].supports == ()
        assert frame[4].supports == frame.supports


class TestFibonacci:
    def test_levels(self):
        levels = fibonacci_retracement(200, 100)
        assert levels[Decimal("0")] == Decimal("100")
        assert levels[Decimal("0.5")] == Decimal("150")
        assert levels[Decimal("0.618")] == Decimal("161.8")
        assert levels[Decimal("1")] == Decimal("200")

    def test_high_below_low(self):
        with pytest.raises(InvalidParameterError):
            fibonacci_retracement(100, 200)


class TestCompositeVotes:
    def _frame(self, rsi, macd, bands, stoch, closes=(100, 100)):
        series = _make_series(closes)
        return (
            IndicatorFrameBuilder(series)
            .add("rsi", rsi)
            .add("macd", macd)
            .add("bollinger_bands", bands)
            .add("stochastic", stoch)
            .build()
        )

    def test_all_bullish_votes(self):
        frame = self._frame(
            rsi=[Decimal("35"), Decimal("25")],
            macd=[MacdPoint(Decimal("-1"), Decimal("0"), Decimal("-1")),
                  MacdPoint(Decimal("1"), Decimal("0"), Decimal("1"))],
            bands=[None, BollingerPoint(Decimal("120"), Decimal("110"), Decimal("105"))],
            stoch=[StochasticPoint(Decimal("25")), StochasticPoint(Decimal("15"))],
        )
        signals = generate_signals(frame)

        assert len(signals) == 1
        assert signals[0].strength == 4
        assert signals[0].action == Action.BUY
        assert set(signals[0].votes) == {"rsi", "macd", "bollinger_bands", "stochastic"}

        score = signal_score(signals)
        assert score.buy_score == 4
        assert score.sell_score == 0
        assert score.net_score == 4
        assert score.buy_count == 1
        assert score.total_signals == 1

    def test_single_vote_is_hold(self):
        frame = self._frame(
            rsi=[Decimal("65"), Decimal("75")],
            macd=[None, None],
            bands=[None, None],
            stoch=[None, None],
        )
        signals = generate_signals(frame)
        assert signals[0].strength == -1
        assert signals[0].action == Action.HOLD
        assert signals[0].votes == {"rsi": Action.SELL}

    def test_bearish_votes(self):
        frame = self._frame(
            rsi=[Decimal("65"), Decimal("75")],
            macd=[MacdPoint(Decimal("1"), Decimal("0"), Decimal("1")),
                  MacdPoint(Decimal("-1"), Decimal("0"), Decimal("-1"))],
            bands=[None, BollingerPoint(Decimal("95"), Decimal("90"), Decimal("85"))],
            stoch=[None, None],
        )
        signals = generate_signals(frame)
        assert signals[0].strength == -3
        assert signals[0].action == Action.SELL
        assert signal_score(signals).sell_score == 3

    def test_real_frame_produces_one_signal_per_bar_after_first(self):
        frame = IndicatorCalculator().compute_all(_wave_series(120))
        signals = generate_signals(frame)
        assert len(signals) == 119
        assert all(s.action in (Action.BUY, Action.SELL, Action.HOLD) for s in signals)
