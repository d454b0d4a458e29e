"""Tests for bar, signal and risk models."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from tradecore.models import (
    Action,
    Bar,
    BarSeries,
    RiskCheck,
    RiskChecks,
    RiskLevels,
    RiskLimits,
    RiskVerdict,
    Signal,
    TradeStatistics,
)

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _make_bar(i: int, close: str = "100", spread: str = "1") -> Bar:
    c = Decimal(close)
    s = Decimal(spread)
    return Bar(open_time=T0 + timedelta(minutes=i), open=c, high=c + s, low=c - s, close=c, volume=Decimal("10"))


def _ok(message: str = "ok") -> RiskCheck:
    return RiskCheck(valid=True, message=message)


def _fail(message: str = "no") -> RiskCheck:
    return RiskCheck(valid=False, message=message)


class TestBar:
    def test_valid_bar(self):
        bar = _make_bar(0)
        assert bar.range_size == Decimal("2")
        assert bar.typical_price == Decimal("100")
        assert not bar.is_bullish

    def test_high_below_low_rejected(self):
        with pytest.raises(ValidationError, match="below low"):
            Bar(open_time=T0, open=100, high=90, low=95, close=100)

    def test_close_above_high_rejected(self):
        with pytest.raises(ValidationError):
            Bar(open_time=T0, open=100, high=101, low=99, close=102)

    def test_negative_volume_rejected(self):
        with pytest.raises(ValidationError, match="non-negative"):
            Bar(open_time=T0, open=100, high=101, low=99, close=100, volume=-1)

    def test_bar_is_frozen(self):
        bar = _make_bar(0)
        with pytest.raises(ValidationError):
            bar.close = Decimal("1")


class TestBarSeries:
    def test_columns_and_latest(self):
        series = BarSeries(symbol="BTCUSDT", timeframe="1m", bars=tuple(_make_bar(i, str(100 + i)) for i in range(5)))
        assert len(series) == 5
        assert series.closes() == [Decimal(100 + i) for i in range(5)]
        assert series.highs()[0] == Decimal("101")
        assert series.lows()[0] == Decimal("99")
        assert series.latest.close == Decimal("104")
        assert series[1].close == Decimal("101")

    def test_empty_series_has_no_latest(self):
        assert BarSeries().latest is None

    def test_out_of_order_rejected(self):
        with pytest.raises(ValidationError, match="strictly increasing"):
            BarSeries(bars=(_make_bar(1), _make_bar(0)))

    def test_duplicate_timestamp_rejected(self):
        with pytest.raises(ValidationError):
            BarSeries(bars=(_make_bar(0), _make_bar(0)))

    def test_tail_returns_new_series(self):
        series = BarSeries(symbol="X", bars=tuple(_make_bar(i) for i in range(10)))
        tail = series.tail(3)
        assert len(tail) == 3
        assert tail.symbol == "X"
        assert tail[0].open_time == series[7].open_time
        assert len(series) == 10

    def test_from_rows_accepts_open_time_aliases(self):
        rows = [
            {"openTime": T0, "open": "1", "high": "2", "low": "0.5", "close": "1.5", "volume": "3"},
            {"open_time": T0 + timedelta(minutes=1), "open": "1.5", "high": "2", "low": "1", "close": "1.8"},
        ]
        series = BarSeries.from_rows(rows, symbol="ABC", timeframe="1m")
        assert series.closes() == [Decimal("1.5"), Decimal("1.8")]
        assert series.volumes() == [Decimal("3"), Decimal("0")]


class TestSignal:
    def test_buy_levels_must_bracket_price(self):
        signal = Signal(
            strategy="s", symbol="X", price=Decimal("100"), action=Action.BUY, confidence=0.8,
            risk_management=RiskLevels(stop_loss=Decimal("95"), take_profit=Decimal("110")),
        )
        assert signal.is_actionable

    def test_buy_with_inverted_levels_rejected(self):
        with pytest.raises(ValidationError, match="wrong side"):
            Signal(
                strategy="s", symbol="X", price=Decimal("100"), action=Action.BUY,
                risk_management=RiskLevels(stop_loss=Decimal("105"), take_profit=Decimal("110")),
            )

    def test_sell_levels_are_mirrored(self):
        Signal(
            strategy="s", symbol="X", price=Decimal("100"), action=Action.SELL,
            risk_management=RiskLevels(stop_loss=Decimal("105"), take_profit=Decimal("90")),
        )
        with pytest.raises(ValidationError):
            Signal(
                strategy="s", symbol="X", price=Decimal("100"), action=Action.SELL,
                risk_management=RiskLevels(stop_loss=Decimal("95"), take_profit=Decimal("110")),
            )

    @pytest.mark.parametrize("stop_loss, take_profit", [("20", "-5"), ("20", "0"), ("-1", "110")])
    def test_non_positive_levels_rejected(self, stop_loss, take_profit):
        with pytest.raises(ValidationError):
            RiskLevels(stop_loss=Decimal(stop_loss), take_profit=Decimal(take_profit))

    def test_buy_without_levels_rejected(self):
        with pytest.raises(ValidationError, match="requires"):
            Signal(strategy="s", symbol="X", price=Decimal("100"), action=Action.BUY)

    def test_hold_cannot_carry_levels(self):
        with pytest.raises(ValidationError, match="must not carry"):
            Signal(
                strategy="s", symbol="X", price=Decimal("100"), action=Action.HOLD,
                risk_management=RiskLevels(stop_loss=Decimal("95"), take_profit=Decimal("110")),
            )

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            Signal(strategy="s", symbol="X", confidence=1.5)


class TestRiskVerdict:
    def test_valid_is_conjunction_of_checks(self):
        checks = RiskChecks(
            position_size=_ok(), daily_loss=_ok(), monthly_loss=_ok(),
            leverage=_ok(), market_hours=_ok(), correlation=_ok(),
        )
        verdict = RiskVerdict(checks=checks)
        assert verdict.valid
        assert verdict.message == "Order approved"
        assert verdict.rejected_checks == {}

    def test_single_failure_rejects(self):
        checks = RiskChecks(
            position_size=_ok(), daily_loss=_ok(), monthly_loss=_ok(),
            leverage=_fail("too much leverage"), market_hours=_ok(), correlation=_ok(),
        )
        verdict = RiskVerdict(checks=checks)
        assert not verdict.valid
        assert list(verdict.rejected_checks) == ["leverage"]
        assert "too much leverage" in verdict.message

    def test_valid_is_serialised(self):
        checks = RiskChecks(
            position_size=_fail(), daily_loss=_ok(), monthly_loss=_ok(),
            leverage=_ok(), market_hours=_ok(), correlation=_ok(),
        )
        dumped = RiskVerdict(checks=checks).model_dump()
        assert dumped["valid"] is False
        assert dumped["message"].startswith("Order rejected")


class TestRiskLimits:
    def test_defaults(self):
        limits = RiskLimits()
        assert limits.max_position_size == Decimal("0.02")
        assert limits.max_daily_loss == Decimal("0.05")
        assert limits.max_monthly_loss == Decimal("0.20")
        assert limits.max_leverage == Decimal("10")
        assert limits.max_open_positions == 3

    def test_partial_override_keeps_defaults(self):
        limits = RiskLimits(max_open_positions=5)
        assert limits.max_open_positions == 5
        assert limits.max_daily_loss == Decimal("0.05")


class TestTradeStatistics:
    def test_record_returns_updated_copy(self):
        stats = TradeStatistics()
        updated = stats.record(Decimal("100")).record(Decimal("-40")).record(Decimal("50"))

        assert stats.total_trades == 0
        assert updated.total_trades == 3
        assert updated.winning_trades == 2
        assert updated.losing_trades == 1
        assert updated.average_win == Decimal("75")
        assert updated.average_loss == Decimal("40")
        assert updated.win_rate == Decimal(2) / Decimal(3)

    def test_breakeven_trade_is_neither_win_nor_loss(self):
        updated = TradeStatistics().record(Decimal("100")).record(Decimal("0")).record(Decimal("-50"))

        assert updated.total_trades == 3
        assert updated.breakeven_trades == 1
        assert updated.winning_trades == 1
        assert updated.losing_trades == 1
        assert updated.win_rate == Decimal("0.5")
        assert updated.average_loss == Decimal("50")

    def test_empty_statistics(self):
        stats = TradeStatistics()
        assert stats.win_rate == 0
        assert stats.average_win == 0
        assert stats.average_loss == 0
