"""Tests for the tradeapp command line."""

import argparse
import csv
import json
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from tradeapp.__main__ import load_csv, main, parse_key_value, parse_open_time, parse_price

T0_MS = 1704067200000  # 2024-01-01T00:00:00Z


def _write_csv(path, closes, volumes=None, time_column="open_time"):
    with open(path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow([time_column, "open", "high", "low", "close", "volume"])
        for i, close in enumerate(closes):
            volume = volumes[i] if volumes is not None else 100
            writer.writerow([T0_MS + i * 3_600_000, close, close + 1, close - 1, close, volume])
    return path


def _buy_setup_csv(tmp_path):
    closes = [100 + 2 * i for i in range(60)] + [213 - 5 * i for i in range(15)]
    volumes = [100] * (len(closes) - 1) + [1000]
    return _write_csv(tmp_path / "bars.csv", closes, volumes)


def _last_json_line(text: str) -> dict:
    lines = [line for line in text.strip().splitlines() if line.startswith("{")]
    return json.loads(lines[-1])


class TestParsers:
    def test_key_value_reads_yaml_scalars(self):
        assert parse_key_value("grid_levels=5") == ("grid_levels", 5)
        assert parse_key_value("base_price=30000.5") == ("base_price", 30000.5)
        assert parse_key_value("name=abc") == ("name", "abc")

    def test_key_value_requires_equals(self):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_key_value("grid_levels")

    def test_price(self):
        assert parse_price("ETHBTC=0.05") == ("ETHBTC", Decimal("0.05"))
        with pytest.raises(argparse.ArgumentTypeError):
            parse_price("ETHBTC=cheap")

    def test_open_time_formats(self):
        expected = datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert parse_open_time(str(T0_MS)) == expected
        assert parse_open_time("2024-01-01T00:00:00") == expected
        assert parse_open_time("2024-01-01T00:00:00+00:00") == expected

    def test_load_csv_with_timestamp_column(self, tmp_path):
        path = _write_csv(tmp_path / "bars.csv", [10, 11, 12], time_column="timestamp")

        series = load_csv(path, "BTCUSDT", "1h")

        assert series.symbol == "BTCUSDT"
        assert series.closes() == [Decimal("10"), Decimal("11"), Decimal("12")]
        assert series[0].open_time == datetime(2024, 1, 1, tzinfo=timezone.utc)

    def test_load_csv_without_time_column(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("open,high,low,close\n1,2,0.5,1.5\n")
        with pytest.raises(ValueError, match="open_time"):
            load_csv(path, "BTCUSDT", "1h")


class TestCommands:
    def test_evaluate_csv(self, tmp_path, capsys):
        path = _buy_setup_csv(tmp_path)

        code = main(["evaluate", "--csv", str(path), "--strategy", "day-trading", "--symbol", "BTCUSDT"])

        assert code == 0
        result = json.loads(capsys.readouterr().out)
        assert result["strategy"] == "day_trading"
        assert result["action"] == "BUY"
        assert result["confidence"] == 0.9
        assert result["reason"] == "Bullish trend + RSI oversold + High volume"
        assert Decimal(result["price"]) == Decimal("143")
        assert Decimal(result["risk_management"]["stop_loss"]) < Decimal("143")

    def test_evaluate_with_params(self, tmp_path, capsys):
        path = _write_csv(tmp_path / "bars.csv", [99])

        code = main([
            "evaluate", "--csv", str(path), "--strategy", "grid", "--symbol", "BTCUSDT",
            "--param", "base_price=100", "--param", "grid_levels=5",
        ])

        assert code == 0
        result = json.loads(capsys.readouterr().out)
        assert result["action"] == "BUY"
        assert result["reason"] == "Grid buy level 1 reached"
        assert len(result["metadata"]["grid_levels"]) == 5

    def test_evaluate_arbitrage_from_prices(self, capsys):
        code = main([
            "evaluate", "--strategy", "arbitrage", "--symbol", "BTCUSDT",
            "--price", "BTCUSDT=30000", "--price", "ETHBTC=0.05", "--price", "ETHUSDT=1550",
        ])

        assert code == 0
        result = json.loads(capsys.readouterr().out)
        assert result["action"] == "ARBITRAGE"
        assert result["reason"] == "Arbitrage opportunity: 3.33% profit"
        assert result["metadata"]["path"] == "USDT -> BTC -> ETH -> USDT"

    def test_insufficient_bars(self, tmp_path, capsys):
        path = _write_csv(tmp_path / "bars.csv", [100, 101, 102])

        assert main(["evaluate", "--csv", str(path), "--strategy", "scalping", "--symbol", "BTCUSDT"]) == 0
        result = json.loads(capsys.readouterr().out)
        assert result["action"] == "HOLD"
        assert result["reason"] == "Insufficient data"

    def test_strategies(self, capsys):
        assert main(["strategies"]) == 0

        result = json.loads(capsys.readouterr().out)
        assert sorted(result) == [
            "day_trading", "grid_trading", "mean_reversion",
            "scalping", "swing_trading", "triangular_arbitrage",
        ]
        assert result["scalping"]["rsi_period"] == 14
        assert len(result["triangular_arbitrage"]["legs"]) == 3

    def test_unknown_strategy_fails(self, capsys):
        code = main(["evaluate", "--strategy", "martingale", "--symbol", "BTCUSDT"])

        assert code == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Unknown strategy 'martingale'" in _last_json_line(captured.err)["error"]

    def test_invalid_param_fails(self, tmp_path, capsys):
        path = _write_csv(tmp_path / "bars.csv", [100])

        code = main([
            "evaluate", "--csv", str(path), "--strategy", "scalping", "--symbol", "BTCUSDT",
            "--param", "rsi_period=0",
        ])

        assert code == 1
        assert "rsi_period" in _last_json_line(capsys.readouterr().err)["error"]

    def test_missing_csv_fails(self, tmp_path, capsys):
        code = main([
            "evaluate", "--csv", str(tmp_path / "missing.csv"),
            "--strategy", "scalping", "--symbol", "BTCUSDT",
        ])
        assert code == 1

    def test_malformed_param_exits(self):
        with pytest.raises(SystemExit):
            main(["evaluate", "--strategy", "scalping", "--symbol", "BTCUSDT", "--param", "oops"])
