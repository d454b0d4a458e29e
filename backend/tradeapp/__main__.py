"""CLI entry point.

Usage:
    python -m tradeapp strategies
    python -m tradeapp evaluate --csv bars.csv --strategy scalping --symbol BTCUSDT
    python -m tradeapp evaluate --csv bars.csv --strategy grid --symbol BTCUSDT \\
        --param base_price=30000 --param grid_levels=5
    python -m tradeapp evaluate --strategy triangular_arbitrage --symbol BTCUSDT \\
        --price BTCUSDT=30000 --price ETHBTC=0.05 --price ETHUSDT=1550
"""

import argparse
import csv
import json
import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from tradecore.errors import TradeCoreError
from tradecore.models import BarSeries
from tradecore.strategy import create_strategy, get_config_class, list_strategies
from tradeapp.config import get_settings

logger = logging.getLogger(__name__)


def parse_key_value(text: str) -> tuple[str, Any]:
    """Parse ``key=value``; the value is read as YAML (numbers, lists, null)."""
    key, sep, raw = text.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected key=value, got '{text}'")
    return key.strip(), yaml.safe_load(raw)


def parse_price(text: str) -> tuple[str, Decimal]:
    key, sep, raw = text.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"Expected SYMBOL=PRICE, got '{text}'")
    try:
        return key.strip(), Decimal(raw.strip())
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"Invalid price for {key}: '{raw}'")


def parse_open_time(value: str) -> datetime:
    """ISO-8601 timestamp or epoch milliseconds."""
    value = value.strip()
    if value.isdigit():
        return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
    dt = datetime.fromisoformat(value)
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def load_csv(path: Path, symbol: str, timeframe: str) -> BarSeries:
    """Read bars from a CSV with open_time/open/high/low/close[/volume] columns."""
    with open(path, newline="") as f:
        rows = []
        for row in csv.DictReader(f):
            row = {k.strip(): v for k, v in row.items() if k}
            open_time = row.get("open_time") or row.get("openTime") or row.get("timestamp")
            if open_time is None:
                raise ValueError(f"{path}: missing open_time column")
            row["open_time"] = parse_open_time(open_time)
            rows.append(row)
    return BarSeries.from_rows(rows, symbol=symbol, timeframe=timeframe)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="tradeapp",
        description="Evaluate trading strategies on OHLCV bars",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("strategies", help="List registered strategies and their defaults")

    evaluate = sub.add_parser("evaluate", help="Evaluate one strategy on a CSV of bars")
    evaluate.add_argument("--csv", type=Path, default=None, help="Bars CSV (oldest first)")
    evaluate.add_argument("--strategy", required=True, help="Strategy name or alias")
    evaluate.add_argument("--symbol", required=True, help="Symbol the signal is for")
    evaluate.add_argument("--timeframe", default=None, help="Bar timeframe label")
    evaluate.add_argument(
        "--param",
        type=parse_key_value,
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Strategy parameter (repeatable)",
    )
    evaluate.add_argument(
        "--price",
        type=parse_price,
        action="append",
        default=[],
        metavar="SYMBOL=PRICE",
        help="Latest price for strategies that need live quotes (repeatable)",
    )
    return parser.parse_args(argv)


def cmd_strategies() -> dict:
    return {
        name: get_config_class(name)().model_dump(mode="json")
        for name in list_strategies()
    }


def cmd_evaluate(args: argparse.Namespace) -> dict:
    timeframe = args.timeframe or get_settings().default_timeframe
    strategy = create_strategy(args.strategy, dict(args.param))

    if args.csv is not None:
        series = load_csv(args.csv, args.symbol, timeframe)
    else:
        series = BarSeries(symbol=args.symbol, timeframe=timeframe)

    signal = strategy.evaluate(args.symbol, series, dict(args.price))
    return signal.model_dump(mode="json")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    settings = get_settings()
    level = logging.DEBUG if args.verbose else settings.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )

    try:
        if args.command == "strategies":
            result = cmd_strategies()
        else:
            result = cmd_evaluate(args)
    except (TradeCoreError, ValueError, OSError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
