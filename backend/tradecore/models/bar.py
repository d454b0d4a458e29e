"""Bar (OHLCV candlestick) data models."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Bar(BaseModel):
    """One time interval's open/high/low/close/volume."""

    model_config = ConfigDict(frozen=True)

    open_time: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal = Decimal("0")

    @model_validator(mode="after")
    def _check_ohlc(self):
        if self.high < self.low:
            raise ValueError(f"high {self.high} is below low {self.low}")
        if self.high < max(self.open, self.close):
            raise ValueError("high must be >= max(open, close)")
        if self.low > min(self.open, self.close):
            raise ValueError("low must be <= min(open, close)")
        if self.volume < 0:
            raise ValueError("volume must be non-negative")
        return self

    @property
    def typical_price(self) -> Decimal:
        """(high + low + close) / 3."""
        return (self.high + self.low + self.close) / 3

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def range_size(self) -> Decimal:
        """Get the full range (high - low) of the bar."""
        return self.high - self.low


class BarSeries(BaseModel):
    """Ordered, immutable sequence of bars for one symbol and timeframe.

    Every indicator function consumes the columns of a BarSeries; none of
    them mutate it.
    """

    model_config = ConfigDict(frozen=True)

    symbol: str = ""
    timeframe: str = ""
    bars: tuple[Bar, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _check_order(self):
        for prev, cur in zip(self.bars, self.bars[1:]):
            if cur.open_time <= prev.open_time:
                raise ValueError(
                    f"bars must have strictly increasing open_time "
                    f"({cur.open_time.isoformat()} after {prev.open_time.isoformat()})"
                )
        return self

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Mapping[str, Any]],
        symbol: str = "",
        timeframe: str = "",
    ) -> BarSeries:
        """Build a series from dict-like rows (e.g. CSV records or exchange payloads).

        Accepts either ``open_time`` or ``openTime`` as the timestamp key.
        """
        bars = []
        for row in rows:
            open_time = row.get("open_time", row.get("openTime"))
            bars.append(
                Bar(
                    open_time=open_time,
                    open=row["open"],
                    high=row["high"],
                    low=row["low"],
                    close=row["close"],
                    volume=row.get("volume", 0),
                )
            )
        return cls(symbol=symbol, timeframe=timeframe, bars=tuple(bars))

    def closes(self) -> list[Decimal]:
        """Get list of close prices."""
        return [b.close for b in self.bars]

    def opens(self) -> list[Decimal]:
        return [b.open for b in self.bars]

    def highs(self) -> list[Decimal]:
        """Get list of high prices."""
        return [b.high for b in self.bars]

    def lows(self) -> list[Decimal]:
        """Get list of low prices."""
        return [b.low for b in self.bars]

    def volumes(self) -> list[Decimal]:
        """Get list of volumes."""
        return [b.volume for b in self.bars]

    @property
    def latest(self) -> Bar | None:
        return self.bars[-1] if self.bars else None

    def tail(self, n: int) -> BarSeries:
        """Return a new series with only the last ``n`` bars."""
        return self.model_copy(update={"bars": self.bars[-n:] if n > 0 else ()})

    def __len__(self) -> int:
        return len(self.bars)

    def __getitem__(self, index: int) -> Bar:
        return self.bars[index]
