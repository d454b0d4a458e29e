"""Market-hours hooks used by the risk gate."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, time, timezone
from typing import Protocol, runtime_checkable
from zoneinfo import ZoneInfo


@runtime_checkable
class MarketHours(Protocol):
    def is_open(self, symbol: str, at: datetime) -> bool:
        """Whether ``symbol`` can be traded at instant ``at``."""
        ...


class ContinuousMarketHours:
    """Always open (24/7 crypto markets)."""

    def is_open(self, symbol: str, at: datetime) -> bool:
        return True


class SessionMarketHours:
    """
    Daily trading session on selected weekdays in a given timezone.

    ``open`` is inclusive and ``close`` exclusive. When ``close`` is earlier
    than ``open`` the session runs overnight and belongs to the weekday on
    which it opened.

    Args:
        open: Session open (local time)
        close: Session close (local time)
        weekdays: Trading days, 0=Monday ... 6=Sunday
        tz: IANA timezone name
        symbols: Restrict the schedule to these symbols; others are always open
    """

    def __init__(
        self,
        open: time,
        close: time,
        weekdays: Iterable[int] = range(5),
        tz: str = "UTC",
        symbols: Iterable[str] | None = None,
    ):
        if open == close:
            raise ValueError("session open and close must differ")
        self.open = open
        self.close = close
        self.weekdays = frozenset(weekdays)
        if not self.weekdays <= set(range(7)):
            raise ValueError(f"weekdays must be within 0..6, got {sorted(self.weekdays)}")
        self.tz = ZoneInfo(tz)
        self.symbols = frozenset(symbols) if symbols is not None else None

    def is_open(self, symbol: str, at: datetime) -> bool:
        if self.symbols is not None and symbol not in self.symbols:
            return True
        if at.tzinfo is None:
            at = at.replace(tzinfo=timezone.utc)
        local = at.astimezone(self.tz)
        now = local.time()
        weekday = local.weekday()

        if self.open < self.close:
            return weekday in self.weekdays and self.open <= now < self.close

        # Overnight session
        if now >= self.open:
            return weekday in self.weekdays
        if now < self.close:
            return (weekday - 1) % 7 in self.weekdays
        return False
