"""Protocols for the external collaborators the engine reads from and writes to.

Any backend (exchange client, database, in-memory test double) can implement
these. Implementations signal a failed read by raising
``UpstreamUnavailableError``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from tradecore.models.bar import BarSeries
from tradecore.models.risk import CandidateOrder, RiskLimits


@runtime_checkable
class MarketDataSource(Protocol):
    """Historical bars and latest prices."""

    async def get_bars(self, symbol: str, timeframe: str, limit: int) -> BarSeries:
        """Return the most recent ``limit`` bars, oldest first."""
        ...

    async def get_price(self, symbol: str) -> Decimal:
        """Return the latest traded price."""
        ...


@runtime_checkable
class AccountRepository(Protocol):
    """Balances, open positions, and realized P&L history per user."""

    async def get_balance(self, user_id: str) -> Decimal:
        ...

    async def count_open_positions(self, user_id: str) -> int:
        ...

    async def get_realized_pnl(self, user_id: str, since: datetime) -> Sequence[Decimal]:
        """Realized P&L of every order created at or after ``since``."""
        ...


@runtime_checkable
class RiskLimitsStore(Protocol):
    async def get_risk_limits(self, user_id: str) -> RiskLimits | None:
        """Return the user's limits, or None to fall back to defaults."""
        ...


@runtime_checkable
class StrategyConfigStore(Protocol):
    async def get_strategy_config(self, user_id: str, strategy: str) -> dict[str, Any] | None:
        """Return the user's raw parameters for a strategy, or None for defaults."""
        ...

    async def is_strategy_enabled(self, user_id: str, strategy: str) -> bool:
        """False only when the user has switched the strategy off."""
        ...


@runtime_checkable
class OrderSubmitter(Protocol):
    async def submit(self, user_id: str, order: CandidateOrder) -> str:
        """Hand an accepted order to execution and return its order id."""
        ...
