"""In-memory market data and account state.

Backs the CLI and tests. Accounts double as the order submitter: an
accepted order is recorded as an open position so the next risk check
sees it.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from tradecore.errors import UpstreamUnavailableError
from tradecore.models import BarSeries, CandidateOrder
from tradeapp.trading_config import TradingConfig

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryMarketData:
    """Bars keyed by (symbol, timeframe) plus explicit latest prices."""

    def __init__(self):
        self._series: dict[tuple[str, str], BarSeries] = {}
        self._prices: dict[str, Decimal] = {}

    def add_series(self, series: BarSeries) -> None:
        self._series[(series.symbol, series.timeframe)] = series

    def set_price(self, symbol: str, price: Decimal) -> None:
        self._prices[symbol] = price

    async def get_bars(self, symbol: str, timeframe: str, limit: int) -> BarSeries:
        series = self._series.get((symbol, timeframe))
        if series is None:
            raise UpstreamUnavailableError(f"No bars for {symbol} {timeframe}")
        return series.tail(limit)

    async def get_price(self, symbol: str) -> Decimal:
        """Explicit price if set, else the close of the symbol's most recent bar."""
        if symbol in self._prices:
            return self._prices[symbol]
        latest = [
            s.latest for (sym, _), s in self._series.items() if sym == symbol and s.latest
        ]
        if not latest:
            raise UpstreamUnavailableError(f"No price for {symbol}")
        return max(latest, key=lambda bar: bar.open_time).close


@dataclass(slots=True)
class OrderRecord:
    order_id: str
    user_id: str
    order: CandidateOrder | None
    created_at: datetime
    realized_pnl: Decimal = Decimal("0")
    is_open: bool = True


@dataclass(slots=True)
class _Account:
    balance: Decimal = Decimal("0")
    orders: list[OrderRecord] = field(default_factory=list)


class InMemoryAccountRepository:
    """Balances, orders and realized P&L per user."""

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._accounts: dict[str, _Account] = {}
        self._clock = clock or _utcnow

    @classmethod
    def from_config(
        cls,
        config: TradingConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> InMemoryAccountRepository:
        """Accounts seeded with each configured user's balance."""
        repo = cls(clock=clock)
        for user_id, user in config.users.items():
            repo.set_balance(user_id, user.balance)
        return repo

    def _account(self, user_id: str) -> _Account:
        if user_id not in self._accounts:
            self._accounts[user_id] = _Account()
        return self._accounts[user_id]

    def set_balance(self, user_id: str, balance: Decimal) -> None:
        self._account(user_id).balance = balance

    def record_pnl(self, user_id: str, pnl: Decimal, at: datetime | None = None) -> OrderRecord:
        """Record an already-closed trade, e.g. when seeding history."""
        record = OrderRecord(
            order_id=uuid.uuid4().hex,
            user_id=user_id,
            order=None,
            created_at=at or self._clock(),
            realized_pnl=pnl,
            is_open=False,
        )
        self._account(user_id).orders.append(record)
        return record

    def close_position(self, user_id: str, order_id: str, pnl: Decimal) -> None:
        account = self._account(user_id)
        for record in account.orders:
            if record.order_id == order_id and record.is_open:
                record.is_open = False
                record.realized_pnl = pnl
                account.balance += pnl
                return
        raise KeyError(f"No open order {order_id} for user {user_id}")

    def orders(self, user_id: str) -> list[OrderRecord]:
        return list(self._account(user_id).orders)

    # ------------------------------------------------------------------
    # AccountRepository
    # ------------------------------------------------------------------

    async def get_balance(self, user_id: str) -> Decimal:
        return self._account(user_id).balance

    async def count_open_positions(self, user_id: str) -> int:
        return sum(1 for r in self._account(user_id).orders if r.is_open)

    async def get_realized_pnl(self, user_id: str, since: datetime) -> Sequence[Decimal]:
        return [r.realized_pnl for r in self._account(user_id).orders if r.created_at >= since]

    # ------------------------------------------------------------------
    # OrderSubmitter
    # ------------------------------------------------------------------

    async def submit(self, user_id: str, order: CandidateOrder) -> str:
        record = OrderRecord(
            order_id=uuid.uuid4().hex,
            user_id=user_id,
            order=order,
            created_at=self._clock(),
        )
        self._account(user_id).orders.append(record)
        logger.info(
            "Recorded order %s: user=%s %s %s qty=%s",
            record.order_id, user_id, order.side.value, order.symbol, order.quantity,
        )
        return record.order_id
