"""Pre-trade risk gate.

Fetches the account state needed for one order concurrently, then runs the
pure checks in ``tradecore.risk.checks``. A breach is reported in the
returned RiskVerdict; only a failed read raises (UpstreamUnavailableError
from the collaborator propagates unchanged).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from tradecore.models.risk import CandidateOrder, RiskChecks, RiskLimits, RiskVerdict
from tradecore.ports import AccountRepository, RiskLimitsStore
from tradecore.risk.checks import (
    check_correlation,
    check_leverage,
    check_loss,
    check_market_hours,
    check_position_size,
)
from tradecore.risk.hours import ContinuousMarketHours, MarketHours

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def day_start(now: datetime) -> datetime:
    """00:00 of ``now``'s date, in ``now``'s timezone."""
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def month_start(now: datetime) -> datetime:
    """00:00 on day 1 of ``now``'s month."""
    return day_start(now).replace(day=1)


class RiskGate:
    """Validates candidate orders against a user's risk limits.

    Args:
        accounts: Balance, open positions and realized P&L per user
        limits_store: Per-user RiskLimits (None -> defaults)
        market_hours: Trading-session hook (default: always open)
        clock: Returns the current time; defaults to UTC now
    """

    def __init__(
        self,
        accounts: AccountRepository,
        limits_store: RiskLimitsStore,
        market_hours: MarketHours | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._accounts = accounts
        self._limits_store = limits_store
        self._market_hours = market_hours or ContinuousMarketHours()
        self._clock = clock or _utcnow

    async def get_limits(self, user_id: str) -> RiskLimits:
        return await self._limits_store.get_risk_limits(user_id) or RiskLimits()

    async def validate_order(self, user_id: str, order: CandidateOrder) -> RiskVerdict:
        """
        Run every risk check for ``order``.

        Returns:
            RiskVerdict whose ``valid`` is the conjunction of all checks

        Raises:
            UpstreamUnavailableError: If any account read fails
        """
        now = self._clock()
        balance, limits, daily_pnl, monthly_pnl, open_positions = await asyncio.gather(
            self._accounts.get_balance(user_id),
            self.get_limits(user_id),
            self._accounts.get_realized_pnl(user_id, day_start(now)),
            self._accounts.get_realized_pnl(user_id, month_start(now)),
            self._accounts.count_open_positions(user_id),
        )

        checks = RiskChecks(
            position_size=check_position_size(order, balance, limits.max_position_size),
            daily_loss=check_loss(daily_pnl, balance, limits.max_daily_loss, "Daily"),
            monthly_loss=check_loss(monthly_pnl, balance, limits.max_monthly_loss, "Monthly"),
            leverage=check_leverage(order, limits.max_leverage),
            market_hours=check_market_hours(order.symbol, self._market_hours.is_open(order.symbol, now)),
            correlation=check_correlation(open_positions, limits.max_open_positions),
        )
        verdict = RiskVerdict(checks=checks)

        if verdict.valid:
            logger.info(
                "Order approved: user=%s %s %s qty=%s @ %s",
                user_id, order.side.value, order.symbol, order.quantity, order.price,
            )
        else:
            logger.warning(
                "Order rejected: user=%s %s %s failed=%s",
                user_id, order.side.value, order.symbol, sorted(verdict.rejected_checks),
            )
        return verdict
