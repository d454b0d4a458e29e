"""Independent pre-trade risk checks.

Each check is a pure function of already-fetched account state and returns
a RiskCheck; none of them raise for a limit breach. Ratios are fractions of
account balance, so a non-positive balance fails every ratio check.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from tradecore.models.risk import CandidateOrder, RiskCheck

_ZERO = Decimal("0")


def _pct(value: Decimal) -> str:
    return f"{value * 100:.2f}%"


def _no_balance(limit: Decimal, label: str) -> RiskCheck:
    return RiskCheck(
        valid=False,
        value=None,
        limit=limit,
        message=f"{label}: account balance is not positive",
    )


def check_position_size(order: CandidateOrder, balance: Decimal, max_fraction: Decimal) -> RiskCheck:
    """Position value (quantity * price) as a fraction of balance."""
    if balance <= 0:
        return _no_balance(max_fraction, "Position size")
    ratio = order.notional / balance
    if ratio > max_fraction:
        return RiskCheck(
            valid=False,
            value=ratio,
            limit=max_fraction,
            message=f"Position size ({_pct(ratio)}) exceeds limit ({_pct(max_fraction)})",
        )
    return RiskCheck(valid=True, value=ratio, limit=max_fraction, message="Position size OK")


def check_loss(
    realized_pnl: Iterable[Decimal],
    balance: Decimal,
    max_fraction: Decimal,
    period: str = "Daily",
) -> RiskCheck:
    """Net realized loss over a period as a fraction of balance.

    Only a net loss counts: |min(sum(pnl), 0)| / balance.
    """
    label = f"{period} loss"
    if balance <= 0:
        return _no_balance(max_fraction, label)
    net = sum(realized_pnl, _ZERO)
    ratio = abs(min(net, _ZERO)) / balance
    if ratio > max_fraction:
        return RiskCheck(
            valid=False,
            value=ratio,
            limit=max_fraction,
            message=f"{label} ({_pct(ratio)}) exceeds limit ({_pct(max_fraction)})",
        )
    return RiskCheck(valid=True, value=ratio, limit=max_fraction, message=f"{label} within limit")


def check_leverage(order: CandidateOrder, max_leverage: Decimal) -> RiskCheck:
    if order.leverage > max_leverage:
        return RiskCheck(
            valid=False,
            value=order.leverage,
            limit=max_leverage,
            message=f"Leverage ({order.leverage}x) exceeds limit ({max_leverage}x)",
        )
    return RiskCheck(valid=True, value=order.leverage, limit=max_leverage, message="Leverage OK")


def check_market_hours(symbol: str, is_open: bool) -> RiskCheck:
    if not is_open:
        return RiskCheck(valid=False, message=f"Market closed for {symbol}")
    return RiskCheck(valid=True, message=f"Market open for {symbol}")


def check_correlation(open_positions: int, max_open_positions: int) -> RiskCheck:
    """Caps concurrent exposure by the number of open positions."""
    value = Decimal(open_positions)
    limit = Decimal(max_open_positions)
    if open_positions >= max_open_positions:
        return RiskCheck(
            valid=False,
            value=value,
            limit=limit,
            message=f"Maximum number of open positions reached ({max_open_positions})",
        )
    return RiskCheck(valid=True, value=value, limit=limit, message="Open positions within limit")
