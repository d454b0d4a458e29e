"""Risk limit, order, and verdict models."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class RiskLimits(BaseModel):
    """Per-user risk limits. Fractions are of account balance."""

    model_config = ConfigDict(frozen=True)

    max_position_size: Decimal = Field(default=Decimal("0.02"), gt=0, le=1)
    max_daily_loss: Decimal = Field(default=Decimal("0.05"), gt=0, le=1)
    max_monthly_loss: Decimal = Field(default=Decimal("0.20"), gt=0, le=1)
    max_leverage: Decimal = Field(default=Decimal("10"), ge=1)
    max_open_positions: int = Field(default=3, ge=1)


class CandidateOrder(BaseModel):
    """An order proposed for submission, not yet accepted by the risk gate."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    side: OrderSide
    quantity: Decimal = Field(gt=0)
    price: Decimal = Field(gt=0)
    leverage: Decimal = Field(default=Decimal("1"), ge=1)
    strategy: str | None = None

    @property
    def notional(self) -> Decimal:
        """Position value (quantity * price)."""
        return self.quantity * self.price


class RiskCheck(BaseModel):
    """Outcome of one independent risk check."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    value: Decimal | None = None
    limit: Decimal | None = None
    message: str = ""


class RiskChecks(BaseModel):
    model_config = ConfigDict(frozen=True)

    position_size: RiskCheck
    daily_loss: RiskCheck
    monthly_loss: RiskCheck
    leverage: RiskCheck
    market_hours: RiskCheck
    correlation: RiskCheck

    def items(self) -> list[tuple[str, RiskCheck]]:
        return [(name, getattr(self, name)) for name in type(self).model_fields]


class RiskVerdict(BaseModel):
    """Accept/reject decision for a candidate order.

    ``valid`` is derived from the checks, so a verdict can never claim to be
    valid while one of its checks failed.
    """

    model_config = ConfigDict(frozen=True)

    checks: RiskChecks

    @computed_field
    @property
    def valid(self) -> bool:
        return all(check.valid for _, check in self.checks.items())

    @computed_field
    @property
    def message(self) -> str:
        if self.valid:
            return "Order approved"
        return "Order rejected by risk limits: " + "; ".join(
            check.message for _, check in self.checks.items() if not check.valid
        )

    @property
    def rejected_checks(self) -> dict[str, RiskCheck]:
        return {name: check for name, check in self.checks.items() if not check.valid}


class TradeStatistics(BaseModel):
    """Running win/loss statistics for a strategy, used for position sizing."""

    model_config = ConfigDict(frozen=True)

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    breakeven_trades: int = 0
    total_profit: Decimal = Decimal("0")
    total_loss: Decimal = Decimal("0")  # stored as a positive magnitude

    @property
    def win_rate(self) -> Decimal:
        # Breakeven trades count toward neither side
        decided = self.winning_trades + self.losing_trades
        if decided == 0:
            return Decimal("0")
        return Decimal(self.winning_trades) / Decimal(decided)

    @property
    def average_win(self) -> Decimal:
        if self.winning_trades == 0:
            return Decimal("0")
        return self.total_profit / self.winning_trades

    @property
    def average_loss(self) -> Decimal:
        if self.losing_trades == 0:
            return Decimal("0")
        return self.total_loss / self.losing_trades

    def record(self, profit: Decimal) -> TradeStatistics:
        """Return a copy updated with one closed trade's P&L."""
        if profit == 0:
            return self.model_copy(update={
                "total_trades": self.total_trades + 1,
                "breakeven_trades": self.breakeven_trades + 1,
            })
        if profit > 0:
            return self.model_copy(update={
                "total_trades": self.total_trades + 1,
                "winning_trades": self.winning_trades + 1,
                "total_profit": self.total_profit + profit,
            })
        return self.model_copy(update={
            "total_trades": self.total_trades + 1,
            "losing_trades": self.losing_trades + 1,
            "total_loss": self.total_loss + abs(profit),
        })
