"""Trading signal models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Action(str, Enum):
    """Directional recommendation carried by a signal."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"
    ARBITRAGE = "ARBITRAGE"


class RiskLevels(BaseModel):
    """Suggested protective levels for a directional signal. Both are prices, so positive."""

    model_config = ConfigDict(frozen=True)

    stop_loss: Decimal = Field(gt=0)
    take_profit: Decimal = Field(gt=0)


class Signal(BaseModel):
    """Result of one strategy evaluation. Never mutated after creation.

    BUY/SELL signals must carry risk levels on the correct side of ``price``:
    a BUY stops out below and takes profit above, a SELL the reverse.
    HOLD and ARBITRAGE signals carry no levels.
    """

    model_config = ConfigDict(frozen=True)

    strategy: str
    symbol: str
    timestamp: datetime | None = None
    price: Decimal | None = None
    action: Action = Action.HOLD
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reason: str = ""
    indicators: dict[str, Any] = Field(default_factory=dict)
    risk_management: RiskLevels | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_levels(self):
        levels = self.risk_management
        if self.action in (Action.BUY, Action.SELL):
            if levels is None or self.price is None:
                raise ValueError(f"{self.action.value} signal requires price and risk levels")
            if self.action == Action.BUY:
                ok = levels.stop_loss < self.price < levels.take_profit
            else:
                ok = levels.take_profit < self.price < levels.stop_loss
            if not ok:
                raise ValueError(
                    f"{self.action.value} levels on wrong side of price {self.price}: "
                    f"stop={levels.stop_loss} target={levels.take_profit}"
                )
        elif levels is not None:
            raise ValueError(f"{self.action.value} signal must not carry risk levels")
        return self

    @property
    def is_actionable(self) -> bool:
        """True for BUY/SELL signals that can become an order."""
        return self.action in (Action.BUY, Action.SELL)
