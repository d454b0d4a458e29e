"""Configuration models shared by the indicator and strategy layers."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from tradecore.errors import InvalidParameterError

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_config(model_cls: type[ModelT], params: ModelT | Mapping[str, Any] | None) -> ModelT:
    """Validate a parameter bag against a config model.

    Raises:
        InvalidParameterError: If a value is missing, unknown, or out of range.
    """
    if params is None:
        return model_cls()
    if isinstance(params, model_cls):
        return params
    if isinstance(params, BaseModel):
        params = params.model_dump()
    try:
        return model_cls.model_validate(dict(params))
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or model_cls.__name__}: {err['msg']}"
            for err in exc.errors()
        )
        raise InvalidParameterError(f"Invalid {model_cls.__name__}: {problems}") from exc


class IndicatorConfig(BaseModel):
    """Periods and parameters used by ``IndicatorCalculator.compute_all``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    sma_periods: tuple[int, ...] = (20, 50, 200)
    ema_periods: tuple[int, ...] = (12, 26)
    rsi_period: int = Field(default=14, ge=1)

    macd_fast: int = Field(default=12, ge=1)
    macd_slow: int = Field(default=26, ge=2)
    macd_signal: int = Field(default=9, ge=1)

    bollinger_period: int = Field(default=20, ge=1)
    bollinger_std_dev: Decimal = Field(default=Decimal("2"), gt=0)

    stochastic_k: int = Field(default=14, ge=1)
    stochastic_d: int = Field(default=3, ge=1)
    williams_r_period: int = Field(default=14, ge=1)
    atr_period: int = Field(default=14, ge=1)
    mfi_period: int = Field(default=14, ge=1)

    psar_acceleration: Decimal = Field(default=Decimal("0.02"), gt=0)
    psar_maximum: Decimal = Field(default=Decimal("0.2"), gt=0)

    ichimoku_conversion: int = Field(default=9, ge=1)
    ichimoku_base: int = Field(default=26, ge=1)
    ichimoku_span_b: int = Field(default=52, ge=1)
    ichimoku_displacement: int = Field(default=26, ge=1)

    support_resistance_window: int = Field(default=20, ge=1)

    @model_validator(mode="after")
    def _validate(self):
        if any(p < 1 for p in (*self.sma_periods, *self.ema_periods)):
            raise ValueError("moving average periods must be >= 1")
        if self.macd_fast >= self.macd_slow:
            raise ValueError("macd_fast must be shorter than macd_slow")
        if self.psar_acceleration > self.psar_maximum:
            raise ValueError("psar_acceleration must not exceed psar_maximum")
        return self
