"""Position sizing with a fractional Kelly criterion."""

from __future__ import annotations

from decimal import Decimal

from tradecore.errors import InvalidParameterError
from tradecore.indicators.indicators import Number, _as_decimal
from tradecore.models.risk import TradeStatistics


def recommend_position_size(
    win_rate: Number,
    avg_win: Number,
    avg_loss: Number,
    kelly_fraction: Number = Decimal("0.25"),
    min_size: Number = Decimal("0.01"),
    max_size: Number = Decimal("0.10"),
    default: Number = Decimal("0.02"),
) -> Decimal:
    """
    Recommend a position size as a fraction of balance.

    kelly = (win_rate * avg_win - (1 - win_rate) * avg_loss) / avg_win
    size  = clamp(kelly * kelly_fraction, min_size, max_size)

    ``avg_loss`` is a positive magnitude. Without a usable history
    (win_rate outside (0, 1) or avg_win <= 0) the ``default`` is returned.

    Raises:
        InvalidParameterError: If min_size > max_size or a size is negative
    """
    p = _as_decimal(win_rate)
    win = _as_decimal(avg_win)
    loss = abs(_as_decimal(avg_loss))
    fraction = _as_decimal(kelly_fraction)
    lo, hi = _as_decimal(min_size), _as_decimal(max_size)

    if lo < 0 or lo > hi:
        raise InvalidParameterError(f"invalid size bounds: min_size={lo}, max_size={hi}")

    if p <= 0 or p >= 1 or win <= 0:
        return _as_decimal(default)

    kelly = (p * win - (1 - p) * loss) / win
    return max(lo, min(hi, kelly * fraction))


def recommend_from_statistics(stats: TradeStatistics, **kwargs) -> Decimal:
    """``recommend_position_size`` fed from a strategy's trade history."""
    return recommend_position_size(stats.win_rate, stats.average_win, stats.average_loss, **kwargs)
