"""Composite indicator calculation over a whole bar series."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from tradecore.errors import IndicatorComputationError
from tradecore.indicators.indicators import (
    atr,
    bollinger_bands,
    ema,
    ichimoku,
    obv,
    psar,
    sma,
    vwap,
)
from tradecore.indicators.levels import LevelsByBar, levels_as_of, support_resistance
from tradecore.indicators.oscillators import macd, mfi, rsi, stochastic, williams_r
from tradecore.models.bar import BarSeries
from tradecore.models.config import IndicatorConfig
from tradecore.models.indicator import IndicatorFrame, IndicatorSnapshot, PriceLevel
from tradecore.models.signal import Action

logger = logging.getLogger(__name__)


class IndicatorFrameBuilder:
    """Collects indicator columns for one series, then assembles per-bar snapshots.

    Each column must be aligned with the series (same length). The series
    itself is never modified.
    """

    def __init__(self, series: BarSeries):
        self._series = series
        self._columns: dict[str, list[Any]] = {}
        self._supports: tuple[PriceLevel, ...] = ()
        self._resistances: tuple[PriceLevel, ...] = ()
        self._per_bar: LevelsByBar | None = None

    def add(self, name: str, values: Sequence[Any]) -> IndicatorFrameBuilder:
        if name in self._columns:
            raise ValueError(f"Column '{name}' already added")
        if len(values) != len(self._series):
            raise ValueError(
                f"Column '{name}' has {len(values)} values for {len(self._series)} bars"
            )
        self._columns[name] = list(values)
        return self

    def with_levels(
        self,
        supports: Sequence[PriceLevel],
        resistances: Sequence[PriceLevel],
        per_bar: LevelsByBar | None = None,
    ) -> IndicatorFrameBuilder:
        """Attach levels. ``per_bar`` is derived from them when not supplied."""
        if per_bar is not None and len(per_bar) != len(self._series):
            raise ValueError(f"per_bar has {len(per_bar)} entries for {len(self._series)} bars")
        self._supports = tuple(supports)
        self._resistances = tuple(resistances)
        self._per_bar = per_bar
        return self

    def build(self) -> IndicatorFrame:
        names = tuple(self._columns)
        per_bar = self._per_bar
        if per_bar is None:
            per_bar = levels_as_of(self._series, list(self._supports), list(self._resistances))
        points = tuple(
            IndicatorSnapshot(
                bar=bar,
                values={name: self._columns[name][i] for name in names},
                supports=per_bar[i][0],
                resistances=per_bar[i][1],
            )
            for i, bar in enumerate(self._series.bars)
        )
        return IndicatorFrame(
            points=points,
            supports=self._supports,
            resistances=self._resistances,
            columns=names,
        )


class IndicatorCalculator:
    """Calculator for the full declared indicator set.

    Indicators are applied in a fixed order (SMAs, EMAs, RSI, MACD,
    Bollinger Bands, Stochastic, Williams %R, ATR, PSAR, VWAP, OBV, MFI,
    Ichimoku) followed by support/resistance detection.
    """

    def __init__(self, config: IndicatorConfig | None = None):
        self.config = config or IndicatorConfig()

    def _steps(self, series: BarSeries) -> list[tuple[str, Callable[[], Sequence[Any]]]]:
        cfg = self.config
        highs = series.highs()
        lows = series.lows()
        closes = series.closes()
        volumes = series.volumes()

        steps: list[tuple[str, Callable[[], Sequence[Any]]]] = []
        for period in cfg.sma_periods:
            steps.append((f"sma{period}", lambda p=period: sma(closes, p)))
        for period in cfg.ema_periods:
            steps.append((f"ema{period}", lambda p=period: ema(closes, p)))
        steps.extend([
            ("rsi", lambda: rsi(closes, cfg.rsi_period)),
            ("macd", lambda: macd(closes, cfg.macd_fast, cfg.macd_slow, cfg.macd_signal)),
            ("bollinger_bands", lambda: bollinger_bands(
                closes, cfg.bollinger_period, cfg.bollinger_std_dev)),
            ("stochastic", lambda: stochastic(
                highs, lows, closes, cfg.stochastic_k, cfg.stochastic_d)),
            ("williams_r", lambda: williams_r(highs, lows, closes, cfg.williams_r_period)),
            ("atr", lambda: atr(highs, lows, closes, cfg.atr_period)),
            ("psar", lambda: psar(highs, lows, cfg.psar_acceleration, cfg.psar_maximum)),
            ("vwap", lambda: vwap(highs, lows, closes, volumes)),
            ("obv", lambda: obv(closes, volumes)),
            ("mfi", lambda: mfi(highs, lows, closes, volumes, cfg.mfi_period)),
            ("ichimoku", lambda: ichimoku(
                highs, lows,
                cfg.ichimoku_conversion, cfg.ichimoku_base,
                cfg.ichimoku_span_b, cfg.ichimoku_displacement,
            )),
        ])
        return steps

    def compute_all(self, series: BarSeries) -> IndicatorFrame:
        """
        Calculate every configured indicator for the series.

        Args:
            series: Bars to analyse

        Returns:
            IndicatorFrame with per-bar snapshots plus the support and
            resistance sets

        Raises:
            IndicatorComputationError: Naming the single indicator that failed
        """
        builder = IndicatorFrameBuilder(series)
        for name, compute in self._steps(series):
            try:
                builder.add(name, compute())
            except Exception as exc:
                raise IndicatorComputationError(name, exc) from exc

        try:
            supports, resistances, per_bar = support_resistance(
                series, self.config.support_resistance_window
            )
        except Exception as exc:
            raise IndicatorComputationError("support_resistance", exc) from exc

        frame = builder.with_levels(supports, resistances, per_bar).build()
        logger.debug(
            "Computed %d indicators for %s %s: %d bars, %d supports, %d resistances",
            len(frame.columns), series.symbol, series.timeframe,
            len(frame), len(supports), len(resistances),
        )
        return frame

    def compute_latest(self, series: BarSeries) -> IndicatorSnapshot | None:
        """Calculate indicators and return only the latest bar's snapshot."""
        if len(series) == 0:
            return None
        return self.compute_all(series).points[-1]


# =============================================================================
# Per-bar composite votes
# =============================================================================

@dataclass(frozen=True, slots=True)
class CompositeSignal:
    """Vote tally for one bar of an IndicatorFrame."""

    timestamp: datetime
    price: Decimal
    strength: int
    action: Action
    votes: dict[str, Action] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SignalScore:
    buy_score: int
    sell_score: int
    net_score: int
    buy_count: int
    sell_count: int
    total_signals: int


def _crossed_below(prev: Decimal | None, cur: Decimal | None, level: int) -> bool:
    return prev is not None and cur is not None and cur < level <= prev


def _crossed_above(prev: Decimal | None, cur: Decimal | None, level: int) -> bool:
    return prev is not None and cur is not None and cur > level >= prev


def generate_signals(frame: IndicatorFrame) -> list[CompositeSignal]:
    """
    Tally indicator votes for every bar after the first.

    Votes: RSI entering oversold (<30) / overbought (>70), MACD histogram
    crossing zero, close at or beyond a Bollinger band, Stochastic %K
    entering <20 / >80. A net strength of +2 or more is BUY, -2 or less SELL.
    Requires the rsi, macd, bollinger_bands and stochastic columns.
    """
    signals: list[CompositeSignal] = []
    for i in range(1, len(frame)):
        cur, prev = frame[i], frame[i - 1]
        votes: dict[str, Action] = {}

        if _crossed_below(prev["rsi"], cur["rsi"], 30):
            votes["rsi"] = Action.BUY
        elif _crossed_above(prev["rsi"], cur["rsi"], 70):
            votes["rsi"] = Action.SELL

        cur_macd, prev_macd = cur["macd"], prev["macd"]
        if (
            cur_macd is not None and prev_macd is not None
            and cur_macd.histogram is not None and prev_macd.histogram is not None
        ):
            if cur_macd.histogram > 0 >= prev_macd.histogram:
                votes["macd"] = Action.BUY
            elif cur_macd.histogram < 0 <= prev_macd.histogram:
                votes["macd"] = Action.SELL

        bands = cur["bollinger_bands"]
        if bands is not None:
            if cur.bar.close <= bands.lower:
                votes["bollinger_bands"] = Action.BUY
            elif cur.bar.close >= bands.upper:
                votes["bollinger_bands"] = Action.SELL

        cur_stoch, prev_stoch = cur["stochastic"], prev["stochastic"]
        if cur_stoch is not None and prev_stoch is not None:
            if _crossed_below(prev_stoch.k, cur_stoch.k, 20):
                votes["stochastic"] = Action.BUY
            elif _crossed_above(prev_stoch.k, cur_stoch.k, 80):
                votes["stochastic"] = Action.SELL

        strength = sum(1 if v == Action.BUY else -1 for v in votes.values())
        if strength >= 2:
            action = Action.BUY
        elif strength <= -2:
            action = Action.SELL
        else:
            action = Action.HOLD

        signals.append(CompositeSignal(
            timestamp=cur.bar.open_time,
            price=cur.bar.close,
            strength=strength,
            action=action,
            votes=votes,
        ))
    return signals


def signal_score(signals: Sequence[CompositeSignal]) -> SignalScore:
    """Summarise a run of composite signals into buy/sell scores."""
    buys = [s for s in signals if s.action == Action.BUY]
    sells = [s for s in signals if s.action == Action.SELL]
    buy_score = sum(s.strength for s in buys)
    sell_score = sum(abs(s.strength) for s in sells)
    return SignalScore(
        buy_score=buy_score,
        sell_score=sell_score,
        net_score=buy_score - sell_score,
        buy_count=len(buys),
        sell_count=len(sells),
        total_signals=len(signals),
    )
