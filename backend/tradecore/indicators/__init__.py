"""Technical indicators (pure math, no I/O)."""

from tradecore.indicators.composite import (
    CompositeSignal,
    IndicatorCalculator,
    IndicatorFrameBuilder,
    SignalScore,
    generate_signals,
    signal_score,
)
from tradecore.indicators.indicators import (
    atr,
    bollinger_bands,
    ema,
    highest,
    ichimoku,
    lowest,
    obv,
    psar,
    sma,
    true_range,
    vwap,
)
from tradecore.indicators.levels import (
    FIBONACCI_RATIOS,
    fibonacci_retracement,
    levels_as_of,
    support_resistance,
)
from tradecore.indicators.oscillators import macd, mfi, rsi, stochastic, williams_r

__all__ = [
    "CompositeSignal",
    "IndicatorCalculator",
    "IndicatorFrameBuilder",
    "SignalScore",
    "generate_signals",
    "signal_score",
    "atr",
    "bollinger_bands",
    "ema",
    "highest",
    "ichimoku",
    "lowest",
    "obv",
    "psar",
    "sma",
    "true_range",
    "vwap",
    "FIBONACCI_RATIOS",
    "fibonacci_retracement",
    "levels_as_of",
    "support_resistance",
    "macd",
    "mfi",
    "rsi",
    "stochastic",
    "williams_r",
]
