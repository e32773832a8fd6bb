"""Indicator library: pure functions over a candle window."""

from . import core, patterns
from .patterns import CandlePatternFlags
from .snapshot import MIN_CANDLES, Bollinger, IndicatorSnapshot, compute_snapshot

__all__ = [
    "core",
    "patterns",
    "CandlePatternFlags",
    "MIN_CANDLES",
    "Bollinger",
    "IndicatorSnapshot",
    "compute_snapshot",
]
