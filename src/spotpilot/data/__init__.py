"""Market data containers."""

from .candles import (
    Candle,
    CandleStore,
    candles_from_frame,
    candles_from_klines,
    candles_to_frame,
)

__all__ = [
    "Candle",
    "CandleStore",
    "candles_from_frame",
    "candles_from_klines",
    "candles_to_frame",
]
