"""Window indicators computed from plain price/volume sequences.

Every function looks only at the trailing slice it needs, so results depend
on the window and nothing else. EMAs are seeded from the oldest value of
their slice instead of the full history; the drift this introduces is
bounded and accepted.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

__all__ = [
    "sma",
    "ema",
    "rsi",
    "macd",
    "bollinger",
    "volume_ratio",
    "support_resistance",
    "atr",
]


def _tail(values: Sequence[float], period: int) -> np.ndarray:
    if period <= 0:
        raise ValueError("period must be > 0")
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        raise ValueError("empty input")
    return arr[-period:]


def sma(values: Sequence[float], period: int) -> float:
    return float(_tail(values, period).mean())


def ema(values: Sequence[float], period: int) -> float:
    window = _tail(values, period)
    k = 2.0 / (period + 1)
    out = float(window[0])
    for v in window[1:]:
        out = float(v) * k + out * (1.0 - k)
    return out


def rsi(closes: Sequence[float], period: int = 14) -> float:
    """Average gain / average loss over the trailing ``period`` changes."""

    window = _tail(closes, period + 1)
    diffs = np.diff(window)
    if diffs.size == 0:
        return 50.0
    avg_gain = float(diffs.clip(min=0).sum()) / period
    avg_loss = float((-diffs).clip(min=0).sum()) / period
    if avg_loss == 0.0:
        return 100.0 if avg_gain > 0 else 50.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def macd(closes: Sequence[float], fast: int = 12, slow: int = 26) -> float:
    return ema(closes, fast) - ema(closes, slow)


def bollinger(
    closes: Sequence[float], period: int = 20, k: float = 2.0
) -> tuple[float, float, float]:
    """Return ``(upper, middle, lower)`` bands."""

    window = _tail(closes, period)
    middle = float(window.mean())
    std = float(window.std(ddof=0))
    return middle + k * std, middle, middle - k * std


def volume_ratio(volumes: Sequence[float], period: int = 20) -> float:
    """Current volume divided by the trailing average (current bar included)."""

    window = _tail(volumes, period)
    avg = float(window.mean())
    if avg <= 0.0:
        return 1.0
    return float(window[-1]) / avg


def support_resistance(
    lows: Sequence[float], highs: Sequence[float], period: int = 20
) -> tuple[float, float]:
    return float(_tail(lows, period).min()), float(_tail(highs, period).max())


def atr(
    highs: Sequence[float], lows: Sequence[float], closes: Sequence[float], period: int = 14
) -> float:
    """Simple average of the trailing ``period`` true ranges."""

    h = _tail(highs, period + 1)
    lo = _tail(lows, period + 1)
    c = _tail(closes, period + 1)
    if h.size < 2:
        return float(h[-1] - lo[-1])
    prev_close = c[:-1]
    tr = np.maximum.reduce(
        [h[1:] - lo[1:], np.abs(h[1:] - prev_close), np.abs(lo[1:] - prev_close)]
    )
    return float(tr.sum()) / period
