"""Bounded, append-only candle window for one instrument and interval."""

from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass
from typing import Iterable, Sequence

import pandas as pd

from ..errors import CandleSequenceError
from ..utils.log import (
    E_CANDLE_REJECTED,
    R_DUPLICATE,
    R_GAP,
    R_OUT_OF_ORDER,
    TelemetryContext,
    log_event,
)
from ..utils.timeframes import interval_to_ms, normalize_interval

OHLCV = ["open", "high", "low", "close", "volume"]


@dataclass(frozen=True, slots=True)
class Candle:
    open_time: int  # ms since epoch
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def body(self) -> float:
        return abs(self.close - self.open)

    @property
    def range(self) -> float:
        return self.high - self.low

    @property
    def is_bullish(self) -> bool:
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        return self.close < self.open

    @property
    def upper_wick(self) -> float:
        return self.high - max(self.open, self.close)

    @property
    def lower_wick(self) -> float:
        return min(self.open, self.close) - self.low


class CandleStore:
    """Ordered, fixed-interval candle window owned by a single writer.

    Bars must arrive exactly one interval apart. Duplicates, out-of-order bars
    and gaps are rejected with :class:`CandleSequenceError` so they never reach
    the indicator library.
    """

    def __init__(
        self,
        instrument: str,
        interval: str = "1h",
        maxlen: int = 500,
        *,
        ctx: TelemetryContext | None = None,
    ) -> None:
        if maxlen < 1:
            raise ValueError("maxlen must be >= 1")
        self.instrument = instrument
        self.interval = normalize_interval(interval)
        self.interval_ms = interval_to_ms(self.interval)
        self.maxlen = maxlen
        self.ctx = ctx or TelemetryContext(instrument=instrument, interval=self.interval)
        self._bars: deque[Candle] = deque(maxlen=maxlen)

    def __len__(self) -> int:
        return len(self._bars)

    @property
    def last(self) -> Candle | None:
        return self._bars[-1] if self._bars else None

    def _reject(self, candle: Candle, reason: str, message: str) -> None:
        log_event(
            E_CANDLE_REJECTED,
            self.ctx,
            open_time=candle.open_time,
            last_open_time=self.last.open_time if self.last else None,
            reason=reason,
        )
        raise CandleSequenceError(message)

    def append(self, candle: Candle) -> None:
        last = self.last
        if last is not None:
            expected = last.open_time + self.interval_ms
            if candle.open_time == last.open_time:
                self._reject(candle, R_DUPLICATE, f"duplicate bar at {candle.open_time}")
            if candle.open_time < last.open_time:
                self._reject(
                    candle,
                    R_OUT_OF_ORDER,
                    f"bar {candle.open_time} is older than {last.open_time}",
                )
            if candle.open_time != expected:
                self._reject(candle, R_GAP, f"gap: expected {expected}, got {candle.open_time}")
        self._bars.append(candle)

    def extend(self, candles: Iterable[Candle]) -> None:
        for c in candles:
            self.append(c)

    def merge(self, candles: Iterable[Candle]) -> int:
        """Append the new tail of an overlapping feed window.

        Bars already stored are skipped when identical. A bar that differs from
        the stored one at the same timestamp, an unknown older bar or a gap
        raises :class:`CandleSequenceError`. Returns the number of bars added.
        """

        known = {c.open_time: c for c in self._bars}
        oldest = self._bars[0].open_time if self._bars else None
        added = 0
        for c in candles:
            last = self.last
            if last is not None and c.open_time <= last.open_time:
                if oldest is not None and c.open_time < oldest:
                    continue  # already evicted from the bounded window
                stored = known.get(c.open_time)
                if stored is None:
                    self._reject(c, R_OUT_OF_ORDER, f"unknown historical bar {c.open_time}")
                if stored != c:
                    self._reject(c, R_DUPLICATE, f"conflicting bar at {c.open_time}")
                continue
            self.append(c)
            known[c.open_time] = c
            added += 1
        return added

    def window(self, n: int | None = None) -> tuple[Candle, ...]:
        bars = tuple(self._bars)
        if n is None or n >= len(bars):
            return bars
        return bars[-n:]

    def ready(self, min_candles: int) -> bool:
        return len(self._bars) >= min_candles

    def to_frame(self) -> pd.DataFrame:
        return candles_to_frame(self._bars)


def candles_to_frame(candles: Iterable[Candle]) -> pd.DataFrame:
    rows = [asdict(c) for c in candles]
    df = pd.DataFrame(rows, columns=["open_time", *OHLCV])
    df.index = pd.to_datetime(df["open_time"], unit="ms", utc=True)
    df.index.name = "time"
    return df


def candles_from_klines(rows: Iterable[Sequence]) -> list[Candle]:
    """Parse exchange kline rows ``[open_time, open, high, low, close, volume, ...]``.

    Prices may be numbers or numeric strings, as returned by most REST APIs.
    """

    out: list[Candle] = []
    for row in rows:
        if len(row) < 6:
            raise ValueError(f"kline row needs at least 6 fields, got {len(row)}")
        out.append(
            Candle(
                open_time=int(row[0]),
                open=float(row[1]),
                high=float(row[2]),
                low=float(row[3]),
                close=float(row[4]),
                volume=float(row[5]),
            )
        )
    return out


def candles_from_frame(df: pd.DataFrame) -> list[Candle]:
    """Convert an OHLCV frame into candles.

    The open time is taken from an ``open_time`` column (ms), a ``time``
    column, or a :class:`pandas.DatetimeIndex`. A missing ``volume`` column is
    treated as zero volume.
    """

    missing = {"open", "high", "low", "close"} - set(df.columns)
    if missing:
        raise ValueError(f"frame is missing columns: {sorted(missing)}")

    if "open_time" in df.columns:
        times = df["open_time"].astype("int64").tolist()
    else:
        if "time" in df.columns:
            idx = pd.DatetimeIndex(pd.to_datetime(df["time"], utc=True))
        elif isinstance(df.index, pd.DatetimeIndex):
            idx = df.index if df.index.tz is not None else df.index.tz_localize("UTC")
        else:
            raise ValueError("frame needs an open_time/time column or a DatetimeIndex")
        times = [int(ts.value // 1_000_000) for ts in idx]

    volume = df["volume"] if "volume" in df.columns else pd.Series(0.0, index=df.index)
    return [
        Candle(int(t), float(o), float(h), float(lo), float(c), float(v))
        for t, o, h, lo, c, v in zip(
            times, df["open"], df["high"], df["low"], df["close"], volume
        )
    ]


__all__ = [
    "Candle",
    "CandleStore",
    "candles_from_frame",
    "candles_from_klines",
    "candles_to_frame",
]
