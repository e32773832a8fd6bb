"""Indicator snapshot: every value the scorer reads, computed from one window.

The snapshot stores raw measurements; threshold checks (``near_support``,
``very_large_candle`` ...) are derived properties so a snapshot can be built
by hand for a specific market situation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from ..data.candles import Candle
from ..errors import InsufficientDataError
from . import core, patterns
from .patterns import CandlePatternFlags

MIN_CANDLES = 50

RSI_PERIOD = 14
RSI_MOMENTUM_DELTA = 2.0
BB_PERIOD = 20
BB_STDDEV = 2.0
VOLUME_PERIOD = 20
VOLUME_HIGH = 1.5
VOLUME_ADEQUATE = 1.2
LEVEL_PERIOD = 20
LEVEL_PROXIMITY = 0.02
TREND_PERIOD = 10
TREND_MIN_COUNT = 6
BODY_PERIOD = 10
LARGE_BODY = 1.5
VERY_LARGE_BODY = 2.5
MOMENTUM_MOVE_PCT = 0.5
ATR_PERIOD = 14


@dataclass(frozen=True, slots=True)
class Bollinger:
    upper: float
    middle: float
    lower: float

    def position(self, price: float) -> float:
        width = self.upper - self.lower
        if width <= 0:
            return 0.5
        return (price - self.lower) / width


@dataclass(frozen=True)
class IndicatorSnapshot:
    open_time: int
    close: float
    sma7: float
    sma20: float
    sma50: float
    ema12: float
    ema26: float
    rsi: float
    rsi_previous: float
    macd: float
    macd_previous: float
    bollinger: Bollinger
    volume_ratio: float
    support_price: float
    resistance_price: float
    patterns: CandlePatternFlags = field(default_factory=CandlePatternFlags)
    higher_lows: int = 0
    lower_highs: int = 0
    avg_body: float = 0.0
    last_body: float = 0.0
    last_direction: int = 0  # +1 bullish candle, -1 bearish, 0 flat
    bullish_last3: int = 0
    bearish_last3: int = 0
    price_change_3: float = 0.0  # percent, open of third-last bar to last close
    atr: float = 0.0

    # -- RSI / MACD ----------------------------------------------------------
    @property
    def rsi_rising(self) -> bool:
        return self.rsi > self.rsi_previous + RSI_MOMENTUM_DELTA

    @property
    def rsi_falling(self) -> bool:
        return self.rsi < self.rsi_previous - RSI_MOMENTUM_DELTA

    @property
    def macd_cross_up(self) -> bool:
        return self.macd_previous <= 0 < self.macd

    @property
    def macd_cross_down(self) -> bool:
        return self.macd_previous >= 0 > self.macd

    @property
    def bb_position(self) -> float:
        return self.bollinger.position(self.close)

    # -- volume / levels -----------------------------------------------------
    @property
    def volume_high(self) -> bool:
        return self.volume_ratio > VOLUME_HIGH

    @property
    def volume_adequate(self) -> bool:
        return self.volume_ratio > VOLUME_ADEQUATE

    @property
    def near_support(self) -> bool:
        s = self.support_price
        return s > 0 and s <= self.close <= s * (1 + LEVEL_PROXIMITY)

    @property
    def near_resistance(self) -> bool:
        r = self.resistance_price
        return r > 0 and r * (1 - LEVEL_PROXIMITY) <= self.close <= r

    # -- trend ---------------------------------------------------------------
    @property
    def strong_uptrend(self) -> bool:
        return self.higher_lows >= TREND_MIN_COUNT and self.sma7 > self.sma20 > self.sma50

    @property
    def strong_downtrend(self) -> bool:
        return self.lower_highs >= TREND_MIN_COUNT and self.sma7 < self.sma20 < self.sma50

    # -- volatility ----------------------------------------------------------
    @property
    def atr_percent(self) -> float:
        return self.atr / self.close * 100.0 if self.close else 0.0

    # -- immediate momentum --------------------------------------------------
    @property
    def large_candle(self) -> bool:
        return self.avg_body > 0 and self.last_body > LARGE_BODY * self.avg_body

    @property
    def very_large_candle(self) -> bool:
        return self.avg_body > 0 and self.last_body > VERY_LARGE_BODY * self.avg_body

    @property
    def short_term_momentum(self) -> int:
        """+1 / -1 for strong short-term momentum, 0 otherwise."""
        if self.bullish_last3 >= 2 and self.price_change_3 >= MOMENTUM_MOVE_PCT:
            return 1
        if self.bearish_last3 >= 2 and self.price_change_3 <= -MOMENTUM_MOVE_PCT:
            return -1
        return 0


def _trend_counts(candles: Sequence[Candle]) -> tuple[int, int]:
    tail = candles[-TREND_PERIOD:]
    higher_lows = sum(1 for a, b in zip(tail, tail[1:]) if b.low > a.low)
    lower_highs = sum(1 for a, b in zip(tail, tail[1:]) if b.high < a.high)
    return higher_lows, lower_highs


def compute_snapshot(
    candles: Sequence[Candle], *, min_candles: int = MIN_CANDLES
) -> IndicatorSnapshot:
    """Compute an :class:`IndicatorSnapshot` from a chronological window.

    Raises
    ------
    InsufficientDataError
        If fewer than ``min_candles`` candles are supplied.
    """

    if len(candles) < min_candles:
        raise InsufficientDataError(len(candles), min_candles)

    closes = [c.close for c in candles]
    prev_closes = closes[:-1]
    last = candles[-1]

    upper, middle, lower = core.bollinger(closes, BB_PERIOD, BB_STDDEV)
    support, resistance = core.support_resistance(
        [c.low for c in candles], [c.high for c in candles], LEVEL_PERIOD
    )
    higher_lows, lower_highs = _trend_counts(candles)

    bodies = [c.body for c in candles[-BODY_PERIOD:]]
    last3 = candles[-3:]
    base = last3[0].open
    change_3 = (last.close - base) / base * 100.0 if base else 0.0

    return IndicatorSnapshot(
        open_time=last.open_time,
        close=last.close,
        sma7=core.sma(closes, 7),
        sma20=core.sma(closes, 20),
        sma50=core.sma(closes, 50),
        ema12=core.ema(closes, 12),
        ema26=core.ema(closes, 26),
        rsi=core.rsi(closes, RSI_PERIOD),
        rsi_previous=core.rsi(prev_closes, RSI_PERIOD),
        macd=core.macd(closes),
        macd_previous=core.macd(prev_closes),
        bollinger=Bollinger(upper, middle, lower),
        volume_ratio=core.volume_ratio([c.volume for c in candles], VOLUME_PERIOD),
        support_price=support,
        resistance_price=resistance,
        patterns=patterns.detect(candles),
        higher_lows=higher_lows,
        lower_highs=lower_highs,
        avg_body=sum(bodies) / len(bodies),
        last_body=last.body,
        last_direction=1 if last.is_bullish else -1 if last.is_bearish else 0,
        bullish_last3=sum(1 for c in last3 if c.is_bullish),
        bearish_last3=sum(1 for c in last3 if c.is_bearish),
        price_change_3=change_3,
        atr=core.atr(
            [c.high for c in candles], [c.low for c in candles], closes, ATR_PERIOD
        ),
    )


__all__ = ["MIN_CANDLES", "Bollinger", "IndicatorSnapshot", "compute_snapshot"]
