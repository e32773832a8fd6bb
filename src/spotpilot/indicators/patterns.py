"""Candlestick pattern flags for the last one to three candles.

The rejection patterns (engulfing, doji, long wicks) feed the support and
resistance conditions of the scorer. The remaining reversal and continuation
patterns are reported with a weight each and used by multi-interval
confluence.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..data.candles import Candle

# relative strength of each pattern, 1.0 = strongest
PATTERN_WEIGHTS = {
    "bullish_engulfing": 0.8,
    "bearish_engulfing": 0.8,
    "doji": 0.3,
    "long_upper_wick": 0.5,
    "long_lower_wick": 0.5,
    "hammer": 0.7,
    "inverted_hammer": 0.6,
    "morning_star": 0.9,
    "evening_star": 0.9,
    "bullish_harami": 0.6,
    "bearish_harami": 0.6,
    "three_white_soldiers": 1.0,
    "three_black_crows": 1.0,
}

BULLISH = frozenset(
    {
        "bullish_engulfing",
        "long_lower_wick",
        "hammer",
        "inverted_hammer",
        "morning_star",
        "bullish_harami",
        "three_white_soldiers",
    }
)
BEARISH = frozenset(
    {
        "bearish_engulfing",
        "long_upper_wick",
        "evening_star",
        "bearish_harami",
        "three_black_crows",
    }
)


@dataclass(frozen=True, slots=True)
class CandlePatternFlags:
    bullish_engulfing: bool = False
    bearish_engulfing: bool = False
    doji: bool = False
    long_upper_wick: bool = False
    long_lower_wick: bool = False
    hammer: bool = False
    inverted_hammer: bool = False
    morning_star: bool = False
    evening_star: bool = False
    bullish_harami: bool = False
    bearish_harami: bool = False
    three_white_soldiers: bool = False
    three_black_crows: bool = False

    def names(self) -> list[str]:
        return [name for name in self.__slots__ if getattr(self, name)]

    def bullish(self) -> list[str]:
        return [n for n in self.names() if n in BULLISH]

    def bearish(self) -> list[str]:
        return [n for n in self.names() if n in BEARISH]

    def strength(self, bullish: bool) -> float:
        """Summed pattern weight on one side; a doji counts for neither."""
        names = self.bullish() if bullish else self.bearish()
        return sum(PATTERN_WEIGHTS[n] for n in names)


def bullish_engulfing(prev: Candle, cur: Candle) -> bool:
    """Bearish candle followed by a bullish one whose body contains it."""
    return (
        prev.is_bearish
        and cur.is_bullish
        and cur.open <= prev.close
        and cur.close >= prev.open
    )


def bearish_engulfing(prev: Candle, cur: Candle) -> bool:
    return (
        prev.is_bullish
        and cur.is_bearish
        and cur.open >= prev.close
        and cur.close <= prev.open
    )


def doji(c: Candle, threshold: float = 0.1) -> bool:
    rng = c.range
    if rng <= 0:
        return False
    return c.body < threshold * rng


def long_upper_wick(c: Candle, body_mult: float = 2.0, range_frac: float = 0.3) -> bool:
    rng = c.range
    if rng <= 0:
        return False
    wick = c.upper_wick
    return wick > body_mult * c.body and wick > range_frac * rng


def long_lower_wick(c: Candle, body_mult: float = 2.0, range_frac: float = 0.3) -> bool:
    rng = c.range
    if rng <= 0:
        return False
    wick = c.lower_wick
    return wick > body_mult * c.body and wick > range_frac * rng


def hammer(c: Candle) -> bool:
    """Small body on top of a long lower wick, almost no upper wick."""
    rng = c.range
    if rng <= 0:
        return False
    body = c.body
    return body < 0.3 * rng and c.lower_wick > 2 * body and c.upper_wick < 0.5 * body


def inverted_hammer(c: Candle) -> bool:
    rng = c.range
    if rng <= 0:
        return False
    body = c.body
    return body < 0.3 * rng and c.upper_wick > 2 * body and c.lower_wick < 0.5 * body


def morning_star(first: Candle, second: Candle, third: Candle) -> bool:
    """Bearish candle, small star, then a bullish close above the first midpoint."""
    return (
        first.is_bearish
        and second.body < 0.3 * first.body
        and third.is_bullish
        and third.close > (first.open + first.close) / 2
    )


def evening_star(first: Candle, second: Candle, third: Candle) -> bool:
    return (
        first.is_bullish
        and second.body < 0.3 * first.body
        and third.is_bearish
        and third.close < (first.open + first.close) / 2
    )


def bullish_harami(prev: Candle, cur: Candle) -> bool:
    return prev.is_bearish and cur.is_bullish and cur.open > prev.close and cur.close < prev.open


def bearish_harami(prev: Candle, cur: Candle) -> bool:
    return prev.is_bullish and cur.is_bearish and cur.open < prev.close and cur.close > prev.open


def three_white_soldiers(last3: Sequence[Candle]) -> bool:
    if len(last3) != 3 or not all(c.is_bullish for c in last3):
        return False
    return all(b.open > a.open and b.close > a.close for a, b in zip(last3, last3[1:]))


def three_black_crows(last3: Sequence[Candle]) -> bool:
    if len(last3) != 3 or not all(c.is_bearish for c in last3):
        return False
    return all(b.open < a.open and b.close < a.close for a, b in zip(last3, last3[1:]))


def detect(candles: Sequence[Candle]) -> CandlePatternFlags:
    """Return pattern flags for the most recent candle of ``candles``."""

    if not candles:
        return CandlePatternFlags()
    cur = candles[-1]
    prev = candles[-2] if len(candles) >= 2 else None
    first = candles[-3] if len(candles) >= 3 else None
    last3 = tuple(candles[-3:])
    return CandlePatternFlags(
        bullish_engulfing=prev is not None and bullish_engulfing(prev, cur),
        bearish_engulfing=prev is not None and bearish_engulfing(prev, cur),
        doji=doji(cur),
        long_upper_wick=long_upper_wick(cur),
        long_lower_wick=long_lower_wick(cur),
        hammer=hammer(cur),
        inverted_hammer=inverted_hammer(cur),
        morning_star=first is not None and morning_star(first, prev, cur),
        evening_star=first is not None and evening_star(first, prev, cur),
        bullish_harami=prev is not None and bullish_harami(prev, cur),
        bearish_harami=prev is not None and bearish_harami(prev, cur),
        three_white_soldiers=three_white_soldiers(last3),
        three_black_crows=three_black_crows(last3),
    )


__all__ = [
    "BEARISH",
    "BULLISH",
    "PATTERN_WEIGHTS",
    "CandlePatternFlags",
    "bullish_engulfing",
    "bearish_engulfing",
    "doji",
    "long_upper_wick",
    "long_lower_wick",
    "hammer",
    "inverted_hammer",
    "morning_star",
    "evening_star",
    "bullish_harami",
    "bearish_harami",
    "three_white_soldiers",
    "three_black_crows",
    "detect",
]
