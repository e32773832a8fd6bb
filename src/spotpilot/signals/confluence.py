"""Multi-interval confluence over several candle stores of one instrument.

Each interval is scored on its own with :func:`score_snapshot`; the results
are combined with per-interval weights (short intervals weigh more for entry
timing, long ones for trend). This is an optional read-only view on top of
the single-interval scorer and never changes its output.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Literal, Optional

from ..config import TradingConfiguration
from ..data.candles import CandleStore
from ..errors import InsufficientDataError
from ..indicators.patterns import CandlePatternFlags
from ..indicators.snapshot import MIN_CANDLES, IndicatorSnapshot, compute_snapshot
from ..utils.log import E_CONFLUENCE_EVALUATED, TelemetryContext, log_event
from .contract import LONG, SHORT, Direction, Signal
from .scorer import MIN_SIDE_CONDITIONS, score_snapshot

Trend = Literal["UP", "DOWN", "SIDEWAYS"]

# interval -> (trend weight, entry weight)
INTERVAL_WEIGHTS = {
    "1m": (0.05, 0.30),
    "5m": (0.10, 0.30),
    "15m": (0.20, 0.25),
    "1h": (0.35, 0.10),
    "4h": (0.30, 0.05),
}
DEFAULT_WEIGHT = 0.2

MIN_SCORE = 40.0
ALIGNMENT_BONUS_AT = 75.0
PATTERN_BONUS_AT = 50.0
BONUS = 10.0
CONFLICT_PENALTY = 20.0
CONFLICT_FLOOR = 25.0


def interval_weight(interval: str) -> float:
    weights = INTERVAL_WEIGHTS.get(interval)
    if weights is None:
        return DEFAULT_WEIGHT
    trend, entry = weights
    return (trend + entry) / 2


def trend_of(s: IndicatorSnapshot) -> Trend:
    if s.close > s.sma20 > s.sma50:
        return "UP"
    if s.close < s.sma20 < s.sma50:
        return "DOWN"
    return "SIDEWAYS"


@dataclass(frozen=True)
class IntervalView:
    interval: str
    signal: Signal
    trend: Trend
    weight: float
    patterns: CandlePatternFlags

    @property
    def vote(self) -> Optional[Direction]:
        """Direction this interval votes for, ``None`` when it abstains."""
        s = self.signal
        if s.actionable and s.conditions_met >= MIN_SIDE_CONDITIONS:
            return s.direction
        return None


@dataclass(frozen=True)
class Confluence:
    direction: Optional[Direction]  # None = mixed, no aligned direction
    confidence: float
    bullish_score: float
    bearish_score: float
    trend_alignment: float
    pattern_strength: float
    conflicting: bool
    views: tuple[IntervalView, ...] = ()
    waiting: tuple[str, ...] = ()


def confluence(
    stores: Iterable[CandleStore],
    cfg: TradingConfiguration,
    *,
    ctx: TelemetryContext | None = None,
) -> Confluence:
    """Combine per-interval signals into one weighted view.

    Intervals with fewer than 50 candles are listed in ``waiting`` and skipped.

    Raises
    ------
    ValueError
        If the stores do not share one instrument or repeat an interval.
    InsufficientDataError
        If no store holds enough candles.
    """

    stores = list(stores)
    if len({s.instrument for s in stores}) > 1:
        raise ValueError("confluence needs stores of a single instrument")
    intervals = [s.interval for s in stores]
    if len(set(intervals)) != len(intervals):
        raise ValueError(f"duplicate intervals: {intervals}")

    views: list[IntervalView] = []
    waiting: list[str] = []
    for store in stores:
        if not store.ready(MIN_CANDLES):
            waiting.append(store.interval)
            continue
        snap = compute_snapshot(store.window())
        views.append(
            IntervalView(
                interval=store.interval,
                signal=score_snapshot(snap, cfg),
                trend=trend_of(snap),
                weight=interval_weight(store.interval),
                patterns=snap.patterns,
            )
        )
    if not views:
        raise InsufficientDataError(max((len(s) for s in stores), default=0), MIN_CANDLES)

    total = sum(v.weight for v in views)
    bullish = sum(v.weight * v.signal.confidence / 100 for v in views if v.vote == LONG)
    bearish = sum(v.weight * v.signal.confidence / 100 for v in views if v.vote == SHORT)
    bullish_score = bullish / total * 100
    bearish_score = bearish / total * 100

    trends = Counter(v.trend for v in views)
    alignment = max(trends.values()) / len(views) * 100
    pattern_strength = min(
        100.0, sum(v.patterns.strength(True) + v.patterns.strength(False) for v in views) * 10
    )

    direction: Optional[Direction] = None
    if bullish_score > bearish_score and bullish_score > MIN_SCORE:
        direction, score = LONG, bullish_score
    elif bearish_score > bullish_score and bearish_score > MIN_SCORE:
        direction, score = SHORT, bearish_score

    if direction is None:
        confidence = 50.0
    else:
        confidence = score
        if alignment > ALIGNMENT_BONUS_AT:
            confidence += BONUS
        if pattern_strength > PATTERN_BONUS_AT:
            confidence += BONUS
        confidence = min(100.0, confidence)

    votes = {v.vote for v in views}
    conflicting = LONG in votes and SHORT in votes
    if conflicting:
        confidence = max(CONFLICT_FLOOR, confidence - CONFLICT_PENALTY)

    result = Confluence(
        direction=direction,
        confidence=confidence,
        bullish_score=bullish_score,
        bearish_score=bearish_score,
        trend_alignment=alignment,
        pattern_strength=pattern_strength,
        conflicting=conflicting,
        views=tuple(views),
        waiting=tuple(waiting),
    )
    if ctx is not None:
        log_event(
            E_CONFLUENCE_EVALUATED,
            ctx,
            direction=direction,
            confidence=round(confidence, 2),
            alignment=round(alignment, 2),
            conflicting=conflicting,
            intervals=[v.interval for v in views],
            waiting=waiting,
        )
    return result


__all__ = [
    "INTERVAL_WEIGHTS",
    "Confluence",
    "IntervalView",
    "confluence",
    "interval_weight",
    "trend_of",
]
