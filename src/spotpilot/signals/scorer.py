"""Multi-factor signal scorer.

Six boolean conditions are evaluated for each side:

* **RSI** – extreme reading, or a softer reading with momentum in the
  direction of the trade.
* **MACD** – crossover, or MACD on the trade side of zero and moving further.
* **Volume** – adequate volume behind a candle of the matching colour.
* **Level** – bounce at support / rejection at resistance confirmed by a
  candle pattern.
* **Trend formation** – at least six higher lows (long) or lower highs
  (short) in the last ten bars.
* **Momentum** – a large candle of the trade colour, or strong short-term
  momentum in the trade direction.

The side with more conditions wins; ties are broken by the three-candle price
change. The scorer never returns "no signal": weak cases still carry a
direction and are flagged through :class:`QualityFlags` and ``actionable``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..config import TradingConfiguration
from ..data.candles import Candle
from ..indicators.snapshot import (
    MIN_CANDLES,
    TREND_MIN_COUNT,
    VOLUME_ADEQUATE,
    VOLUME_HIGH,
    IndicatorSnapshot,
    compute_snapshot,
)
from ..utils.log import E_SIGNAL_EVALUATED, TelemetryContext, log_event
from .contract import LONG, SHORT, Direction, Momentum, QualityFlags, Signal, opposite

CONFIDENCE_MIN = 20
CONFIDENCE_MAX = 95
RR_MIN = 0.1
RR_MAX = 10.0
MIN_DISTANCE_PCT = 0.3
MIN_SIDE_CONDITIONS = 2

VOLUME_PENALTY = 20
VOLUME_BONUS = 5
VERY_LARGE_PENALTY = 30
LARGE_PENALTY = 15

LONG_TAGS = (
    "RSI oversold",
    "MACD bullish",
    "Volume confirmed up-move",
    "Support bounce",
    "Higher lows",
    "Bullish momentum",
)
SHORT_TAGS = (
    "RSI overbought",
    "MACD bearish",
    "Volume confirmed down-move",
    "Resistance rejection",
    "Lower highs",
    "Bearish momentum",
)


@dataclass(frozen=True)
class ConditionSet:
    long: tuple[bool, ...]
    short: tuple[bool, ...]

    @property
    def long_count(self) -> int:
        return sum(self.long)

    @property
    def short_count(self) -> int:
        return sum(self.short)

    def count(self, direction: Direction) -> int:
        return self.long_count if direction == LONG else self.short_count

    def tags(self, direction: Direction) -> list[str]:
        flags, names = (self.long, LONG_TAGS) if direction == LONG else (self.short, SHORT_TAGS)
        return [name for flag, name in zip(flags, names) if flag]


def evaluate_conditions(s: IndicatorSnapshot) -> ConditionSet:
    p = s.patterns
    long = (
        s.rsi <= 30 or (s.rsi <= 40 and s.rsi_rising),
        s.macd_cross_up or (s.macd > 0 and s.macd > s.macd_previous),
        s.volume_adequate and s.last_direction > 0,
        s.near_support and (p.bullish_engulfing or p.long_lower_wick or p.doji),
        s.higher_lows >= TREND_MIN_COUNT,
        (s.large_candle and s.last_direction > 0) or s.short_term_momentum > 0,
    )
    short = (
        s.rsi >= 70 or (s.rsi >= 60 and s.rsi_falling),
        s.macd_cross_down or (s.macd < 0 and s.macd < s.macd_previous),
        s.volume_adequate and s.last_direction < 0,
        s.near_resistance and (p.bearish_engulfing or p.long_upper_wick or p.doji),
        s.lower_highs >= TREND_MIN_COUNT,
        (s.large_candle and s.last_direction < 0) or s.short_term_momentum < 0,
    )
    return ConditionSet(long=long, short=short)


def base_confidence(conditions_met: int) -> int:
    if conditions_met >= 5:
        return 92
    if conditions_met == 4:
        return 85
    if conditions_met == 3:
        return 65
    if conditions_met == 2:
        return 45
    return 25


def clamp_confidence(value: float) -> int:
    return int(round(min(CONFIDENCE_MAX, max(CONFIDENCE_MIN, value))))


def clamp_risk_reward(value: float) -> float:
    return float(min(RR_MAX, max(RR_MIN, value)))


def risk_reward(price: float, target_distance: float, stop_distance: float) -> tuple[float, float, float]:
    """Return ``(ratio, target_distance, stop_distance)``.

    Both distances are floored at 0.3% of ``price``; the ratio is clamped to
    ``[0.1, 10]``.
    """

    floor = abs(price) * MIN_DISTANCE_PCT / 100.0
    target = max(target_distance, floor)
    stop = max(stop_distance, floor)
    if stop <= 0:
        return RR_MAX, target, stop
    return clamp_risk_reward(target / stop), target, stop


def tie_break(s: IndicatorSnapshot) -> Direction:
    """Direction from the three-candle price change (close vs SMA20 when flat)."""

    if s.price_change_3 > 0:
        return LONG
    if s.price_change_3 < 0:
        return SHORT
    return LONG if s.close >= s.sma20 else SHORT


def choose_direction(conds: ConditionSet, s: IndicatorSnapshot) -> tuple[Direction, bool]:
    """Return the winning side and whether it was forced (neither side had 2)."""

    long_n, short_n = conds.long_count, conds.short_count
    forced = max(long_n, short_n) < MIN_SIDE_CONDITIONS
    if long_n > short_n:
        return LONG, forced
    if short_n > long_n:
        return SHORT, forced
    return tie_break(s), forced


def _volume_adjustment(s: IndicatorSnapshot, cfg: TradingConfiguration) -> int:
    if cfg.volume_filter_enabled and s.volume_ratio < VOLUME_ADEQUATE:
        return -VOLUME_PENALTY
    if s.volume_ratio >= VOLUME_HIGH:
        return VOLUME_BONUS
    return 0


def _momentum(s: IndicatorSnapshot) -> Momentum:
    m = s.short_term_momentum
    if m > 0:
        return "bullish"
    if m < 0:
        return "bearish"
    return "neutral"


def score_snapshot(s: IndicatorSnapshot, cfg: TradingConfiguration) -> Signal:
    """Combine one snapshot into a :class:`Signal`. Deterministic."""

    conds = evaluate_conditions(s)
    direction, forced = choose_direction(conds, s)
    volume_adj = _volume_adjustment(s, cfg)
    confidence = base_confidence(conds.count(direction)) + volume_adj
    actionable = True
    notes: list[str] = []

    contradicted = (direction == LONG and s.last_direction < 0) or (
        direction == SHORT and s.last_direction > 0
    )
    if contradicted and s.very_large_candle:
        other = opposite(direction)
        if conds.count(other) >= MIN_SIDE_CONDITIONS:
            direction = other
            confidence = base_confidence(conds.count(direction)) + volume_adj
            notes.append("Momentum override: flipped")
        else:
            confidence -= VERY_LARGE_PENALTY
            actionable = False
            notes.append("Momentum override: opposing candle")
    elif contradicted and s.large_candle:
        confidence -= LARGE_PENALTY
        notes.append("Opposing large candle")

    price = s.close
    if direction == LONG:
        rr, target, stop = risk_reward(
            price, s.resistance_price - price, price - s.support_price
        )
        take_profit, stop_loss = price + target, price - stop
        counter_trend = s.strong_downtrend
    else:
        rr, target, stop = risk_reward(
            price, price - s.support_price, s.resistance_price - price
        )
        take_profit, stop_loss = price - target, price + stop
        counter_trend = s.strong_uptrend

    low_volatility = s.atr_percent < cfg.min_atr_percent
    confidence = clamp_confidence(confidence)
    flags = QualityFlags(
        meets_min_confidence=confidence >= cfg.min_confidence,
        meets_min_risk_reward=rr >= cfg.min_risk_reward,
        passes_volume_filter=(not cfg.volume_filter_enabled) or s.volume_ratio >= VOLUME_ADEQUATE,
        passes_trend_filter=(not cfg.trend_filter_enabled) or not counter_trend,
        passes_volatility_filter=(not cfg.volatility_filter_enabled) or not low_volatility,
    )

    tags = conds.tags(direction)
    if direction == LONG and s.strong_uptrend:
        tags.append("Strong uptrend")
    elif direction == SHORT and s.strong_downtrend:
        tags.append("Strong downtrend")
    if s.volume_high:
        tags.append("High volume")
    elif volume_adj < 0:
        tags.append("Low volume")
    if forced:
        tags.append("Low evidence")
    tags.extend(notes)
    if counter_trend:
        tags.append("Counter-trend")
    if cfg.volatility_filter_enabled and low_volatility:
        tags.append("Low volatility")

    return Signal(
        direction=direction,
        confidence=confidence,
        conditions_met=conds.count(direction),
        risk_reward=rr,
        quality_flags=flags,
        suggested_take_profit=take_profit,
        suggested_stop_loss=stop_loss,
        long_conditions=conds.long_count,
        short_conditions=conds.short_count,
        indicator_tags=tuple(tags),
        actionable=actionable,
        momentum=_momentum(s),
        price=price,
        open_time=s.open_time,
        meta={
            "rsi": s.rsi,
            "macd": s.macd,
            "bb_position": s.bb_position,
            "volume_ratio": s.volume_ratio,
            "atr_percent": s.atr_percent,
            "patterns": s.patterns.names(),
        },
    )


def evaluate(
    candles: Sequence[Candle],
    cfg: TradingConfiguration,
    *,
    ctx: TelemetryContext | None = None,
) -> Signal:
    """Compute a snapshot from ``candles`` and score it.

    Raises :class:`~spotpilot.errors.InsufficientDataError` when fewer than
    50 candles are supplied; callers should wait for more data.
    """

    signal = score_snapshot(compute_snapshot(candles, min_candles=MIN_CANDLES), cfg)
    if ctx is not None:
        log_event(
            E_SIGNAL_EVALUATED,
            ctx,
            direction=signal.direction,
            confidence=signal.confidence,
            conditions_met=signal.conditions_met,
            risk_reward=round(signal.risk_reward, 4),
            actionable=signal.actionable,
            quality=signal.is_quality,
        )
    return signal


__all__ = [
    "ConditionSet",
    "evaluate_conditions",
    "base_confidence",
    "clamp_confidence",
    "clamp_risk_reward",
    "risk_reward",
    "tie_break",
    "choose_direction",
    "score_snapshot",
    "evaluate",
]
