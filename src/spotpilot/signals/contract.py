"""Data contract for directional trading signals."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

# A signal always resolves to one side; low-evidence cases are described by
# ``quality_flags`` and ``actionable`` rather than a third direction.
Direction = Literal["LONG", "SHORT"]
LONG: Direction = "LONG"
SHORT: Direction = "SHORT"

Momentum = Literal["bullish", "bearish", "neutral"]


def opposite(direction: Direction) -> Direction:
    return SHORT if direction == LONG else LONG


@dataclass(frozen=True)
class QualityFlags:
    meets_min_confidence: bool = False
    meets_min_risk_reward: bool = False
    passes_volume_filter: bool = False
    passes_trend_filter: bool = False
    passes_volatility_filter: bool = True

    @property
    def all_passed(self) -> bool:
        return (
            self.meets_min_confidence
            and self.meets_min_risk_reward
            and self.passes_volume_filter
            and self.passes_trend_filter
            and self.passes_volatility_filter
        )


@dataclass(frozen=True)
class Signal:
    """Directional recommendation produced by one scorer evaluation."""

    direction: Direction
    confidence: int
    conditions_met: int
    risk_reward: float
    quality_flags: QualityFlags
    suggested_take_profit: float
    suggested_stop_loss: float
    long_conditions: int = 0
    short_conditions: int = 0
    indicator_tags: tuple[str, ...] = ()
    actionable: bool = True
    momentum: Momentum = "neutral"
    price: float = 0.0
    open_time: int = 0
    meta: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def is_quality(self) -> bool:
        """All quality flags passed. Informational only."""
        return self.quality_flags.all_passed

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["indicator_tags"] = list(self.indicator_tags)
        out["is_quality"] = self.is_quality
        return out


__all__ = [
    "Direction",
    "LONG",
    "SHORT",
    "Momentum",
    "opposite",
    "QualityFlags",
    "Signal",
]
