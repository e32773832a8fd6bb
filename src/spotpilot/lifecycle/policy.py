"""Exit rules for an open position, evaluated as one ordered list per tick.

Turbo mode, in priority order:

1. *win lock-in* – close once the move reaches ``take_profit_percent``;
2. *profit protection* – close a position in (even marginal) profit when a
   fresh signal points the other way or its momentum turns against it;
3. *emergency stop* – close at ``-stop_loss_percent`` regardless of any
   other rule or the minimum hold;
4. *hold underwater* – otherwise wait for recovery.

Normal mode only acts after ``min_hold_seconds`` and applies take profit,
stop loss, the optional trailing stop and the optional signal-flip exit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from ..config import TradingConfiguration
from ..errors import PositionStateError
from ..signals.contract import LONG, SHORT, Signal
from ..utils.log import E_TRAILING_ACTIVATED, TelemetryContext, log_event
from .position import CloseReason, Position

PROFIT_PROTECT_MIN_PCT = 0.01


@dataclass(frozen=True)
class PolicyDecision:
    action: Literal["hold", "close"]
    rule: str
    price_change_percent: float
    reason: Optional[CloseReason] = None
    reopen: bool = False

    @property
    def should_close(self) -> bool:
        return self.action == "close"


def signal_against(position: Position, signal: Signal) -> bool:
    """Signal disagrees with ``position`` or its momentum opposes it."""

    if signal.direction != position.direction:
        return True
    if position.direction == LONG:
        return signal.momentum == "bearish"
    return signal.momentum == "bullish"


class PositionPolicy:
    def __init__(self, ctx: TelemetryContext | None = None) -> None:
        self.ctx = ctx

    def decide(
        self,
        position: Position,
        price: float,
        now: float,
        cfg: TradingConfiguration,
        signal: Signal | None = None,
    ) -> PolicyDecision:
        if not position.is_open:
            raise PositionStateError(f"position {position.id} is {position.status}")
        change = position.price_change_percent(price)
        held = now - position.opened_at
        if cfg.turbo_mode:
            return self._turbo(position, change, held, cfg, signal)
        return self._normal(position, price, change, held, cfg, signal)

    # ------------------------------------------------------------------
    def _close(
        self, rule: str, reason: CloseReason, change: float, cfg: TradingConfiguration
    ) -> PolicyDecision:
        reopen = cfg.auto_reopen_enabled and (change >= 0 or cfg.auto_reopen_on_loss)
        return PolicyDecision("close", rule, change, reason=reason, reopen=reopen)

    def _turbo(
        self,
        position: Position,
        change: float,
        held: float,
        cfg: TradingConfiguration,
        signal: Signal | None,
    ) -> PolicyDecision:
        warm = held >= cfg.min_hold
        if warm and change >= cfg.take_profit_percent:
            return self._close("win_lock_in", "take_profit", change, cfg)
        if (
            warm
            and change > PROFIT_PROTECT_MIN_PCT
            and signal is not None
            and signal_against(position, signal)
        ):
            return self._close("profit_protection", "take_profit", change, cfg)
        if change <= -cfg.stop_loss_percent:
            return self._close("emergency_stop", "stop_loss", change, cfg)
        if change <= 0:
            return PolicyDecision("hold", "hold_underwater", change)
        return PolicyDecision("hold", "hold", change)

    def _normal(
        self,
        position: Position,
        price: float,
        change: float,
        held: float,
        cfg: TradingConfiguration,
        signal: Signal | None,
    ) -> PolicyDecision:
        if held < cfg.min_hold:
            return PolicyDecision("hold", "min_hold", change)

        if cfg.trailing_stop_percent > 0:
            self._update_trailing(position, price, change, cfg.trailing_stop_percent)

        if cfg.take_profit_enabled and change >= cfg.take_profit_percent:
            return self._close("take_profit", "take_profit", change, cfg)
        if cfg.stop_loss_enabled and change <= -cfg.stop_loss_percent:
            return self._close("stop_loss", "stop_loss", change, cfg)
        if position.trailing_stop_activated and position.stop_loss_price is not None:
            hit = (
                price <= position.stop_loss_price
                if position.direction == LONG
                else price >= position.stop_loss_price
            )
            if hit:
                reason: CloseReason = "take_profit" if change > 0 else "stop_loss"
                return self._close("trailing_stop", reason, change, cfg)
        if (
            cfg.close_on_signal_flip
            and signal is not None
            and signal.actionable
            and signal.direction != position.direction
        ):
            return self._close("signal_flip", "signal_flip", change, cfg)
        return PolicyDecision("hold", "hold", change)

    def _update_trailing(
        self, position: Position, price: float, change: float, trail_pct: float
    ) -> None:
        if not position.trailing_stop_activated:
            if change < trail_pct:
                return
            position.trailing_stop_activated = True
            position.peak_price = price
            log_event(
                E_TRAILING_ACTIVATED,
                self.ctx,
                position_id=position.id,
                price=price,
                change_pct=round(change, 4),
            )
        elif position.direction == LONG:
            position.peak_price = max(position.peak_price or price, price)
        else:
            position.peak_price = min(position.peak_price or price, price)

        peak = position.peak_price
        if position.direction == SHORT:
            position.stop_loss_price = peak * (1 + trail_pct / 100.0)
        else:
            position.stop_loss_price = peak * (1 - trail_pct / 100.0)


__all__ = ["PolicyDecision", "PositionPolicy", "signal_against", "PROFIT_PROTECT_MIN_PCT"]
