"""Daily loss guard.

Tracks the balance at the start of each UTC day and blocks new entries once
the realized loss for that day reaches ``max_daily_loss_percent``. Only state
changes are logged which keeps log noise to a minimum.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Dict, Optional

from ..utils.log import (
    E_RISK_GUARD_ACTIVE,
    E_RISK_GUARD_CLEARED,
    R_DAILY_LOSS,
    TelemetryContext,
    log_event,
)


def utc_day(ts: float) -> date:
    return datetime.fromtimestamp(ts, tz=timezone.utc).date()


@dataclass
class DailyLossGuard:
    max_daily_loss_percent: float
    ctx: TelemetryContext | None = None
    _day: Optional[date] = field(default=None, init=False)
    _start_balance: float = field(default=0.0, init=False)
    _active: Dict[str, bool] = field(default_factory=dict, init=False)

    def _set_active(self, guard: str, active: bool, **fields) -> None:
        prev = self._active.get(guard, False)
        if active and not prev:
            log_event(E_RISK_GUARD_ACTIVE, self.ctx, guard=guard, **fields)
        elif not active and prev:
            log_event(E_RISK_GUARD_CLEARED, self.ctx, guard=guard, **fields)
        self._active[guard] = active

    @property
    def active(self) -> bool:
        return self._active.get("max_daily_loss", False)

    def should_block(self, now: float, balance: float) -> bool:
        """Return ``True`` when today's loss meets the configured limit.

        The first call on a new UTC day records ``balance`` as that day's
        starting balance.
        """

        day = utc_day(now)
        if day != self._day:
            self._day = day
            self._start_balance = float(balance)

        day_str = day.isoformat()
        start = self._start_balance
        if start <= 0 or self.max_daily_loss_percent <= 0:
            self._set_active("max_daily_loss", False, day=day_str)
            return False
        loss_pct = (start - balance) / start * 100.0
        if loss_pct >= self.max_daily_loss_percent:
            self._set_active(
                "max_daily_loss",
                True,
                value=round(loss_pct, 4),
                limit=self.max_daily_loss_percent,
                day=day_str,
                reason=R_DAILY_LOSS,
            )
            return True
        self._set_active("max_daily_loss", False, day=day_str, reason=R_DAILY_LOSS)
        return False


__all__ = ["DailyLossGuard", "utc_day"]
