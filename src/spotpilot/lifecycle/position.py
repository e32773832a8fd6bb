from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

from ..signals.contract import LONG, Direction
from ..utils.log import new_id

PositionStatus = Literal["OPEN", "CLOSING", "CLOSED", "FAILED"]
CloseReason = Literal["take_profit", "stop_loss", "signal_flip", "manual"]

CLOSE_REASONS: tuple[CloseReason, ...] = ("take_profit", "stop_loss", "signal_flip", "manual")


@dataclass
class Position:
    """One directional trade, retained as history once closed.

    ``size`` is expressed in quote currency. Only the position policy (trailing
    stop state) and the owning session (status transitions on settlement)
    mutate a position.
    """

    instrument: str
    direction: Direction
    entry_price: float
    size: float
    opened_at: float  # epoch seconds
    id: str = field(default_factory=lambda: new_id("pos"))
    account: str = "default"
    status: PositionStatus = "OPEN"
    take_profit_price: Optional[float] = None
    stop_loss_price: Optional[float] = None
    trailing_stop_activated: bool = False
    peak_price: Optional[float] = None
    fees: float = 0.0
    exit_price: Optional[float] = None
    realized_pnl: Optional[float] = None
    close_reason: Optional[CloseReason] = None
    closed_at: Optional[float] = None
    error: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status == "OPEN"

    def price_change_percent(self, price: float) -> float:
        """Move relative to entry in percent, positive when in profit."""
        if self.entry_price <= 0:
            return 0.0
        change = (price - self.entry_price) / self.entry_price * 100.0
        return change if self.direction == LONG else -change

    def pnl_at(self, price: float) -> float:
        return self.size * self.price_change_percent(price) / 100.0


__all__ = ["CLOSE_REASONS", "CloseReason", "Position", "PositionStatus"]
