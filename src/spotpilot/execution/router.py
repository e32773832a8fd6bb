from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Protocol

from ..errors import SettlementError
from ..signals.contract import LONG

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..lifecycle.position import Position


@dataclass(frozen=True)
class Fill:
    id: int
    price: float
    fee: float = 0.0
    tx: Optional[str] = None


class ExecutionLayer(Protocol):
    """Settles entries and exits. Raises :class:`SettlementError` on failure."""

    def open(self, position: "Position", price: float) -> Fill: ...
    def close(self, position: "Position", price: float) -> Fill: ...


class PaperExecutor:
    """
    In-memory execution:
    - fills at the requested price, moved against the trader by ``slippage_perc``
    - percentage fee on the quote-currency size
    - ``fail_opens`` / ``fail_closes`` simulate settlement failures
    """

    def __init__(self, fee_perc: float = 0.0, slippage_perc: float = 0.0) -> None:
        self._fee_perc = float(fee_perc)
        self._slippage_perc = float(slippage_perc)
        self._id = 0
        self._open: Dict[str, "Position"] = {}
        self.fail_opens = False
        self.fail_closes = False

    def _fill_price(self, position: "Position", price: float, entering: bool) -> float:
        buying = (position.direction == LONG) == entering
        adj = price * self._slippage_perc
        return price + adj if buying else price - adj

    def _next(self, price: float, size: float) -> Fill:
        self._id += 1
        return Fill(id=self._id, price=price, fee=abs(size) * self._fee_perc)

    def open(self, position: "Position", price: float) -> Fill:
        if self.fail_opens:
            raise SettlementError("paper: open rejected")
        if price <= 0 or position.size <= 0:
            raise SettlementError("paper: invalid price or size")
        if position.id in self._open:
            raise SettlementError(f"paper: {position.id} already open")
        fill = self._next(self._fill_price(position, price, True), position.size)
        self._open[position.id] = position
        return fill

    def close(self, position: "Position", price: float) -> Fill:
        if self.fail_closes:
            raise SettlementError("paper: close rejected")
        if position.id not in self._open:
            raise SettlementError(f"paper: {position.id} is not open")
        if price <= 0:
            raise SettlementError("paper: invalid price")
        fill = self._next(self._fill_price(position, price, False), position.size)
        del self._open[position.id]
        return fill

    def open_positions(self) -> int:
        return len(self._open)


__all__ = ["ExecutionLayer", "Fill", "PaperExecutor"]
