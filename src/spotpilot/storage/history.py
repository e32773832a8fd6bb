from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Protocol

import pandas as pd

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..lifecycle.position import Position


@dataclass(frozen=True)
class TradeRecord:
    id: str
    instrument: str
    account: str
    direction: str  # "LONG" | "SHORT"
    entry_price: float
    size: float
    opened_at: float
    status: str  # "CLOSED" | "FAILED"
    exit_price: Optional[float] = None
    pnl: Optional[float] = None
    fees: float = 0.0
    close_reason: Optional[str] = None
    closed_at: Optional[float] = None
    error: Optional[str] = None

    @classmethod
    def from_position(cls, pos: "Position") -> "TradeRecord":
        return cls(
            id=pos.id,
            instrument=pos.instrument,
            account=pos.account,
            direction=pos.direction,
            entry_price=pos.entry_price,
            size=pos.size,
            opened_at=pos.opened_at,
            status=pos.status,
            exit_price=pos.exit_price,
            pnl=pos.realized_pnl,
            fees=pos.fees,
            close_reason=pos.close_reason,
            closed_at=pos.closed_at,
            error=pos.error,
        )


class TradeRepository(Protocol):
    def append(self, record: TradeRecord) -> None: ...
    def list(self) -> List[TradeRecord]: ...


class InMemoryTradeRepository:
    def __init__(self) -> None:
        self._records: List[TradeRecord] = []

    def append(self, record: TradeRecord) -> None:
        self._records.append(record)

    def list(self) -> List[TradeRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)


class JsonlTradeRepository:
    """Append-only trade history, one JSON object per line."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def append(self, record: TradeRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(asdict(record)) + "\n")

    def list(self) -> List[TradeRecord]:
        if not self.path.exists():
            return []
        out: List[TradeRecord] = []
        with self.path.open("r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if line:
                    out.append(TradeRecord(**json.loads(line)))
        return out


COLUMNS = [f.name for f in fields(TradeRecord)]


def to_frame(records: List[TradeRecord]) -> pd.DataFrame:
    return pd.DataFrame([asdict(r) for r in records], columns=COLUMNS)


__all__ = [
    "COLUMNS",
    "TradeRecord",
    "TradeRepository",
    "InMemoryTradeRepository",
    "JsonlTradeRepository",
    "to_frame",
]
