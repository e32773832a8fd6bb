from .history import (
    InMemoryTradeRepository,
    JsonlTradeRepository,
    TradeRecord,
    TradeRepository,
    to_frame,
)

__all__ = [
    "InMemoryTradeRepository",
    "JsonlTradeRepository",
    "TradeRecord",
    "TradeRepository",
    "to_frame",
]
