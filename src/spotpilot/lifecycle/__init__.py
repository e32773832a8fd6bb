"""Position lifecycle: model, exit policy, risk guard and session owner."""

from .policy import PolicyDecision, PositionPolicy
from .position import CLOSE_REASONS, CloseReason, Position, PositionStatus
from .risk_guard import DailyLossGuard
from .session import TradingSession

__all__ = [
    "CLOSE_REASONS",
    "CloseReason",
    "Position",
    "PositionStatus",
    "PolicyDecision",
    "PositionPolicy",
    "DailyLossGuard",
    "TradingSession",
]
