from .confluence import Confluence, confluence
from .contract import LONG, SHORT, Direction, QualityFlags, Signal
from .scorer import evaluate, score_snapshot

__all__ = [
    "LONG",
    "SHORT",
    "Confluence",
    "Direction",
    "QualityFlags",
    "Signal",
    "confluence",
    "evaluate",
    "score_snapshot",
]
