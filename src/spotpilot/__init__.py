# src/spotpilot/__init__.py
"""spotpilot – signal scoring and position lifecycle for automated spot trading."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import tomllib

try:
    __version__ = version("spotpilot")
except PackageNotFoundError:
    pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
    __version__ = tomllib.loads(pyproject.read_text())["project"]["version"]

from .config import TradingConfiguration
from .data.candles import Candle, CandleStore
from .signals.contract import Signal
from .signals.scorer import evaluate

__all__ = ["__version__", "Candle", "CandleStore", "Signal", "TradingConfiguration", "evaluate"]
