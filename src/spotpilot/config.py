from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError
from .utils.timeframes import interval_to_ms, normalize_interval

# Environment variable pointing at a YAML/JSON trading configuration. The CLI
# falls back to it when ``--config`` is not given.
CONFIG_ENV = "SPOTPILOT_CONFIG"


class TradingConfiguration(BaseModel):
    """Thresholds and switches read by the scorer and the position policy.

    The model is frozen: callers build a new instance (``model_copy``) instead
    of mutating shared configuration.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    # signal quality
    min_confidence: int = Field(60, ge=0, le=100)
    min_risk_reward: float = Field(1.5, ge=0.0)
    volume_filter_enabled: bool = True
    trend_filter_enabled: bool = True
    volatility_filter_enabled: bool = False
    min_atr_percent: float = Field(0.3, ge=0.0)

    # exits
    take_profit_percent: float = Field(2.0, gt=0.0, alias="tp_percent")
    take_profit_enabled: bool = True
    stop_loss_percent: float = Field(1.0, gt=0.0, alias="sl_percent")
    stop_loss_enabled: bool = True
    trailing_stop_percent: float = Field(0.0, ge=0.0)
    close_on_signal_flip: bool = False

    # sizing and risk
    max_position_percent: float = Field(10.0, gt=0.0, le=100.0)
    max_daily_loss_percent: float = Field(5.0, ge=0.0, le=100.0)

    # auto reopen
    auto_reopen_enabled: bool = False
    auto_reopen_on_loss: bool = False
    reopen_min_confidence: int = Field(60, ge=0, le=100)
    max_trades_per_session: int = Field(50, ge=1)

    # scheduling
    interval: str = "1h"
    trading_interval_ms: int = Field(60_000, gt=0)
    turbo_mode: bool = False
    turbo_refresh_ms: int = Field(2_000, gt=0)
    min_hold_seconds: float = Field(30.0, ge=0.0)
    turbo_min_hold_seconds: float = Field(3.0, ge=0.0)

    @field_validator("interval")
    @classmethod
    def _norm_interval(cls, v: str) -> str:
        return normalize_interval(v)

    @model_validator(mode="after")
    def _check_refresh(self) -> "TradingConfiguration":
        if self.turbo_refresh_ms > self.trading_interval_ms:
            raise ValueError("turbo_refresh_ms must not exceed trading_interval_ms")
        return self

    @property
    def interval_ms(self) -> int:
        return interval_to_ms(self.interval)

    @property
    def min_hold(self) -> float:
        """Minimum holding duration in seconds for the active mode."""
        return self.turbo_min_hold_seconds if self.turbo_mode else self.min_hold_seconds

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "TradingConfiguration":
        try:
            return cls.model_validate(data or {})
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc

    @classmethod
    def from_file(cls, path: str | Path) -> "TradingConfiguration":
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(p)
        suffix = p.suffix.lower()
        if suffix not in {".yml", ".yaml", ".json"}:
            raise ConfigError("Supported: .yaml/.yml/.json")
        text = p.read_text(encoding="utf-8")
        try:
            data = json.loads(text) if suffix == ".json" else yaml.safe_load(text)
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ConfigError(f"{p}: cannot parse: {exc}") from exc
        if data is not None and not isinstance(data, dict):
            raise ConfigError(f"{p}: top level must be a mapping")
        return cls.from_dict(data)


def load_config(path: str | Path | None = None) -> TradingConfiguration:
    """Return configuration from ``path``, ``$SPOTPILOT_CONFIG`` or defaults.

    Priority order: ``path`` argument > ``SPOTPILOT_CONFIG`` environment
    variable > built-in defaults.
    """

    if path is None:
        path = os.environ.get(CONFIG_ENV) or None
    if path is None:
        return TradingConfiguration()
    return TradingConfiguration.from_file(path)


__all__ = ["CONFIG_ENV", "TradingConfiguration", "load_config"]
