import json

import pytest
import yaml
from pydantic import ValidationError

from spotpilot.config import CONFIG_ENV, TradingConfiguration, load_config
from spotpilot.errors import ConfigError


def test_defaults():
    cfg = TradingConfiguration()
    assert cfg.min_confidence == 60
    assert cfg.min_risk_reward == 1.5
    assert cfg.take_profit_percent == 2.0
    assert cfg.stop_loss_percent == 1.0
    assert cfg.max_daily_loss_percent == 5.0
    assert not cfg.turbo_mode
    assert cfg.interval == "1h"
    assert cfg.interval_ms == 3_600_000
    assert cfg.min_hold == 30.0
    assert not cfg.volatility_filter_enabled
    assert cfg.min_atr_percent == 0.3


def test_turbo_min_hold():
    assert TradingConfiguration(turbo_mode=True).min_hold == 3.0


def test_aliases_and_interval_normalisation():
    cfg = TradingConfiguration.from_dict({"tp_percent": 3.5, "sl_percent": 1.2, "interval": "H"})
    assert cfg.take_profit_percent == 3.5
    assert cfg.stop_loss_percent == 1.2
    assert cfg.interval == "1h"


@pytest.mark.parametrize(
    "data",
    [
        {"min_confidence": 150},
        {"take_profit_percent": 0},
        {"unknown_key": 1},
        {"interval": "13x"},
        {"min_atr_percent": -0.1},
        {"turbo_refresh_ms": 120_000, "trading_interval_ms": 60_000},
    ],
)
def test_invalid_values_raise_config_error(data):
    with pytest.raises(ConfigError):
        TradingConfiguration.from_dict(data)


def test_config_is_frozen():
    cfg = TradingConfiguration()
    with pytest.raises(ValidationError):
        cfg.min_confidence = 10
    assert cfg.model_copy(update={"min_confidence": 10}).min_confidence == 10


def test_from_yaml_and_json(tmp_path):
    y = tmp_path / "cfg.yaml"
    y.write_text(yaml.safe_dump({"turbo_mode": True, "stop_loss_percent": 2.0}), encoding="utf-8")
    assert TradingConfiguration.from_file(y).turbo_mode

    j = tmp_path / "cfg.json"
    j.write_text(json.dumps({"min_confidence": 70}), encoding="utf-8")
    assert TradingConfiguration.from_file(j).min_confidence == 70

    empty = tmp_path / "empty.yaml"
    empty.write_text("", encoding="utf-8")
    assert TradingConfiguration.from_file(empty) == TradingConfiguration()


def test_from_file_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        TradingConfiguration.from_file(tmp_path / "missing.yaml")
    bad = tmp_path / "cfg.toml"
    bad.write_text("x = 1", encoding="utf-8")
    with pytest.raises(ConfigError):
        TradingConfiguration.from_file(bad)
    broken = tmp_path / "broken.yaml"
    broken.write_text("min_confidence: [1, 2\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        TradingConfiguration.from_file(broken)
    broken_json = tmp_path / "broken.json"
    broken_json.write_text("{\"min_confidence\": ", encoding="utf-8")
    with pytest.raises(ConfigError):
        TradingConfiguration.from_file(broken_json)
    listed = tmp_path / "list.yaml"
    listed.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        TradingConfiguration.from_file(listed)


def test_load_config_priority(tmp_path, monkeypatch):
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    assert load_config() == TradingConfiguration()

    env_cfg = tmp_path / "env.yaml"
    env_cfg.write_text("min_confidence: 75\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV, str(env_cfg))
    assert load_config().min_confidence == 75

    arg_cfg = tmp_path / "arg.yaml"
    arg_cfg.write_text("min_confidence: 80\n", encoding="utf-8")
    assert load_config(arg_cfg).min_confidence == 80
