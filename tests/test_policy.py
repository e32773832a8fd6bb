import pytest

from spotpilot.config import TradingConfiguration
from spotpilot.errors import PositionStateError
from spotpilot.lifecycle import Position, PositionPolicy
from spotpilot.signals.contract import QualityFlags, Signal


def _position(direction: str = "LONG", entry: float = 100.0) -> Position:
    return Position(
        instrument="BTCUSDT", direction=direction, entry_price=entry, size=100.0, opened_at=0.0
    )


def _signal(direction: str = "LONG", momentum: str = "neutral", actionable: bool = True) -> Signal:
    return Signal(
        direction=direction,
        confidence=70,
        conditions_met=3,
        risk_reward=2.0,
        quality_flags=QualityFlags(True, True, True, True),
        suggested_take_profit=0.0,
        suggested_stop_loss=0.0,
        actionable=actionable,
        momentum=momentum,
    )


TURBO = TradingConfiguration(turbo_mode=True, take_profit_percent=2.0, stop_loss_percent=2.0)


def test_price_change_sign_follows_direction():
    assert _position("LONG").price_change_percent(103.0) == pytest.approx(3.0)
    assert _position("SHORT").price_change_percent(103.0) == pytest.approx(-3.0)
    assert _position("SHORT").pnl_at(94.0) == pytest.approx(6.0)


def test_turbo_emergency_stop():
    d = PositionPolicy().decide(_position(), 97.0, 10.0, TURBO)
    assert d.should_close
    assert d.rule == "emergency_stop"
    assert d.reason == "stop_loss"
    assert d.price_change_percent == pytest.approx(-3.0)


def test_turbo_emergency_stop_ignores_min_hold():
    d = PositionPolicy().decide(_position(), 97.0, 1.0, TURBO)
    assert d.rule == "emergency_stop"


def test_turbo_emergency_stop_outranks_disabled_stop_loss():
    cfg = TURBO.model_copy(update={"stop_loss_enabled": False})
    assert PositionPolicy().decide(_position(), 97.0, 10.0, cfg).should_close


def test_turbo_win_lock_in_waits_for_min_hold():
    policy = PositionPolicy()
    early = policy.decide(_position(), 102.5, 1.0, TURBO)
    assert not early.should_close
    assert early.rule == "hold"
    late = policy.decide(_position(), 102.5, 5.0, TURBO)
    assert late.rule == "win_lock_in"
    assert late.reason == "take_profit"


def test_turbo_holds_underwater():
    d = PositionPolicy().decide(_position(), 99.0, 60.0, TURBO, _signal("SHORT"))
    assert not d.should_close
    assert d.rule == "hold_underwater"


def test_turbo_profit_protection_on_opposite_signal():
    d = PositionPolicy().decide(_position(), 100.5, 10.0, TURBO, _signal("SHORT"))
    assert d.rule == "profit_protection"
    assert d.reason == "take_profit"


def test_turbo_profit_protection_on_opposing_momentum():
    policy = PositionPolicy()
    d = policy.decide(_position(), 100.5, 10.0, TURBO, _signal("LONG", momentum="bearish"))
    assert d.rule == "profit_protection"
    same = policy.decide(_position(), 100.5, 10.0, TURBO, _signal("LONG", momentum="bullish"))
    assert not same.should_close


def test_turbo_short_profit_protection():
    d = PositionPolicy().decide(_position("SHORT"), 99.5, 10.0, TURBO, _signal("LONG"))
    assert d.rule == "profit_protection"


NORMAL = TradingConfiguration(take_profit_percent=5.0, stop_loss_percent=2.0, min_hold_seconds=30)


def test_normal_short_take_profit():
    d = PositionPolicy().decide(_position("SHORT"), 94.0, 60.0, NORMAL)
    assert d.should_close
    assert d.rule == "take_profit"
    assert d.reason == "take_profit"
    assert d.price_change_percent == pytest.approx(6.0)


def test_normal_min_hold_blocks_all_exits():
    d = PositionPolicy().decide(_position(), 90.0, 10.0, NORMAL)
    assert not d.should_close
    assert d.rule == "min_hold"


def test_normal_stop_loss_and_disabled_stop():
    policy = PositionPolicy()
    assert policy.decide(_position(), 97.5, 60.0, NORMAL).reason == "stop_loss"
    cfg = NORMAL.model_copy(update={"stop_loss_enabled": False})
    assert not policy.decide(_position(), 97.5, 60.0, cfg).should_close


def test_trailing_stop_follows_peak():
    cfg = TradingConfiguration(
        take_profit_percent=10.0, stop_loss_percent=5.0, trailing_stop_percent=1.0, min_hold_seconds=0
    )
    policy = PositionPolicy()
    pos = _position()
    assert policy.decide(pos, 100.5, 1.0, cfg).rule == "hold"
    assert not pos.trailing_stop_activated

    assert not policy.decide(pos, 102.0, 2.0, cfg).should_close
    assert pos.trailing_stop_activated
    assert pos.stop_loss_price == pytest.approx(100.98)

    policy.decide(pos, 104.0, 3.0, cfg)
    assert pos.peak_price == 104.0
    assert pos.stop_loss_price == pytest.approx(102.96)

    d = policy.decide(pos, 102.9, 4.0, cfg)
    assert d.rule == "trailing_stop"
    assert d.reason == "take_profit"


def test_trailing_stop_short():
    cfg = TradingConfiguration(
        take_profit_percent=10.0, stop_loss_percent=5.0, trailing_stop_percent=1.0, min_hold_seconds=0
    )
    policy = PositionPolicy()
    pos = _position("SHORT")
    policy.decide(pos, 97.0, 1.0, cfg)
    assert pos.stop_loss_price == pytest.approx(97.97)
    d = policy.decide(pos, 98.0, 2.0, cfg)
    assert d.rule == "trailing_stop"


def test_signal_flip_exit():
    cfg = NORMAL.model_copy(update={"close_on_signal_flip": True})
    policy = PositionPolicy()
    d = policy.decide(_position(), 100.2, 60.0, cfg, _signal("SHORT"))
    assert d.reason == "signal_flip"
    weak = policy.decide(_position(), 100.2, 60.0, cfg, _signal("SHORT", actionable=False))
    assert not weak.should_close
    assert not policy.decide(_position(), 100.2, 60.0, NORMAL, _signal("SHORT")).should_close


def test_reopen_request_follows_flags():
    policy = PositionPolicy()
    cfg = NORMAL.model_copy(update={"auto_reopen_enabled": True})
    assert policy.decide(_position(), 106.0, 60.0, cfg).reopen
    assert not policy.decide(_position(), 97.0, 60.0, cfg).reopen
    on_loss = cfg.model_copy(update={"auto_reopen_on_loss": True})
    assert policy.decide(_position(), 97.0, 60.0, on_loss).reopen
    assert not policy.decide(_position(), 106.0, 60.0, NORMAL).reopen


def test_decide_requires_open_position():
    pos = _position()
    pos.status = "CLOSED"
    with pytest.raises(PositionStateError):
        PositionPolicy().decide(pos, 100.0, 60.0, NORMAL)


def test_turbo_hold_uses_configured_turbo_min_hold():
    cfg = TURBO.model_copy(update={"turbo_min_hold_seconds": 10.0})
    assert cfg.min_hold == 10.0
    policy = PositionPolicy()
    assert not policy.decide(_position(), 102.5, 5.0, cfg).should_close
    assert policy.decide(_position(), 102.5, 10.0, cfg).rule == "win_lock_in"
