import io
import json
import sys

from spotpilot.utils.log import E_POSITION_CLOSED, TelemetryContext, log_event, new_id, setup_logger


def test_new_id_prefix():
    pid = new_id("pos")
    assert pid.startswith("pos_")
    assert len(pid) == 12


def test_log_event_binds_context(monkeypatch):
    buf = io.StringIO()
    monkeypatch.setattr(sys, "stderr", buf)
    setup_logger()
    log_event(E_POSITION_CLOSED, TelemetryContext(instrument="BTCUSDT"), pnl=1.5)
    record = json.loads(buf.getvalue().strip())
    assert record["event"] == "position_closed"
    assert record["instrument"] == "BTCUSDT"
    assert record["pnl"] == 1.5
    assert "account" not in record


def test_log_event_follows_replaced_stderr(monkeypatch):
    first = io.StringIO()
    monkeypatch.setattr(sys, "stderr", first)
    setup_logger()
    first.close()

    second = io.StringIO()
    monkeypatch.setattr(sys, "stderr", second)
    log_event(E_POSITION_CLOSED, pnl=0.0)
    assert "position_closed" in second.getvalue()


def test_level_filter(monkeypatch):
    buf = io.StringIO()
    monkeypatch.setattr(sys, "stderr", buf)
    setup_logger("WARNING")
    log_event(E_POSITION_CLOSED)
    assert buf.getvalue() == ""
