import pytest

from spotpilot.errors import SettlementError
from spotpilot.execution import PaperExecutor
from spotpilot.lifecycle import Position


def _pos(direction: str = "LONG", size: float = 100.0) -> Position:
    return Position("BTCUSDT", direction, 100.0, size, 0.0)


def test_fills_with_fee_and_slippage():
    ex = PaperExecutor(fee_perc=0.001, slippage_perc=0.01)
    long_pos = _pos()
    fill = ex.open(long_pos, 100.0)
    assert fill.price == pytest.approx(101.0)
    assert fill.fee == pytest.approx(0.1)
    assert ex.close(long_pos, 100.0).price == pytest.approx(99.0)

    short_pos = _pos("SHORT")
    assert ex.open(short_pos, 100.0).price == pytest.approx(99.0)
    assert ex.close(short_pos, 100.0).price == pytest.approx(101.0)
    assert ex.open_positions() == 0


def test_fill_ids_increase():
    ex = PaperExecutor()
    a, b = _pos(), _pos()
    assert ex.open(a, 10.0).id == 1
    assert ex.open(b, 10.0).id == 2
    assert ex.open_positions() == 2


def test_rejects_invalid_requests():
    ex = PaperExecutor()
    with pytest.raises(SettlementError):
        ex.open(_pos(size=0.0), 100.0)
    with pytest.raises(SettlementError):
        ex.close(_pos(), 100.0)
    pos = _pos()
    ex.open(pos, 100.0)
    with pytest.raises(SettlementError):
        ex.open(pos, 100.0)


def test_simulated_failures():
    ex = PaperExecutor()
    ex.fail_opens = True
    with pytest.raises(SettlementError):
        ex.open(_pos(), 100.0)
    ex.fail_opens = False
    pos = _pos()
    ex.open(pos, 100.0)
    ex.fail_closes = True
    with pytest.raises(SettlementError):
        ex.close(pos, 100.0)
    assert ex.open_positions() == 1
