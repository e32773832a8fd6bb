from spotpilot.lifecycle import Position
from spotpilot.storage import (
    InMemoryTradeRepository,
    JsonlTradeRepository,
    TradeRecord,
    to_frame,
)
from spotpilot.storage.history import COLUMNS


def _closed() -> Position:
    pos = Position("ETHUSDT", "SHORT", 2000.0, 50.0, 10.0, id="pos_1")
    pos.status = "CLOSED"
    pos.exit_price = 1980.0
    pos.realized_pnl = 0.5
    pos.close_reason = "take_profit"
    pos.closed_at = 70.0
    return pos


def test_record_from_position():
    rec = TradeRecord.from_position(_closed())
    assert rec.id == "pos_1"
    assert rec.direction == "SHORT"
    assert rec.pnl == 0.5
    assert rec.close_reason == "take_profit"


def test_in_memory_repository_returns_copies():
    repo = InMemoryTradeRepository()
    repo.append(TradeRecord.from_position(_closed()))
    listed = repo.list()
    listed.clear()
    assert len(repo) == 1


def test_jsonl_repository_persists(tmp_path):
    path = tmp_path / "hist" / "trades.jsonl"
    repo = JsonlTradeRepository(path)
    assert repo.list() == []
    rec = TradeRecord.from_position(_closed())
    repo.append(rec)
    repo.append(rec)
    assert path.read_text(encoding="utf-8").count("\n") == 2
    assert JsonlTradeRepository(path).list() == [rec, rec]


def test_to_frame_columns():
    df = to_frame([TradeRecord.from_position(_closed())])
    assert list(df.columns) == COLUMNS
    assert df.loc[0, "status"] == "CLOSED"
    assert list(to_frame([]).columns) == COLUMNS
