from spotpilot.examples.synthetic import generate_ohlcv


def test_generate_ohlcv_is_consistent():
    df = generate_ohlcv(100, start_price=50.0, seed=1)
    assert len(df) == 100
    assert list(df.columns) == ["open", "high", "low", "close", "volume"]
    assert (df["high"] >= df[["open", "close"]].max(axis=1)).all()
    assert (df["low"] <= df[["open", "close"]].min(axis=1)).all()
    assert (df["volume"] > 0).all()
    assert df["open"].iloc[0] == 50.0
    assert df.index.is_monotonic_increasing


def test_generate_ohlcv_is_reproducible():
    assert generate_ohlcv(30, seed=5).equals(generate_ohlcv(30, seed=5))
