from __future__ import annotations

import argparse
import numpy as np
import pandas as pd


def generate_ohlcv(
    periods: int = 200,
    start_price: float = 100.0,
    freq: str = "h",
    *,
    drift: float = 0.0,
    seed: int = 42,
) -> pd.DataFrame:
    """Random-walk OHLCV bars with a consistent high/low envelope."""
    # normalize frequency to lowercase to avoid pandas warnings
    freq = freq.lower()
    idx = pd.date_range("2024-01-01", periods=periods, freq=freq, tz="UTC")
    rnd = np.random.default_rng(seed)
    ret = rnd.normal(drift, 0.01, size=periods)
    close = start_price * (1 + pd.Series(ret, index=idx)).cumprod()
    open_ = close.shift(1).fillna(start_price)
    top = np.maximum(open_, close)
    bottom = np.minimum(open_, close)
    high = top * (1 + rnd.uniform(0.0, 0.01, size=periods))
    low = bottom * (1 - rnd.uniform(0.0, 0.01, size=periods))
    volume = rnd.uniform(50.0, 150.0, size=periods)
    df = pd.DataFrame(
        {"open": open_, "high": high, "low": low, "close": close, "volume": volume}, index=idx
    )
    df.index.name = "time"
    return df


def main() -> None:
    p = argparse.ArgumentParser("spotpilot-demo")
    p.add_argument("--periods", type=int, default=200)
    p.add_argument("--start", type=float, default=100.0)
    p.add_argument("--freq", default="h")
    p.add_argument("--seed", type=int, default=42)
    p.add_argument("--out")
    args = p.parse_args()
    df = generate_ohlcv(args.periods, args.start, args.freq, seed=args.seed)
    if args.out:
        df.to_csv(args.out, index=True, date_format="%Y-%m-%d %H:%M:%S")
        print(f"Saved -> {args.out}")
    else:
        print(df.head(10))


if __name__ == "__main__":
    main()
