from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

import pandas as pd

_TIME_ALIASES = ("open_time", "time", "timestamp", "date", "datetime")


def read_candles_csv(path: str | Path, *, sep: str | None = None) -> pd.DataFrame:
    """Read an OHLCV CSV into a frame with an ``open_time`` column in ms.

    - column names are lower-cased and stripped
    - the first of ``open_time``/``time``/``timestamp``/``date``/``datetime``
      is used as the bar time; integer values are taken as epoch
      milliseconds, anything else is parsed with :func:`pandas.to_datetime`
    - rows are sorted by time; exact duplicate timestamps are kept so that the
      candle store can reject them explicitly
    """

    df = pd.read_csv(path, sep=sep, engine="python" if sep is None else "c")
    df.columns = [str(c).strip().lower() for c in df.columns]

    required = {"open", "high", "low", "close"}
    if not required.issubset(df.columns):
        raise ValueError(f"CSV must contain columns: {sorted(required)}")

    time_col = next((c for c in _TIME_ALIASES if c in df.columns), None)
    if time_col is None:
        raise ValueError(f"CSV must contain one of: {', '.join(_TIME_ALIASES)}")

    raw = df[time_col]
    if pd.api.types.is_integer_dtype(raw):
        open_time = raw.astype("int64")
    else:
        ts = pd.to_datetime(raw, utc=True, errors="coerce")
        if ts.isna().any():
            raise ValueError(f"unparseable values in column {time_col!r}")
        open_time = (ts - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(milliseconds=1)

    out = pd.DataFrame({"open_time": open_time.astype("int64")})
    for col in ("open", "high", "low", "close"):
        out[col] = pd.to_numeric(df[col], errors="coerce")
    out["volume"] = pd.to_numeric(df["volume"], errors="coerce") if "volume" in df.columns else 0.0
    out = out.dropna(subset=["open", "high", "low", "close"])
    out["volume"] = out["volume"].fillna(0.0)
    return out.sort_values("open_time", kind="stable").reset_index(drop=True)


def atomic_to_csv(df: pd.DataFrame, path: str | os.PathLike[str], **kwargs) -> None:
    """Write ``df`` to ``path`` atomically.

    The file is first written to a temporary location in the destination
    directory and then moved into place using :func:`os.replace`.
    """

    directory = os.path.dirname(path) or "."
    with tempfile.NamedTemporaryFile("w", dir=directory, delete=False, suffix=".tmp") as f:
        tmp = f.name
        df.to_csv(f, index=False, **kwargs)
    os.replace(tmp, path)


def atomic_write_json(data: dict[str, object], path: str | os.PathLike[str]) -> None:
    """Atomically write JSON ``data`` to ``path``."""

    directory = os.path.dirname(path) or "."
    with tempfile.NamedTemporaryFile("w", dir=directory, delete=False, suffix=".tmp") as f:
        json.dump(data, f, indent=2)
        tmp = f.name
    os.replace(tmp, path)


__all__ = ["read_candles_csv", "atomic_to_csv", "atomic_write_json"]
