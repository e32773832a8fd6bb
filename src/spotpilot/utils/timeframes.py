from __future__ import annotations

import re

# aliases mapped onto the canonical "Xm", "Xh", "Xd" notation
_ALIASES = {
    "M": "1m",
    "H": "1h",
    "D": "1d",
    "1M": "1m",
    "1H": "1h",
    "1D": "1d",
    "60min": "1h",
    "24h": "1d",
}

# canonical interval -> minutes
_TF_MINUTES = {
    "1m": 1,
    "3m": 3,
    "5m": 5,
    "15m": 15,
    "30m": 30,
    "1h": 60,
    "2h": 120,
    "4h": 240,
    "6h": 360,
    "8h": 480,
    "12h": 720,
    "1d": 1440,
    "1w": 10080,
}


def normalize_interval(tf: str) -> str:
    """Normalize an interval to ``'Xm'``/``'Xh'``/``'Xd'`` (``'H'`` -> ``'1h'``)."""

    raw = tf.strip()
    alias = _ALIASES.get(raw)
    if alias:
        return alias

    s = raw.lower().replace(" ", "")
    if s in _TF_MINUTES:
        return s

    if s.isdigit():
        minutes = int(s)
        for k, v in _TF_MINUTES.items():
            if v == minutes:
                return k

    m = re.fullmatch(r"(\d+)(m|h|d|w|min)", s)
    if m:
        num, unit = int(m.group(1)), m.group(2)
        cand = f"{num}{'m' if unit == 'min' else unit}"
        if cand in _TF_MINUTES:
            return cand

    raise ValueError(f"Unsupported interval: {tf!r}")


def interval_to_ms(tf: str) -> int:
    """Return the bar length of ``tf`` in milliseconds."""

    return _TF_MINUTES[normalize_interval(tf)] * 60_000


__all__ = ["normalize_interval", "interval_to_ms"]
