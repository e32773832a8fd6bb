import pytest

from spotpilot.utils.timeframes import interval_to_ms, normalize_interval


def test_normalize_interval_variants():
    assert normalize_interval("H") == "1h"
    assert normalize_interval("1H") == "1h"
    assert normalize_interval("240") == "4h"
    assert normalize_interval("60min") == "1h"
    assert normalize_interval(" 15m ") == "15m"


@pytest.mark.parametrize("tf, expected", [("1m", 60_000), ("1h", 3_600_000), ("1d", 86_400_000)])
def test_interval_to_ms(tf, expected):
    assert interval_to_ms(tf) == expected


@pytest.mark.parametrize("bad", ["weird", "", "13", "1X", "999x"])
def test_invalid_interval(bad):
    with pytest.raises(ValueError):
        normalize_interval(bad)
