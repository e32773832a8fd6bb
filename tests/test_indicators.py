"""Unit tests for window indicator helpers."""

import math

import pytest

from spotpilot.indicators import core


def test_sma_uses_trailing_window():
    assert core.sma([1, 2, 3, 4, 5], 3) == 4.0
    assert core.sma([2.0], 5) == 2.0


def test_ema_seeded_from_oldest_value():
    assert core.ema([1, 2, 3], 3) == pytest.approx(2.25)
    assert core.ema([7.0] * 30, 12) == pytest.approx(7.0)


def test_rsi_extremes():
    rising = [float(i) for i in range(20)]
    falling = list(reversed(rising))
    assert core.rsi(rising) == 100.0
    assert core.rsi(falling) == 0.0
    assert core.rsi([5.0] * 20) == 50.0


def test_rsi_balanced_moves():
    closes = [1.0 if i % 2 == 0 else 2.0 for i in range(15)]
    assert core.rsi(closes, 14) == pytest.approx(50.0)


def test_macd_flat_series_is_zero():
    assert core.macd([3.0] * 40) == pytest.approx(0.0)


def test_macd_sign_follows_trend():
    up = [100.0 + i for i in range(40)]
    assert core.macd(up) > 0
    assert core.macd(list(reversed(up))) < 0


def test_bollinger_population_std():
    upper, middle, lower = core.bollinger([1, 2, 3, 4], 4)
    std = math.sqrt(1.25)
    assert middle == pytest.approx(2.5)
    assert upper == pytest.approx(2.5 + 2 * std)
    assert lower == pytest.approx(2.5 - 2 * std)


def test_volume_ratio_includes_current_bar():
    volumes = [1.0] * 19 + [3.0]
    assert core.volume_ratio(volumes, 20) == pytest.approx(3.0 / 1.1)
    assert core.volume_ratio([0.0] * 20) == 1.0


def test_support_resistance():
    lows = [5.0, 3.0, 4.0]
    highs = [6.0, 9.0, 7.0]
    assert core.support_resistance(lows, highs, 20) == (3.0, 9.0)
    assert core.support_resistance(lows, highs, 1) == (4.0, 7.0)


def test_invalid_inputs():
    with pytest.raises(ValueError):
        core.sma([1.0], 0)
    with pytest.raises(ValueError):
        core.ema([], 3)


def test_atr_constant_range():
    highs = [11.0] * 20
    lows = [9.0] * 20
    closes = [10.0] * 20
    assert core.atr(highs, lows, closes, 14) == pytest.approx(2.0)


def test_atr_counts_gaps_against_previous_close():
    highs = [10.5, 13.0]
    lows = [9.5, 12.0]
    closes = [10.0, 12.5]
    # true range of the second bar is high - previous close = 3.0
    assert core.atr(highs, lows, closes, 1) == pytest.approx(3.0)
    assert core.atr([11.0], [9.0], [10.0]) == pytest.approx(2.0)
