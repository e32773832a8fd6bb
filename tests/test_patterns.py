import pytest

from spotpilot.data.candles import Candle
from spotpilot.indicators import patterns


def test_bullish_engulfing():
    prev = Candle(0, 10.0, 10.2, 8.8, 9.0)
    cur = Candle(1, 8.9, 10.5, 8.8, 10.3)
    assert patterns.bullish_engulfing(prev, cur)
    assert not patterns.bearish_engulfing(prev, cur)
    flags = patterns.detect([prev, cur])
    assert flags.bullish_engulfing
    assert "bullish_engulfing" in flags.names()


def test_bearish_engulfing():
    prev = Candle(0, 9.0, 10.2, 8.8, 10.0)
    cur = Candle(1, 10.1, 10.3, 8.5, 8.9)
    assert patterns.bearish_engulfing(prev, cur)
    assert patterns.detect([prev, cur]).bearish_engulfing


def test_doji():
    assert patterns.doji(Candle(0, 10.0, 11.0, 9.0, 10.05))
    assert not patterns.doji(Candle(0, 10.0, 11.0, 9.0, 10.8))


def test_long_upper_wick():
    c = Candle(0, 10.0, 12.0, 9.9, 10.4)
    assert patterns.long_upper_wick(c)
    assert not patterns.long_lower_wick(c)


def test_long_lower_wick():
    c = Candle(0, 10.4, 10.5, 8.0, 10.0)
    assert patterns.long_lower_wick(c)
    assert not patterns.long_upper_wick(c)


def test_flat_candle_has_no_patterns():
    flags = patterns.detect([Candle(0, 5.0, 5.0, 5.0, 5.0)])
    assert flags.names() == []


def test_detect_single_candle_never_engulfs():
    flags = patterns.detect([Candle(0, 8.9, 10.5, 8.8, 10.3)])
    assert not flags.bullish_engulfing
    assert not flags.bearish_engulfing
    assert patterns.detect([]) == patterns.CandlePatternFlags()


def test_hammer_and_inverted_hammer():
    h = Candle(0, 10.0, 10.25, 8.0, 10.2)
    assert patterns.hammer(h)
    assert not patterns.inverted_hammer(h)
    inv = Candle(0, 10.0, 12.0, 9.98, 10.2)
    assert patterns.inverted_hammer(inv)
    assert not patterns.hammer(inv)


def test_morning_and_evening_star():
    first = Candle(0, 12.0, 12.1, 9.9, 10.0)
    star = Candle(1, 9.9, 10.0, 9.6, 9.8)
    third = Candle(2, 9.9, 11.6, 9.8, 11.5)
    assert patterns.morning_star(first, star, third)
    flags = patterns.detect([first, star, third])
    assert flags.morning_star and not flags.evening_star

    first = Candle(0, 10.0, 12.1, 9.9, 12.0)
    star = Candle(1, 12.1, 12.4, 12.0, 12.2)
    third = Candle(2, 12.1, 12.2, 10.4, 10.5)
    assert patterns.evening_star(first, star, third)
    assert patterns.detect([first, star, third]).evening_star


def test_harami():
    prev = Candle(0, 12.0, 12.2, 9.8, 10.0)
    cur = Candle(1, 10.5, 11.6, 10.4, 11.5)
    assert patterns.bullish_harami(prev, cur)
    assert not patterns.bearish_harami(prev, cur)

    prev = Candle(0, 10.0, 12.2, 9.8, 12.0)
    cur = Candle(1, 11.5, 11.6, 10.4, 10.5)
    assert patterns.bearish_harami(prev, cur)


def test_three_soldiers_and_crows():
    up = [Candle(i, 10.0 + i, 11.2 + i, 9.9 + i, 11.0 + i) for i in range(3)]
    assert patterns.three_white_soldiers(up)
    assert not patterns.three_black_crows(up)
    down = [Candle(i, 20.0 - i, 20.1 - i, 18.8 - i, 19.0 - i) for i in range(3)]
    assert patterns.three_black_crows(down)
    assert not patterns.three_white_soldiers(down[:2])


def test_strength_sums_weights_per_side():
    flags = patterns.CandlePatternFlags(
        three_white_soldiers=True, hammer=True, doji=True, evening_star=True
    )
    assert flags.bullish() == ["hammer", "three_white_soldiers"]
    assert flags.bearish() == ["evening_star"]
    assert flags.strength(True) == pytest.approx(1.7)
    assert flags.strength(False) == pytest.approx(0.9)
    assert patterns.CandlePatternFlags().strength(True) == 0
