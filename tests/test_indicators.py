import pytest

from strategy_lab.trade_engine import indicators
from strategy_lab.trade_engine.indicators import INDICATORS, ema, highest, lowest, percent_change, rsi, sma


def test_sma_uses_trailing_closes(make_bars):
    bars = make_bars([1, 2, 3, 4, 5])
    assert sma(bars, 4, 3) == pytest.approx(4.0)
    assert sma(bars, 2, 3) == pytest.approx(2.0)
    assert sma(bars, 1, 3) is None


def test_ema_seeds_from_first_close_in_window(make_bars):
    bars = make_bars([1, 2, 3])
    # smoothing = 0.5: 1 -> 1.5 -> 2.25
    assert ema(bars, 2, 3) == pytest.approx(2.25)
    assert ema(bars, 1, 3) is None


def test_ema_length_one_returns_current_close(make_bars):
    bars = make_bars([7, 8, 9])
    assert ema(bars, 0, 1) == pytest.approx(7.0)
    assert ema(bars, 2, 0) == pytest.approx(9.0)


def test_rsi_is_100_without_losses(make_bars):
    bars = make_bars([1, 2, 3, 4, 5, 6])
    assert rsi(bars, 3, 3) == 100.0
    assert rsi(bars, 5, 3) == 100.0


def test_rsi_wilder_smoothing(make_bars):
    bars = make_bars([10, 11, 10, 11, 10])
    assert rsi(bars, 2, 2) == pytest.approx(50.0)
    # avg_gain = (0.5 + 1) / 2, avg_loss = (0.5 + 0) / 2 -> rs = 3
    assert rsi(bars, 3, 2) == pytest.approx(75.0)


def test_highest_and_lowest_accessors(make_bars):
    bars = make_bars([1, 5, 3])
    assert highest(bars, 2, 3) == pytest.approx(6.0)  # high = close + 1
    assert highest(bars, 2, 3, "close") == pytest.approx(5.0)
    assert lowest(bars, 2, 3) == pytest.approx(0.0)  # low = close - 1
    assert lowest(bars, 2, 3, lambda bar: bar.close) == pytest.approx(1.0)
    assert highest(bars, 1, 3) is None
    assert lowest(bars, 1, 3) is None


@pytest.mark.parametrize("length", [1, 3, 5])
def test_warm_up_returns_none_then_numbers(make_bars, length):
    bars = make_bars([100 + i for i in range(8)])
    for index in range(len(bars)):
        warming = index < length - 1
        for fn in (sma, ema, highest, lowest):
            value = fn(bars, index, length)
            assert (value is None) == warming, (fn.__name__, index)
        assert (rsi(bars, index, length) is None) == (index < length)


def test_indicators_do_not_mutate_series(make_bars):
    bars = tuple(make_bars([3, 1, 4, 1, 5, 9, 2, 6]))
    snapshot = list(bars)
    first = [INDICATORS.sma(bars, 7, 4), INDICATORS.rsi(bars, 7, 4), INDICATORS.highest(bars, 7, 4)]
    second = [INDICATORS.sma(bars, 7, 4), INDICATORS.rsi(bars, 7, 4), INDICATORS.highest(bars, 7, 4)]
    assert first == second
    assert list(bars) == snapshot


def test_invalid_index_and_length(make_bars):
    bars = make_bars([1, 2, 3])
    with pytest.raises(ValueError):
        sma(bars, 3, 2)
    with pytest.raises(ValueError):
        indicators.highest(bars, -1, 1)
    with pytest.raises(ValueError):
        sma(bars, 2, 0)


def test_percent_change():
    assert percent_change(110, 100) == 10.0
    assert percent_change(5, 0) == 0.0
