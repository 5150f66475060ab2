import numpy as np
import pandas as pd
import pytest

from strategy_lab.analysis.metrics import (
    compute_cagr,
    compute_max_drawdown,
    compute_metrics,
    compute_returns,
    compute_sharpe,
    compute_sortino,
    plot_equity_curve,
)
from strategy_lab.config import bars_per_day, periods_per_year
from strategy_lab.trade_engine.types import EquityPoint, Trade


def curve(values):
    return [EquityPoint(index=i, time=i, equity=float(v)) for i, v in enumerate(values)]


def trade(profit, return_pct, duration):
    return Trade(
        entry_date=0,
        entry_price=100.0,
        exit_date=duration,
        exit_price=100.0 + profit,
        size=1.0,
        side="long",
        profit=profit,
        return_pct=return_pct,
        duration_bars=duration,
    )


def test_max_drawdown_is_negative_percent_from_running_peak():
    equity = pd.Series([100.0, 120.0, 90.0])
    assert compute_max_drawdown(equity, 100.0) == pytest.approx(-25.0)


def test_max_drawdown_peak_starts_at_initial_capital():
    equity = pd.Series([90.0, 95.0])
    assert compute_max_drawdown(equity, 100.0) == pytest.approx(-10.0)
    assert compute_max_drawdown(pd.Series([100.0, 110.0]), 100.0) == 0.0


def test_trade_statistics():
    trades = [trade(10, 10.0, 2), trade(-5, -5.0, 4), trade(0, 0.0, 3)]
    metrics = compute_metrics(curve([100, 105, 100, 110]), trades, 100.0, timeframe="1Day", bar_count=4)

    assert metrics.total_trades == 3
    assert metrics.winning_trades == 1
    assert metrics.win_rate == pytest.approx(33.33)
    assert metrics.average_return == pytest.approx(1.67)
    assert metrics.exposure == pytest.approx(225.0)
    assert metrics.avg_hold_days == pytest.approx(3.0)
    assert metrics.ending_capital == 110.0
    assert metrics.total_return == pytest.approx(10.0)


def test_no_trades_gives_zero_ratios():
    metrics = compute_metrics(curve([100, 100, 100]), [], 100.0)
    assert metrics.win_rate == 0.0
    assert metrics.average_return == 0.0
    assert metrics.sharpe == 0.0
    assert metrics.sortino == 0.0
    assert metrics.max_drawdown == 0.0
    assert metrics.cagr == pytest.approx(0.0)


def test_cagr_annualizes_and_falls_back_to_total_return():
    # 252 daily bars = one year, so CAGR equals total return.
    assert compute_cagr(110.0, 100.0, 252, 252) == pytest.approx(10.0)
    assert compute_cagr(121.0, 100.0, 504, 252) == pytest.approx(10.0)
    assert compute_cagr(110.0, 100.0, 0, 252) == pytest.approx(10.0)
    assert compute_cagr(-10.0, 100.0, 252, 252) == pytest.approx(-110.0)


def test_sharpe_and_sortino_follow_annualized_formula():
    returns = pd.Series([0.01, -0.02, 0.03, -0.01, 0.02])
    periods = 252
    expected_sharpe = (returns.mean() * periods - 0.02) / (returns.std() * np.sqrt(periods))
    downside = returns[returns < 0].std()
    expected_sortino = (returns.mean() * periods - 0.02) / (downside * np.sqrt(periods))

    assert compute_sharpe(returns, periods) == pytest.approx(expected_sharpe)
    assert compute_sortino(returns, periods) == pytest.approx(expected_sortino)
    assert compute_sortino(pd.Series([0.01, 0.02]), periods) == 0.0


def test_returns_skip_non_positive_prior_equity():
    returns = compute_returns(pd.Series([100.0, 0.0, 50.0, 55.0]))
    assert list(returns) == pytest.approx([-1.0, 0.1])


def test_timeframe_tables():
    assert periods_per_year("1Day") == 252
    assert periods_per_year("1Hour") == 252 * 24
    assert periods_per_year("mystery") == 252
    assert bars_per_day("4Hour") == 6
    assert bars_per_day("mystery") == 1


def test_hourly_bars_hold_time_in_days():
    metrics = compute_metrics(curve([100, 101]), [trade(1, 1.0, 48)], 100.0, timeframe="1Hour", bar_count=96)
    assert metrics.avg_hold_days == pytest.approx(2.0)
    assert metrics.periods_per_year == 252 * 24


def test_plot_equity_curve_returns_pyplot():
    plt = plot_equity_curve(curve([100, 101, 99]), initial_capital=100)
    assert plt.gca().get_title() == "Equity Curve"
    plt.close("all")
