"""Performance metrics and visualization helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from loguru import logger

from strategy_lab.config import RISK_FREE_RATE, bars_per_day, periods_per_year
from strategy_lab.trade_engine.types import EquityPoint, Trade, TradeEvent


@dataclass(frozen=True)
class Metrics:
    starting_capital: float
    ending_capital: float
    total_return: float
    total_trades: int
    winning_trades: int
    win_rate: float
    average_return: float
    max_drawdown: float
    cagr: float
    sharpe: float
    sortino: float
    exposure: float
    avg_hold_days: float
    total_commission: float
    periods_per_year: float
    bar_count: int


def equity_series(equity_curve: Sequence[EquityPoint]) -> pd.Series:
    return pd.Series([point.equity for point in equity_curve], dtype=float)


def compute_total_return(final_equity: float, initial_capital: float) -> float:
    if not initial_capital:
        return 0.0
    return (final_equity - initial_capital) / initial_capital * 100


def compute_returns(equity: pd.Series) -> pd.Series:
    """Per-bar simple returns, skipping steps that start from non-positive equity."""
    prev = equity.shift(1)
    valid = prev > 0
    if (~valid).iloc[1:].any():
        logger.warning("[metrics] skipped {} returns with non-positive prior equity", int((~valid).iloc[1:].sum()))
    return ((equity - prev) / prev)[valid].reset_index(drop=True)


def compute_max_drawdown(equity: pd.Series, initial_capital: float) -> float:
    """Worst peak-to-trough decline in percent (<= 0); the peak starts at initial capital."""
    if equity.empty:
        return 0.0
    running_peak = equity.cummax().clip(lower=initial_capital)
    drawdown = ((equity - running_peak) / running_peak * 100).where(running_peak > 0, 0.0)
    return float(min(drawdown.min(), 0.0))


def compute_cagr(final_equity: float, initial_capital: float, bar_count: int, periods: float) -> float:
    years = bar_count / periods if periods else 0.0
    ratio = final_equity / initial_capital if initial_capital else 0.0
    if years > 0 and ratio > 0:
        return (ratio ** (1 / years) - 1) * 100
    return compute_total_return(final_equity, initial_capital)


def _annualized_ratio(returns: pd.Series, deviation: float, periods: float, risk_free_rate: float) -> float:
    if returns.empty or not np.isfinite(deviation) or deviation == 0:
        return 0.0
    return float((returns.mean() * periods - risk_free_rate) / (deviation * math.sqrt(periods)))


def compute_sharpe(returns: pd.Series, periods: float, risk_free_rate: float = RISK_FREE_RATE) -> float:
    return _annualized_ratio(returns, float(returns.std()), periods, risk_free_rate)


def compute_sortino(returns: pd.Series, periods: float, risk_free_rate: float = RISK_FREE_RATE) -> float:
    downside = float(returns[returns < 0].std())
    return _annualized_ratio(returns, downside, periods, risk_free_rate)


def compute_exposure(trades: Sequence[Trade], bar_count: int) -> float:
    if not bar_count:
        return 0.0
    return sum(trade.duration_bars for trade in trades) / bar_count * 100


def compute_metrics(
    equity_curve: Sequence[EquityPoint],
    trades: Sequence[Trade],
    initial_capital: float,
    timeframe: Optional[str] = None,
    bar_count: Optional[int] = None,
    risk_free_rate: float = RISK_FREE_RATE,
    events: Iterable[TradeEvent] = (),
) -> Metrics:
    """Summarize a run.

    ``bar_count`` is the number of input bars; it defaults to the curve length,
    which over-counts by one when the run ended with a forced liquidation.
    """
    periods = periods_per_year(timeframe)
    equity = equity_series(equity_curve)
    if bar_count is None:
        bar_count = len(equity_curve)
    final_equity = float(equity.iloc[-1]) if not equity.empty else initial_capital

    total_trades = len(trades)
    wins = sum(1 for trade in trades if trade.profit > 0)
    durations = [trade.duration_bars for trade in trades]
    returns = compute_returns(equity)

    total_return = compute_total_return(final_equity, initial_capital)
    max_dd = compute_max_drawdown(equity, initial_capital)
    cagr = compute_cagr(final_equity, initial_capital, bar_count, periods)
    sharpe = compute_sharpe(returns, periods, risk_free_rate)
    sortino = compute_sortino(returns, periods, risk_free_rate)

    logger.debug(
        "[metrics] n={} tot={:.2f} maxDD={:.2f} cagr={:.2f} sharpe={:.3f} sortino={:.3f} trades={}",
        bar_count,
        total_return,
        max_dd,
        cagr,
        sharpe,
        sortino,
        total_trades,
    )

    return Metrics(
        starting_capital=round(initial_capital, 2),
        ending_capital=round(final_equity, 2),
        total_return=round(total_return, 2),
        total_trades=total_trades,
        winning_trades=wins,
        win_rate=round(wins / total_trades * 100, 2) if total_trades else 0.0,
        average_return=round(float(np.mean([t.return_pct for t in trades])), 2) if total_trades else 0.0,
        max_drawdown=round(max_dd, 2),
        cagr=round(cagr, 2),
        sharpe=round(sharpe, 2),
        sortino=round(sortino, 2),
        exposure=round(compute_exposure(trades, bar_count), 2),
        avg_hold_days=round(float(np.mean(durations)) / bars_per_day(timeframe), 2) if durations else 0.0,
        total_commission=round(sum(event.commission for event in events), 2),
        periods_per_year=periods,
        bar_count=bar_count,
    )


def plot_equity_curve(equity_curve: Sequence[EquityPoint], initial_capital: Optional[float] = None, title: str = "Equity Curve"):
    """Plot the equity curve (and the starting capital as a reference line)."""
    equity = equity_series(equity_curve)
    plt.figure(figsize=(10, 6))
    plt.plot([point.index for point in equity_curve], equity, label="Strategy")
    if initial_capital is not None:
        plt.axhline(initial_capital, color="grey", linestyle="--", alpha=0.6, label="Starting capital")
    plt.legend()
    plt.title(title)
    plt.xlabel("Bar")
    plt.ylabel("Equity")
    plt.tight_layout()
    return plt
