"""Public Python API: compile a strategy, simulate it, and report on the run."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Iterable, Optional, Tuple, Union

import pandas as pd
from loguru import logger

from strategy_lab.analysis.coverage import Coverage, analyze_coverage
from strategy_lab.analysis.metrics import Metrics, compute_metrics
from strategy_lab.config import DEFAULT_TIMEFRAME, STARTING_CAPITAL
from strategy_lab.data.loader import bars_from_frame
from strategy_lab.trade_engine.config import BacktestConfig, CommissionConfig
from strategy_lab.trade_engine.sandbox import ScriptStrategy, Strategy, compile_strategy
from strategy_lab.trade_engine.simulation import simulate
from strategy_lab.trade_engine.trades import aggregate_trades
from strategy_lab.trade_engine.types import Bar, EquityPoint, Trade, TradeEvent, normalize_bars


@dataclass(frozen=True)
class BacktestResult:
    dataset: Tuple[Bar, ...]
    events: Tuple[TradeEvent, ...]
    trades: Tuple[Trade, ...]
    equity_curve: Tuple[EquityPoint, ...]
    metrics: Metrics
    coverage: Coverage

    def to_dict(self) -> Dict[str, Any]:
        coverage = asdict(self.coverage)
        coverage["exercised"] = sorted(self.coverage.exercised)
        coverage["coverage_pct"] = self.coverage.coverage_pct
        return {
            "dataset": [asdict(bar) for bar in self.dataset],
            "trades": [asdict(trade) for trade in self.trades],
            "equity_curve": [asdict(point) for point in self.equity_curve],
            "metrics": asdict(self.metrics),
            "coverage": coverage,
        }

    def equity_frame(self) -> pd.DataFrame:
        return pd.DataFrame.from_records([asdict(p) for p in self.equity_curve], columns=["index", "time", "equity"])

    def trades_frame(self) -> pd.DataFrame:
        return pd.DataFrame.from_records([asdict(t) for t in self.trades], columns=[f.name for f in fields(Trade)])


def run_backtest(
    script: Union[str, Strategy],
    bars: Union[pd.DataFrame, Iterable[Any]],
    initial_capital: float = STARTING_CAPITAL,
    timeframe: str = DEFAULT_TIMEFRAME,
    commission: Optional[CommissionConfig] = None,
    config: Optional[BacktestConfig] = None,
) -> BacktestResult:
    """Run the whole pipeline: normalize -> compile -> simulate -> aggregate -> analyze.

    Args:
        script: strategy source text, or an object exposing ``decide(ctx)``.
        bars: Bar objects, OHLCV mappings, or a DataFrame of OHLCV columns.
        initial_capital: starting cash.
        timeframe: bar granularity used to annualize metrics (e.g. "1Day").
        commission: per-fill costs (optional).
        config: full BacktestConfig; overrides the three arguments above.

    Returns:
        BacktestResult. Any failure raises a BacktestError subclass instead;
        nothing partial is returned.
    """
    cfg = config or BacktestConfig(
        initial_capital=initial_capital,
        timeframe=timeframe,
        commission=commission or CommissionConfig(),
    )
    if isinstance(bars, pd.DataFrame):
        bars = bars_from_frame(bars)
    dataset = normalize_bars(bars)

    strategy = compile_strategy(script) if isinstance(script, str) else script
    sim = simulate(strategy, dataset, cfg)
    ledger = aggregate_trades(sim.events)

    metrics = compute_metrics(
        sim.equity_curve,
        ledger.trades,
        cfg.initial_capital,
        timeframe=cfg.timeframe,
        bar_count=len(dataset),
        risk_free_rate=cfg.risk_free_rate,
        events=sim.events,
    )
    source = strategy.source if isinstance(strategy, ScriptStrategy) else None
    coverage = analyze_coverage(source, ledger.actions_hit)

    logger.debug(
        "[backtest] {} bars, {} trades, total return {:.2f}%",
        len(dataset),
        metrics.total_trades,
        metrics.total_return,
    )
    return BacktestResult(
        dataset=dataset,
        events=sim.events,
        trades=tuple(ledger.trades),
        equity_curve=sim.equity_curve,
        metrics=metrics,
        coverage=coverage,
    )
