"""Parameter sweep utilities for the parameterised momentum template."""

from __future__ import annotations

from itertools import product
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd
from loguru import logger

from strategy_lab.api import run_backtest
from strategy_lab.trade_engine.config import BacktestConfig
from strategy_lab.trade_engine.errors import BacktestError
from strategy_lab.trade_engine.templates import build_parameterised_strategy
from strategy_lab.trade_engine.types import Bar

METRIC_COLUMNS = ["total_return", "sharpe", "sortino", "max_drawdown", "win_rate", "total_trades", "ending_capital"]


def _default_param_grid() -> Dict[str, List[Any]]:
    """Return a compact default sweep grid."""
    return {
        "fast_length": [5, 8, 12],
        "slow_length": [21, 34],
        "exit_rsi": [65.0, 70.0],
        "stop_loss": [2.0, 3.0],
        "take_profit": [6.0, 9.0],
    }


def run_param_sweep(
    bars: Sequence[Bar],
    base_config: Optional[BacktestConfig] = None,
    param_grid: Optional[Dict[str, List[Any]]] = None,
    max_runs: Optional[int] = None,
) -> pd.DataFrame:
    """Sweep over template parameters and collect performance metrics.

    Args:
        bars: bar series shared by every run.
        base_config: BacktestConfig applied to each run.
        param_grid: Dict of parameter -> list of values. Uses defaults if None.
        max_runs: Optional cap on number of combinations (for quick smoke tests).

    Returns:
        DataFrame with one row per run, including parameters and metrics.
    """
    cfg = base_config or BacktestConfig()
    grid = param_grid or _default_param_grid()
    keys = list(grid.keys())
    combos = list(product(*[grid[k] for k in keys]))
    if max_runs is not None:
        combos = combos[:max_runs]

    rows: List[Dict[str, Any]] = []
    for idx, values in enumerate(combos):
        params = dict(zip(keys, values))
        if params.get("fast_length", 0) >= params.get("slow_length", float("inf")):
            rows.append({"run": idx, **params, "error": "fast_length must be below slow_length"})
            continue

        try:
            result = run_backtest(build_parameterised_strategy(**params), bars, config=cfg)
        except BacktestError as exc:
            logger.warning("[sweep] run {} failed: {}", idx, exc)
            rows.append({"run": idx, **params, "error": str(exc)})
            continue

        metrics = {col: getattr(result.metrics, col) for col in METRIC_COLUMNS}
        rows.append({"run": idx, **params, **metrics, "error": ""})

    result_df = pd.DataFrame(rows)
    if not result_df.empty:
        sort_cols = [c for c in ["total_return", "sharpe"] if c in result_df.columns]
        if sort_cols:
            result_df.sort_values(by=sort_cols, ascending=False, inplace=True, na_position="last")

        col_order = ["run"] + keys + METRIC_COLUMNS + ["error"]
        result_df = result_df[[col for col in col_order if col in result_df.columns]]
    return result_df
