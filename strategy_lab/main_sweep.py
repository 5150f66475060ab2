"""CLI to sweep momentum template parameters and log results to CSV."""

from __future__ import annotations

import argparse
import sys

from loguru import logger

from strategy_lab.config import DEFAULT_TIMEFRAME, STARTING_CAPITAL, configure_logging
from strategy_lab.data.loader import load_bars_csv
from strategy_lab.trade_engine.config import BacktestConfig
from strategy_lab.trade_engine.errors import BacktestError
from strategy_lab.trade_engine.experiments import run_param_sweep


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run parameter sweeps for the momentum template.")
    parser.add_argument("--data", required=True, help="CSV with open/high/low/close/volume and a date column.")
    parser.add_argument("--initial-capital", type=float, default=STARTING_CAPITAL)
    parser.add_argument("--timeframe", default=DEFAULT_TIMEFRAME)
    parser.add_argument("--output", default="sweep_results.csv", help="Path to save CSV results.")
    parser.add_argument(
        "--max-runs",
        type=int,
        default=None,
        help="Optional cap on number of parameter combinations (useful for quick tests).",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging("WARNING")

    try:
        bars = load_bars_csv(args.data)
    except BacktestError as exc:
        logger.error("[sweep] {}: {}", type(exc).__name__, exc)
        return 1

    cfg = BacktestConfig(initial_capital=args.initial_capital, timeframe=args.timeframe)
    results = run_param_sweep(bars, cfg, param_grid=None, max_runs=args.max_runs)
    results.to_csv(args.output, index=False)

    print(f"Completed {len(results)} runs. Saved results to {args.output}")
    if not results.empty:
        print("Top 5 by total return/Sharpe:")
        print(results.head().to_string(index=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
