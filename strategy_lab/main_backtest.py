"""CLI entrypoint to backtest a strategy script against a CSV of bars."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger

from strategy_lab.api import BacktestResult, run_backtest
from strategy_lab.analysis.metrics import plot_equity_curve
from strategy_lab.config import DEFAULT_LOG_LEVEL, DEFAULT_TIMEFRAME, STARTING_CAPITAL, configure_logging
from strategy_lab.data.loader import load_bars_csv
from strategy_lab.trade_engine.config import BacktestConfig, CommissionConfig
from strategy_lab.trade_engine.errors import BacktestError
from strategy_lab.trade_engine.templates import STRATEGY_TEMPLATES


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Backtest a single-position strategy script.")
    parser.add_argument("--data", required=True, help="CSV with open/high/low/close/volume and a date column.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--script", help="Path to a Python file defining strategy(ctx).")
    source.add_argument("--template", choices=sorted(STRATEGY_TEMPLATES), help="Use a built-in strategy.")
    parser.add_argument("--initial-capital", type=float, default=STARTING_CAPITAL, help="Starting cash.")
    parser.add_argument("--timeframe", default=DEFAULT_TIMEFRAME, help="Bar granularity, e.g. 1Day, 1Hour.")
    parser.add_argument("--commission-per-trade", type=float, default=0.0, help="Flat fee charged on every fill.")
    parser.add_argument("--commission-pct", type=float, default=0.0, help="Fee as a fraction of traded notional.")
    parser.add_argument("--plot", default=None, help="Optional path to save an equity curve PNG.")
    parser.add_argument("--log-level", default=DEFAULT_LOG_LEVEL, help="Loguru level for diagnostics.")
    return parser.parse_args(argv)


def print_report(result: BacktestResult) -> None:
    m = result.metrics
    print(f"Bars: {m.bar_count}  Trades: {m.total_trades}")
    print(f"Capital: {m.starting_capital:.2f} -> {m.ending_capital:.2f}")
    print(f"Total return: {m.total_return:.2f}%  CAGR: {m.cagr:.2f}%")
    print(f"Win rate: {m.win_rate:.2f}%  Avg trade: {m.average_return:.2f}%")
    print(f"Max drawdown: {m.max_drawdown:.2f}%")
    print(f"Sharpe: {m.sharpe:.2f}  Sortino: {m.sortino:.2f}")
    print(f"Exposure: {m.exposure:.2f}%  Avg hold: {m.avg_hold_days:.2f} days")
    if m.total_commission:
        print(f"Commission paid: {m.total_commission:.2f}")
    if result.trades:
        last = result.trades[-1]
        print(
            f"Last trade: {last.side} {last.entry_date} -> {last.exit_date}, "
            f"pnl={last.profit:.2f} ({last.return_pct:.2f}%), note={last.exit_note}"
        )

    coverage = result.coverage
    print(f"Signal coverage: {coverage.coverage_pct:.0f}%")
    for action, lines in sorted(coverage.uncovered.items()):
        print(f"  '{action}' never fired (lines {', '.join(map(str, lines))})")


def run(args: argparse.Namespace) -> BacktestResult:
    if args.template:
        script = STRATEGY_TEMPLATES[args.template].code
    else:
        script = Path(args.script).read_text()
    bars = load_bars_csv(args.data)
    cfg = BacktestConfig(
        initial_capital=args.initial_capital,
        timeframe=args.timeframe,
        commission=CommissionConfig(per_trade=args.commission_per_trade, percentage=args.commission_pct),
    )
    return run_backtest(script, bars, config=cfg)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level)
    try:
        result = run(args)
    except BacktestError as exc:
        logger.error("[backtest] {}: {}", type(exc).__name__, exc)
        return 1

    print_report(result)
    if args.plot:
        plt = plot_equity_curve(result.equity_curve, result.metrics.starting_capital)
        plt.savefig(args.plot)
        plt.close()
        print(f"Saved equity curve to {args.plot}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
