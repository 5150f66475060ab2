"""Single-position trade engine driven by user strategy scripts."""

from strategy_lab.trade_engine.config import BacktestConfig, CommissionConfig
from strategy_lab.trade_engine.errors import (
    BacktestError,
    CompileError,
    EmptyDatasetError,
    InsufficientFundsError,
    InvalidBarError,
    StrategyRuntimeError,
)
from strategy_lab.trade_engine.indicators import IndicatorLibrary
from strategy_lab.trade_engine.sandbox import CallableStrategy, compile_strategy
from strategy_lab.trade_engine.simulation import simulate
from strategy_lab.trade_engine.trades import aggregate_trades
from strategy_lab.trade_engine.types import Bar, Decision, EquityPoint, Trade, TradeEvent

__all__ = [
    "BacktestConfig",
    "CommissionConfig",
    "BacktestError",
    "CompileError",
    "EmptyDatasetError",
    "InsufficientFundsError",
    "InvalidBarError",
    "StrategyRuntimeError",
    "IndicatorLibrary",
    "CallableStrategy",
    "compile_strategy",
    "simulate",
    "aggregate_trades",
    "Bar",
    "Decision",
    "EquityPoint",
    "Trade",
    "TradeEvent",
]
