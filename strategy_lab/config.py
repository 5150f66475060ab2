"""Global configuration for the strategy lab."""

from __future__ import annotations

import os
import sys
from typing import Dict, Optional

from loguru import logger

STARTING_CAPITAL = 10000.0
RISK_FREE_RATE = 0.02  # annualized
DEFAULT_TIMEFRAME = "1Day"
TRADING_DAYS = 252
DEFAULT_LOG_LEVEL = "INFO"

# Bars per trading day, keyed by bar granularity. Intraday entries assume a
# 24-hour session to match the brokerage timeframes the UI offers.
TIMEFRAME_BARS_PER_DAY: Dict[str, float] = {
    "1Min": 24 * 60,
    "5Min": 24 * 12,
    "15Min": 24 * 4,
    "30Min": 24 * 2,
    "1Hour": 24,
    "4Hour": 6,
    "1Day": 1,
}

TIMEFRAME_PERIODS_PER_YEAR: Dict[str, float] = {
    **{name: TRADING_DAYS * bars for name, bars in TIMEFRAME_BARS_PER_DAY.items()},
    "1Week": 52,
}


def periods_per_year(timeframe: Optional[str]) -> float:
    """Return annualization periods for a timeframe, defaulting to daily bars."""
    return TIMEFRAME_PERIODS_PER_YEAR.get(timeframe or DEFAULT_TIMEFRAME, TRADING_DAYS)


def bars_per_day(timeframe: Optional[str]) -> float:
    return periods_per_year(timeframe) / TRADING_DAYS


def configure_logging(level: Optional[str] = None) -> None:
    """Install a single stderr sink. Only entrypoints should call this."""
    log_level = (level or os.getenv("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    logger.remove()
    logger.add(sys.stderr, level=log_level, backtrace=False, diagnose=False)
