"""Load OHLCV bars from CSV files, DataFrames, or Yahoo Finance."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple, Union

import pandas as pd

from strategy_lab.trade_engine.types import PRICE_FIELDS, TIME_KEYS, Bar, normalize_bars


def _standardize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    if isinstance(df.columns, pd.MultiIndex):
        # yfinance returns (field, ticker) columns even for a single symbol
        df.columns = df.columns.get_level_values(0)
    df.columns = [str(col).strip().lower().replace(" ", "_") for col in df.columns]
    return df


def bars_from_frame(df: pd.DataFrame) -> Tuple[Bar, ...]:
    """Convert an OHLCV DataFrame into validated bars.

    Column names are matched case-insensitively. Timestamps come from a
    timestamp/time/date column, else from a DatetimeIndex, else the row position.
    """
    frame = _standardize_columns(df)
    time_col = next((key for key in TIME_KEYS if key in frame.columns), None)
    if time_col is None and isinstance(frame.index, pd.DatetimeIndex):
        frame = frame.assign(timestamp=frame.index)
        time_col = "timestamp"

    columns = [col for col in PRICE_FIELDS if col in frame.columns]
    if time_col:
        columns.append(time_col)
    records = frame[columns].to_dict("records")
    if time_col and time_col != "timestamp":
        for record in records:
            record["timestamp"] = record.pop(time_col)
    return normalize_bars(records)


def load_bars_csv(path: Union[str, Path]) -> Tuple[Bar, ...]:
    """Read bars from a CSV with open/high/low/close/volume and a time column."""
    df = pd.read_csv(path)
    time_col = next((col for col in df.columns if str(col).strip().lower() in TIME_KEYS), None)
    if time_col is not None:
        df[time_col] = pd.to_datetime(df[time_col])
        df = df.sort_values(time_col, kind="stable").reset_index(drop=True)
    return bars_from_frame(df)


def download_bars(
    symbol: str,
    start_date: str,
    end_date: Optional[str] = None,
    interval: str = "1d",
) -> Tuple[Bar, ...]:
    """Download OHLCV for ``symbol`` using yfinance."""
    try:
        import yfinance as yf
    except ImportError as exc:  # pragma: no cover - import guard
        raise RuntimeError("yfinance is required to download data") from exc

    data = yf.download(
        tickers=symbol,
        start=start_date,
        end=end_date,
        interval=interval,
        auto_adjust=False,
        progress=False,
    )
    data.index = pd.to_datetime(data.index)
    data.sort_index(inplace=True)
    return bars_from_frame(data.dropna(subset=[c for c in data.columns if "Close" in str(c)]))
