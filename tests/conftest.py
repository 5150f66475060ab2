import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

from strategy_lab.trade_engine.types import Bar


def _bars(closes, start="2024-01-01"):
    dates = pd.date_range(start, periods=len(closes), freq="D")
    return [
        Bar(
            open=close - 0.5,
            high=close + 1.0,
            low=close - 1.0,
            close=float(close),
            volume=1_000_000,
            timestamp=date,
        )
        for close, date in zip(closes, dates)
    ]


@pytest.fixture
def make_bars():
    return _bars


@pytest.fixture
def oscillating_bars():
    # Up five bars, down five bars, repeated, so crossovers and RSI both move.
    closes = [100.0]
    for i in range(1, 200):
        closes.append(closes[-1] + (1.0 if (i % 10) < 5 else -1.0) + 0.05)
    return _bars(closes)


@pytest.fixture
def price_frame(oscillating_bars):
    return pd.DataFrame(
        {
            "Date": [bar.timestamp for bar in oscillating_bars],
            "Open": [bar.open for bar in oscillating_bars],
            "High": [bar.high for bar in oscillating_bars],
            "Low": [bar.low for bar in oscillating_bars],
            "Close": [bar.close for bar in oscillating_bars],
            "Volume": [bar.volume for bar in oscillating_bars],
        }
    )
