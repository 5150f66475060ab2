import pandas as pd
import pytest

from strategy_lab.data.loader import bars_from_frame, load_bars_csv
from strategy_lab.trade_engine.errors import EmptyDatasetError, InvalidBarError


def test_bars_from_frame_matches_columns_case_insensitively(price_frame):
    bars = bars_from_frame(price_frame)
    assert len(bars) == len(price_frame)
    assert bars[0].close == price_frame["Close"].iloc[0]
    assert bars[0].timestamp == price_frame["Date"].iloc[0]
    assert isinstance(bars, tuple)


def test_bars_from_frame_uses_datetime_index(price_frame):
    frame = price_frame.set_index("Date")
    bars = bars_from_frame(frame)
    assert bars[-1].timestamp == frame.index[-1]


def test_bars_from_frame_rejects_missing_or_nan_fields(price_frame):
    with pytest.raises(InvalidBarError):
        bars_from_frame(price_frame.drop(columns=["Volume"]))

    broken = price_frame.copy()
    broken.loc[3, "High"] = float("nan")
    with pytest.raises(InvalidBarError) as info:
        bars_from_frame(broken)
    assert info.value.index == 3


def test_empty_frame_is_an_empty_dataset(price_frame):
    with pytest.raises(EmptyDatasetError):
        bars_from_frame(price_frame.iloc[0:0])


def test_load_bars_csv_sorts_by_date(tmp_path, price_frame):
    path = tmp_path / "bars.csv"
    price_frame.iloc[::-1].to_csv(path, index=False)

    bars = load_bars_csv(path)

    assert len(bars) == len(price_frame)
    assert bars[0].timestamp == pd.Timestamp(price_frame["Date"].iloc[0])
    assert bars[0].close == pytest.approx(price_frame["Close"].iloc[0])
