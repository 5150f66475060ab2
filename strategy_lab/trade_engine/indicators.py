"""Indicator helpers for strategy scripts.

Every function is a pure function of ``(series, index, length)``: it reads the
trailing window ending at ``index`` and returns ``None`` until enough history
exists. Nothing is cached, so strategies may call them on every bar.
"""

from __future__ import annotations

from operator import attrgetter
from typing import Any, Callable, Optional, Sequence, Union

import numpy as np

Accessor = Union[str, Callable[[Any], float]]


def _check_index(series: Sequence, index: int) -> None:
    if not 0 <= index < len(series):
        raise ValueError(f"index {index} is outside a series of {len(series)} bars")


def _check_length(length: int) -> None:
    if length < 1:
        raise ValueError(f"length must be at least 1, got {length}")


def _window(series: Sequence, index: int, length: int, accessor: Accessor) -> np.ndarray:
    getter = attrgetter(accessor) if isinstance(accessor, str) else accessor
    start = index - length + 1
    return np.fromiter((getter(series[i]) for i in range(start, index + 1)), dtype=float, count=length)


def sma(series: Sequence, index: int, length: int) -> Optional[float]:
    """Simple moving average of closes."""
    _check_index(series, index)
    _check_length(length)
    if index + 1 < length:
        return None
    return round(float(_window(series, index, length, "close").mean()), 4)


def ema(series: Sequence, index: int, length: int) -> Optional[float]:
    """Exponential moving average seeded from the first close in the window."""
    _check_index(series, index)
    if length <= 1:
        return round(float(series[index].close), 4)
    if index + 1 < length:
        return None

    smoothing = 2 / (length + 1)
    closes = _window(series, index, length, "close")
    value = closes[0]
    for close in closes[1:]:
        value = close * smoothing + value * (1 - smoothing)
    return round(float(value), 4)


def rsi(series: Sequence, index: int, length: int) -> Optional[float]:
    """Compute RSI using Wilder's smoothing."""
    _check_index(series, index)
    _check_length(length)
    if index < length:
        return None

    closes = _window(series, index, index + 1, "close")
    delta = np.diff(closes)
    gain = np.where(delta > 0, delta, 0.0)
    loss = np.where(delta < 0, -delta, 0.0)

    avg_gain = gain[:length].mean()
    avg_loss = loss[:length].mean()
    for g, l in zip(gain[length:], loss[length:]):
        avg_gain = (avg_gain * (length - 1) + g) / length
        avg_loss = (avg_loss * (length - 1) + l) / length

    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return round(float(100 - 100 / (1 + rs)), 2)


def highest(series: Sequence, index: int, length: int, accessor: Accessor = "high") -> Optional[float]:
    _check_index(series, index)
    _check_length(length)
    if index + 1 < length:
        return None
    return round(float(_window(series, index, length, accessor).max()), 4)


def lowest(series: Sequence, index: int, length: int, accessor: Accessor = "low") -> Optional[float]:
    _check_index(series, index)
    _check_length(length)
    if index + 1 < length:
        return None
    return round(float(_window(series, index, length, accessor).min()), 4)


def percent_change(current: float, previous: float) -> float:
    if not previous:
        return 0.0
    return round((current - previous) / previous * 100, 2)


class IndicatorLibrary:
    """Capability object injected into every strategy context."""

    __slots__ = ()

    sma = staticmethod(sma)
    ema = staticmethod(ema)
    rsi = staticmethod(rsi)
    highest = staticmethod(highest)
    lowest = staticmethod(lowest)
    percent_change = staticmethod(percent_change)


INDICATORS = IndicatorLibrary()
