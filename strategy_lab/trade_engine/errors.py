"""Typed failures raised by the trade engine. All of them abort the run."""

from __future__ import annotations

from typing import Any, Optional


class BacktestError(Exception):
    """Base class for every terminal backtest failure."""


class CompileError(BacktestError):
    """Strategy text is malformed or does not honour the strategy contract."""

    def __init__(self, message: str, lineno: Optional[int] = None):
        self.lineno = lineno
        if lineno is not None:
            message = f"{message} (line {lineno})"
        super().__init__(message)


class StrategyRuntimeError(BacktestError):
    """The strategy raised while deciding on a specific bar."""

    def __init__(self, index: int, time: Any, message: str):
        self.index = index
        self.time = time
        super().__init__(f"Error while executing strategy on bar {index} ({time}): {message}")


class InsufficientFundsError(BacktestError):
    """A buy decision costs more than the cash available on that bar."""

    def __init__(self, index: int, time: Any, required: float, available: float):
        self.index = index
        self.time = time
        self.required = required
        self.available = available
        self.shortfall = round(required - available, 2)
        super().__init__(
            f"Buy signal on bar {index} ({time}) requires {required:.2f} "
            f"but only {available:.2f} is available (short by {self.shortfall:.2f})."
        )


class EmptyDatasetError(BacktestError, ValueError):
    """No bars were supplied."""


class InvalidBarError(BacktestError, ValueError):
    """A bar is missing a field or carries a non-finite value."""

    def __init__(self, index: int, message: str):
        self.index = index
        super().__init__(f"Invalid bar at index {index}: {message}")
