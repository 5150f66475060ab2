"""Dataclasses used by the trade engine."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Tuple, Union

from strategy_lab.trade_engine.errors import EmptyDatasetError, InvalidBarError

HOLD = "hold"
BUY = "buy"
SELL = "sell"
EXIT = "exit"
ACTIONS = (HOLD, BUY, SELL, EXIT)

LONG = "long"
SHORT = "short"

ENTRY = "entry"
EXIT_EVENT = "exit"

TRIGGER_STRATEGY = "strategy"
TRIGGER_PROTECTIVE = "protective"
TRIGGER_END_OF_SERIES = "end_of_series"

PRICE_FIELDS = ("open", "high", "low", "close", "volume")
TIME_KEYS = ("timestamp", "time", "date")


@dataclass(frozen=True)
class Bar:
    open: float
    high: float
    low: float
    close: float
    volume: float
    timestamp: Any = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], index: int) -> "Bar":
        values = {}
        for name in PRICE_FIELDS:
            if name not in raw:
                raise InvalidBarError(index, f"missing '{name}'")
            try:
                value = float(raw[name])
            except (TypeError, ValueError):
                raise InvalidBarError(index, f"'{name}' is not numeric: {raw[name]!r}") from None
            if not math.isfinite(value):
                raise InvalidBarError(index, f"'{name}' is not finite: {value}")
            values[name] = value
        timestamp = next((raw[key] for key in TIME_KEYS if raw.get(key) is not None), index)
        return cls(timestamp=timestamp, **values)


def normalize_bars(raw_bars: Iterable[Union[Bar, Mapping[str, Any]]]) -> Tuple[Bar, ...]:
    """Validate caller-supplied bars and freeze them into a tuple."""
    bars = []
    for idx, raw in enumerate(raw_bars or ()):
        if isinstance(raw, Bar):
            raw = {"timestamp": raw.timestamp, **{name: getattr(raw, name) for name in PRICE_FIELDS}}
        bars.append(Bar.from_mapping(raw, idx))
    if not bars:
        raise EmptyDatasetError("No market data provided to the backtesting engine.")
    return tuple(bars)


def _coerce_size(value: Any) -> float:
    try:
        size = float(value)
    except (TypeError, ValueError):
        return 1.0
    if not math.isfinite(size) or size <= 0:
        return 1.0
    return size


def _coerce_pct(value: Any) -> Optional[float]:
    try:
        pct = float(value)
    except (TypeError, ValueError):
        return None
    return pct if math.isfinite(pct) and pct > 0 else None


@dataclass(frozen=True)
class Decision:
    action: str = HOLD
    size: float = 1.0
    note: Optional[str] = None
    stop_loss: Optional[float] = None  # percent below/above entry
    take_profit: Optional[float] = None

    @classmethod
    def coerce(cls, raw: Any) -> "Decision":
        """Turn whatever a strategy returned into a Decision; junk becomes hold."""
        if isinstance(raw, Decision):
            return raw
        if isinstance(raw, str):
            raw = {"action": raw}
        if not isinstance(raw, Mapping):
            return cls()
        action = raw.get("action")
        action = action.strip().lower() if isinstance(action, str) else HOLD
        if action not in ACTIONS:
            action = HOLD
        note = raw.get("note")
        return cls(
            action=action,
            size=_coerce_size(raw.get("size", 1)),
            note=str(note) if note is not None else None,
            stop_loss=_coerce_pct(raw.get("stop_loss")),
            take_profit=_coerce_pct(raw.get("take_profit")),
        )


# Position is a tagged variant: Flat | Long | Short.
@dataclass(frozen=True)
class Flat:
    signed_size = 0.0
    entry_price = 0.0
    side = None
    stop_price = None
    target_price = None


@dataclass(frozen=True)
class _OpenPosition:
    entry_price: float
    size: float
    entry_index: int
    stop_price: Optional[float] = None
    target_price: Optional[float] = None


@dataclass(frozen=True)
class Long(_OpenPosition):
    side = LONG

    @property
    def signed_size(self) -> float:
        return self.size

    def protective_exit(self, price: float) -> Optional[str]:
        if self.stop_price is not None and price <= self.stop_price:
            return "Stop-loss triggered"
        if self.target_price is not None and price >= self.target_price:
            return "Take-profit triggered"
        return None


@dataclass(frozen=True)
class Short(_OpenPosition):
    side = SHORT

    @property
    def signed_size(self) -> float:
        return -self.size

    def protective_exit(self, price: float) -> Optional[str]:
        if self.stop_price is not None and price >= self.stop_price:
            return "Stop-loss triggered"
        if self.target_price is not None and price <= self.target_price:
            return "Take-profit triggered"
        return None


Position = Union[Flat, Long, Short]
FLAT = Flat()


@dataclass(frozen=True)
class StateSnapshot:
    position_size: float
    entry_price: float
    cash: float
    equity: float
    stop_price: Optional[float] = None
    target_price: Optional[float] = None


@dataclass(frozen=True)
class StrategyContext:
    series: Tuple[Bar, ...]
    index: int
    price: float
    bar: Bar
    state: StateSnapshot
    indicators: Any


@dataclass(frozen=True)
class TradeEvent:
    type: str
    side: str
    price: float
    size: float
    index: int
    time: Any
    note: Optional[str] = None
    profit_loss: Optional[float] = None
    commission: float = 0.0
    trigger: str = TRIGGER_STRATEGY


@dataclass(frozen=True)
class Trade:
    entry_date: Any
    entry_price: float
    exit_date: Any
    exit_price: float
    size: float
    side: str
    profit: float
    return_pct: float
    duration_bars: int
    entry_note: Optional[str] = None
    exit_note: Optional[str] = None
    commission: float = 0.0


@dataclass(frozen=True)
class EquityPoint:
    index: int
    time: Any
    equity: float
