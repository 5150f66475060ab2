"""Pair raw entry/exit events into completed trades."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional

from strategy_lab.trade_engine.types import BUY, ENTRY, EXIT, EXIT_EVENT, LONG, SELL, TRIGGER_STRATEGY, Trade, TradeEvent


@dataclass(frozen=True)
class TradeLedger:
    trades: List[Trade]
    actions_hit: FrozenSet[str]


def _build_trade(entry: TradeEvent, exit_: TradeEvent) -> Trade:
    """Profit and return are net of both legs' commission."""
    direction = 1 if entry.side == LONG else -1
    commission = entry.commission + exit_.commission
    profit = (exit_.price - entry.price) * direction * entry.size - commission
    notional = entry.price * entry.size
    return_pct = profit / notional * 100 if notional else 0.0
    return Trade(
        entry_date=entry.time,
        entry_price=round(entry.price, 2),
        exit_date=exit_.time,
        exit_price=round(exit_.price, 2),
        size=entry.size,
        side=entry.side,
        profit=round(profit, 2),
        return_pct=round(return_pct, 2),
        duration_bars=exit_.index - entry.index,
        entry_note=entry.note,
        exit_note=exit_.note,
        commission=round(commission, 2),
    )


def aggregate_trades(events: Iterable[TradeEvent]) -> TradeLedger:
    """Walk events once, closing each pending entry with the next exit.

    Also records which strategy actions actually fired. Exits the engine
    forced (protective stops, end-of-series liquidation) do not count as an
    exercised ``exit``.
    """
    trades: List[Trade] = []
    hit = set()
    pending: Optional[TradeEvent] = None

    for event in events:
        if event.type == ENTRY:
            if pending is not None:
                raise ValueError(f"entry at bar {event.index} while a trade opened at bar {pending.index} is still open")
            pending = event
            hit.add(BUY if event.side == LONG else SELL)
        elif event.type == EXIT_EVENT:
            if pending is None:
                raise ValueError(f"exit at bar {event.index} has no matching entry")
            trades.append(_build_trade(pending, event))
            pending = None
            if event.trigger == TRIGGER_STRATEGY:
                hit.add(EXIT)
        else:
            raise ValueError(f"unknown trade event type: {event.type!r}")

    return TradeLedger(trades=trades, actions_hit=frozenset(hit))
