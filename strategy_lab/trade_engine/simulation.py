"""Bar-by-bar simulation of a single-position strategy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from strategy_lab.trade_engine.config import BacktestConfig
from strategy_lab.trade_engine.errors import InsufficientFundsError
from strategy_lab.trade_engine.indicators import INDICATORS
from strategy_lab.trade_engine.sandbox import Strategy
from strategy_lab.trade_engine.types import (
    BUY,
    ENTRY,
    EXIT,
    EXIT_EVENT,
    FLAT,
    SELL,
    TRIGGER_END_OF_SERIES,
    TRIGGER_PROTECTIVE,
    TRIGGER_STRATEGY,
    Bar,
    Decision,
    EquityPoint,
    Flat,
    Long,
    Position,
    Short,
    StateSnapshot,
    StrategyContext,
    TradeEvent,
    normalize_bars,
)

FORCED_EXIT_NOTE = "forced exit at end of series"


@dataclass(frozen=True)
class SimulationResult:
    events: Tuple[TradeEvent, ...]
    equity_curve: Tuple[EquityPoint, ...]
    final_cash: float


def _protective_levels(decision: Decision, side: str, price: float) -> Tuple[Optional[float], Optional[float]]:
    direction = 1 if side == BUY else -1
    stop = price * (1 - direction * decision.stop_loss / 100) if decision.stop_loss else None
    target = price * (1 + direction * decision.take_profit / 100) if decision.take_profit else None
    return stop, target


def _close(position: Position, bar: Bar, index: int, note: Optional[str], trigger: str, config: BacktestConfig):
    """Return (cash delta, exit event) for liquidating ``position`` at ``bar.close``.

    The event's ``profit_loss`` is net of the exit commission.
    """
    price = bar.close
    commission = config.commission.cost(position.size, price)
    profit_loss = (price - position.entry_price) * position.signed_size - commission
    event = TradeEvent(
        type=EXIT_EVENT,
        side=position.side,
        price=price,
        size=position.size,
        index=index,
        time=bar.timestamp,
        note=note,
        profit_loss=round(profit_loss, 2),
        commission=commission,
        trigger=trigger,
    )
    return price * position.signed_size - commission, event


def _open(decision: Decision, bar: Bar, index: int, cash: float, config: BacktestConfig):
    """Return (cash delta, new position, entry event) for a buy/sell while flat."""
    price = bar.close
    size = decision.size
    commission = config.commission.cost(size, price)
    stop, target = _protective_levels(decision, decision.action, price)

    if decision.action == BUY:
        cost = price * size + commission
        if cost > cash:
            raise InsufficientFundsError(index, bar.timestamp, required=round(cost, 2), available=round(cash, 2))
        position: Position = Long(price, size, index, stop, target)
        cash_delta = -cost
    else:
        # Shorts skip the buying-power check that longs get.
        logger.debug("[engine] short entry at bar {} has no margin check", index)
        position = Short(price, size, index, stop, target)
        cash_delta = price * size - commission

    event = TradeEvent(
        type=ENTRY,
        side=position.side,
        price=price,
        size=size,
        index=index,
        time=bar.timestamp,
        note=decision.note,
        commission=commission,
    )
    return cash_delta, position, event


def simulate(strategy: Strategy, bars: Sequence[Bar], config: Optional[BacktestConfig] = None) -> SimulationResult:
    """Run ``strategy`` over ``bars`` once, start to finish.

    Args:
        strategy: object exposing ``decide(ctx) -> Decision``.
        bars: chronologically ordered bars (validated and frozen here).
        config: BacktestConfig overrides (optional).

    Returns:
        SimulationResult with the raw entry/exit events and one equity point per
        bar, plus a closing point when an open position is force-liquidated.
    """
    cfg = config or BacktestConfig()
    series = normalize_bars(bars)

    cash = cfg.initial_capital
    position: Position = FLAT
    events: List[TradeEvent] = []
    equity_curve: List[EquityPoint] = []

    logger.debug("[engine] simulating {} bars with {} starting capital", len(series), cash)

    for idx, bar in enumerate(series):
        price = bar.close
        state = StateSnapshot(
            position_size=position.signed_size,
            entry_price=position.entry_price,
            cash=round(cash, 2),
            equity=round(cash + position.signed_size * price, 2),
            stop_price=position.stop_price,
            target_price=position.target_price,
        )

        # Protective exits fire before the strategy gets a say on this bar.
        forced = False
        if not isinstance(position, Flat):
            reason = position.protective_exit(price)
            if reason:
                delta, event = _close(position, bar, idx, reason, TRIGGER_PROTECTIVE, cfg)
                cash += delta
                events.append(event)
                position = FLAT
                forced = True
                logger.warning("[engine] {} at bar {} price={}", reason, idx, price)

        ctx = StrategyContext(series=series, index=idx, price=price, bar=bar, state=state, indicators=INDICATORS)
        decision = strategy.decide(ctx)

        if not forced:
            if decision.action in (BUY, SELL) and isinstance(position, Flat):
                delta, position, event = _open(decision, bar, idx, cash, cfg)
                cash += delta
                events.append(event)
                logger.debug("[engine] {} entry size={} price={} bar={}", position.side, position.size, price, idx)
            elif decision.action == EXIT and not isinstance(position, Flat):
                delta, event = _close(position, bar, idx, decision.note, TRIGGER_STRATEGY, cfg)
                cash += delta
                events.append(event)
                position = FLAT
                logger.debug("[engine] exit pnl={} bar={}", event.profit_loss, idx)

        equity_curve.append(EquityPoint(idx, bar.timestamp, round(cash + position.signed_size * price, 2)))

    # Force-close any open trade on the final close
    if not isinstance(position, Flat):
        last_index = len(series) - 1
        last_bar = series[last_index]
        delta, event = _close(position, last_bar, last_index, FORCED_EXIT_NOTE, TRIGGER_END_OF_SERIES, cfg)
        cash += delta
        events.append(event)
        position = FLAT
        equity_curve.append(EquityPoint(len(series), last_bar.timestamp, round(cash, 2)))

    logger.debug("[engine] finished: events={} final_cash={:.2f}", len(events), cash)
    return SimulationResult(events=tuple(events), equity_curve=tuple(equity_curve), final_cash=cash)
