"""Built-in strategy scripts users can start from."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class StrategyTemplate:
    id: str
    name: str
    description: str
    code: str


MOMENTUM_PULSE = '''\
def strategy(ctx):
    fast = ctx.indicators.ema(ctx.series, ctx.index, 8)
    slow = ctx.indicators.ema(ctx.series, ctx.index, 21)

    if fast is None or slow is None:
        return {"action": "hold"}

    if fast > slow and ctx.state.position_size == 0:
        return {"action": "buy", "note": "Fast EMA crossed above slow EMA"}

    rsi = ctx.indicators.rsi(ctx.series, ctx.index, 14)
    if ctx.state.position_size > 0 and (fast < slow or (rsi is not None and rsi > 68)):
        return {"action": "exit", "note": "Momentum fading or RSI overbought"}

    return {"action": "hold"}
'''

MEAN_REVERT = '''\
def strategy(ctx):
    basis = ctx.indicators.sma(ctx.series, ctx.index, 20)
    if basis is None:
        return {"action": "hold"}

    lower = basis * 0.985
    upper = basis * 1.015

    if ctx.price < lower and ctx.state.position_size == 0:
        return {"action": "buy", "note": "Price dipped under 1.5% band"}

    if ctx.state.position_size > 0 and ctx.price >= upper:
        return {"action": "exit", "note": "Tagged upper band for exit"}

    return {"action": "hold"}
'''

BREAKOUT = '''\
def strategy(ctx):
    recent_high = ctx.indicators.highest(ctx.series, ctx.index, 30, "close")
    trailing_low = ctx.indicators.lowest(ctx.series, ctx.index, 10, lambda bar: bar.low)

    if recent_high is None or trailing_low is None:
        return {"action": "hold"}

    if ctx.price >= recent_high and ctx.state.position_size == 0:
        return {"action": "buy", "note": "New 30-bar closing high"}

    if ctx.state.position_size > 0 and ctx.price <= trailing_low:
        return {"action": "exit", "note": "Fell beneath 10-bar swing low"}

    return {"action": "hold"}
'''

STRATEGY_TEMPLATES: Dict[str, StrategyTemplate] = {
    "momentum_pulse": StrategyTemplate(
        "momentum_pulse",
        "Momentum Pulse",
        "Dual-EMA crossover with protective exits when momentum cools.",
        MOMENTUM_PULSE,
    ),
    "mean_revert": StrategyTemplate(
        "mean_revert",
        "Mean Reversion Bands",
        "Buy dips below a 20-bar average and exit near the upper band.",
        MEAN_REVERT,
    ),
    "breakout": StrategyTemplate(
        "breakout",
        "High Breakout Ride",
        "Enter on 30-bar highs with a trailing exit under swing lows.",
        BREAKOUT,
    ),
}

DEFAULT_STRATEGY_CODE = MOMENTUM_PULSE


def build_parameterised_strategy(
    fast_length: int = 8,
    slow_length: int = 21,
    exit_rsi: float = 68.0,
    stop_loss: float = 3.0,
    take_profit: float = 6.0,
) -> str:
    """Render the EMA-crossover script with explicit risk parameters (percent).

    Stop and target ride on the buy decision, so the engine enforces them as
    protective exits; the script itself only exits on RSI.
    """
    return f'''\
def strategy(ctx):
    fast = ctx.indicators.ema(ctx.series, ctx.index, {max(1, int(fast_length))})
    slow = ctx.indicators.ema(ctx.series, ctx.index, {max(1, int(slow_length))})
    if fast is None or slow is None:
        return {{"action": "hold"}}

    if fast > slow and ctx.state.position_size == 0:
        return {{
            "action": "buy",
            "note": "Momentum crossover entry",
            "stop_loss": {float(stop_loss)},
            "take_profit": {float(take_profit)},
        }}

    if ctx.state.position_size > 0:
        rsi = ctx.indicators.rsi(ctx.series, ctx.index, 14)
        if rsi is not None and rsi > {float(exit_rsi)}:
            return {{"action": "exit", "note": "RSI cooling off"}}

    return {{"action": "hold"}}
'''
