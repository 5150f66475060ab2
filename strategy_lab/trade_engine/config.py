"""Configuration for a single backtest run."""

from __future__ import annotations

from dataclasses import dataclass, field

from strategy_lab.config import DEFAULT_TIMEFRAME, RISK_FREE_RATE, STARTING_CAPITAL


@dataclass(frozen=True)
class CommissionConfig:
    """Per-fill trading costs. All zero by default."""

    per_trade: float = 0.0  # flat fee per fill
    per_share: float = 0.0
    percentage: float = 0.0  # fraction of traded notional, e.g. 0.001 = 10 bps

    def cost(self, size: float, price: float) -> float:
        quantity = abs(size)
        fee = self.per_trade + self.per_share * quantity + self.percentage * quantity * price
        return round(fee, 2)


@dataclass(frozen=True)
class BacktestConfig:
    """Parameters controlling one simulation run."""

    initial_capital: float = STARTING_CAPITAL
    timeframe: str = DEFAULT_TIMEFRAME
    risk_free_rate: float = RISK_FREE_RATE
    commission: CommissionConfig = field(default_factory=CommissionConfig)
