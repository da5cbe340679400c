"""Simulator state and result models"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional

from ..data.models import PortfolioSnapshot, Trade
from ..utils.serialization import to_serializable


class SimulationState(str, Enum):
    """Lifecycle of one simulation run."""
    NOT_STARTED = "not_started"
    INITIAL_ALLOCATION = "initial_allocation"
    RUNNING = "running"
    COMPLETED = "completed"


# Allowed lifecycle transitions
STATE_TRANSITIONS: dict[SimulationState, tuple[SimulationState, ...]] = {
    SimulationState.NOT_STARTED: (SimulationState.INITIAL_ALLOCATION,),
    SimulationState.INITIAL_ALLOCATION: (SimulationState.RUNNING,),
    SimulationState.RUNNING: (SimulationState.COMPLETED,),
    SimulationState.COMPLETED: (),
}


@dataclass(frozen=True)
class BacktestMetrics:
    """
    Summary statistics of the daily portfolio value series.

    Returns, volatility and drawdown are in percent; ratios are plain.
    """
    total_return: float
    annualized_return: float
    volatility: float
    sharpe_ratio: float
    sortino_ratio: float
    max_drawdown: float
    calmar_ratio: float
    initial_capital: float
    final_value: float
    trading_days: int
    years: float
    total_trades: int


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date


@dataclass(frozen=True)
class BacktestDataQuality:
    """Calendar coverage of the simulated data."""
    trading_days: int
    expected_days: int
    completeness: float
    rows_per_ticker: dict[str, int]
    actual_range: DateRange
    requested_range: Optional[DateRange] = None


@dataclass(frozen=True)
class BacktestResult:
    """Complete output of one simulation run."""
    metrics: BacktestMetrics
    trades: list[Trade]
    portfolio_history: list[PortfolioSnapshot]
    final_holdings: dict[str, int]
    cash_remaining: float
    data_quality: BacktestDataQuality
    warnings: list[str] = field(default_factory=list)
    excluded_tickers: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return to_serializable(self)
