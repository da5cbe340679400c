"""Backtest simulator: portfolio book, strategies and the day loop"""

from .engine import BacktestSimulator, normalize_weights
from .models import BacktestResult, DateRange, SimulationState
from .strategies import Strategy, StrategyKind, build_strategy

__all__ = [
    "BacktestSimulator",
    "BacktestResult",
    "DateRange",
    "SimulationState",
    "Strategy",
    "StrategyKind",
    "build_strategy",
    "normalize_weights",
]
