"""
Trading strategies.

A strategy is a bundle of optional capabilities rather than a subclass:

- `rebalance`: maps a date to a calendar period key; when the key changes
  between trading days the simulator liquidates and re-buys equal weights.
- `signal_factory`: builds a signal rule for one run. The rule decides per
  ticker and per day whether the ticker should be held, given its close
  history up to that day and whether it is held now. Histories only grow
  between calls, so a rule may keep per-ticker state. The simulator trades
  only when the desired holding set changes.

A strategy with neither capability is buy-and-hold.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Hashable, Optional, Sequence

from ..config.defaults import BacktestParams
from ..errors import InputValidationError
from ..metrics.indicators import WilderRsi
from ..metrics.returns import arithmetic_mean, standard_deviation
from ..utils.time import month_key, quarter_key

PeriodKey = Callable[[date], Hashable]
SignalRule = Callable[[str, Sequence[float], bool], bool]
SignalRuleFactory = Callable[[], SignalRule]


class StrategyKind(str, Enum):
    BUY_AND_HOLD = "buy_and_hold"
    EQUAL_WEIGHT = "equal_weight"
    MOMENTUM = "momentum"
    MEAN_REVERSION = "mean_reversion"
    RSI_THRESHOLD = "rsi_threshold"


class RebalanceFrequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


REBALANCE_PERIODS: dict[RebalanceFrequency, PeriodKey] = {
    RebalanceFrequency.MONTHLY: month_key,
    RebalanceFrequency.QUARTERLY: quarter_key,
}


@dataclass(frozen=True)
class Strategy:
    name: str
    rebalance: Optional[PeriodKey] = None
    signal_factory: Optional[SignalRuleFactory] = None

    @property
    def is_signal_driven(self) -> bool:
        return self.signal_factory is not None

    def new_signal_rule(self) -> Optional[SignalRule]:
        """A fresh signal rule for one simulation run."""
        return self.signal_factory() if self.signal_factory else None


def buy_and_hold() -> Strategy:
    return Strategy(name=StrategyKind.BUY_AND_HOLD.value)


def equal_weight(frequency: RebalanceFrequency = RebalanceFrequency.MONTHLY) -> Strategy:
    """Periodic equal-weight rebalance at each month or quarter rollover."""
    return Strategy(
        name=StrategyKind.EQUAL_WEIGHT.value,
        rebalance=REBALANCE_PERIODS[RebalanceFrequency(frequency)],
    )


def momentum(lookback: int = 20) -> Strategy:
    """Hold tickers whose trailing `lookback`-day return is positive."""

    def rule(ticker: str, closes: Sequence[float], holding: bool) -> bool:
        if len(closes) <= lookback or closes[-1 - lookback] <= 0:
            return False
        return closes[-1] / closes[-1 - lookback] - 1 > 0

    return Strategy(name=StrategyKind.MOMENTUM.value, signal_factory=lambda: rule)


def mean_reversion(lookback: int = 20, entry_z: float = 1.0) -> Strategy:
    """
    Enter when the close sits more than `entry_z` deviations below its
    `lookback` SMA, exit once it is back above the average.
    """

    def rule(ticker: str, closes: Sequence[float], holding: bool) -> bool:
        if len(closes) < lookback:
            return holding
        window = closes[-lookback:]
        std = standard_deviation(window)
        if std == 0:
            return holding
        z = (closes[-1] - arithmetic_mean(window)) / std
        if not holding and z < -entry_z:
            return True
        if holding and z > 0:
            return False
        return holding

    return Strategy(name=StrategyKind.MEAN_REVERSION.value, signal_factory=lambda: rule)


def rsi_threshold(period: int = 14, oversold: float = 30.0, overbought: float = 70.0) -> Strategy:
    """
    Enter below the oversold RSI level, exit above the overbought level.

    Each run keeps one incremental RSI per ticker and feeds it only the
    closes added since the previous call.
    """

    def make_rule() -> SignalRule:
        trackers: dict[str, tuple[WilderRsi, int]] = {}

        def rule(ticker: str, closes: Sequence[float], holding: bool) -> bool:
            tracker, seen = trackers.get(ticker, (None, 0))
            if tracker is None or len(closes) < seen:
                tracker, seen = WilderRsi(period), 0
            for close in closes[seen:]:
                tracker.update(close)
            trackers[ticker] = (tracker, len(closes))

            value = tracker.value
            if value is None:
                return holding
            if value < oversold:
                return True
            if value > overbought:
                return False
            return holding

        return rule

    return Strategy(name=StrategyKind.RSI_THRESHOLD.value, signal_factory=make_rule)


def build_strategy(kind: str, params: Optional[BacktestParams] = None,
                   rebalance_frequency: Optional[str] = None) -> Strategy:
    """
    Build a strategy from its request identifier.

    Raises:
        InputValidationError: Unknown strategy or rebalance frequency
    """
    params = params or BacktestParams()
    try:
        strategy_kind = StrategyKind(kind)
        frequency = RebalanceFrequency(rebalance_frequency or params.rebalance_frequency)
    except ValueError as e:
        raise InputValidationError(
            f"Invalid strategy configuration: {e}",
            context={"strategy": kind, "rebalance_frequency": rebalance_frequency}
        )

    if strategy_kind == StrategyKind.BUY_AND_HOLD:
        return buy_and_hold()
    if strategy_kind == StrategyKind.EQUAL_WEIGHT:
        return equal_weight(frequency)
    if strategy_kind == StrategyKind.MOMENTUM:
        return momentum(params.momentum_lookback)
    if strategy_kind == StrategyKind.MEAN_REVERSION:
        return mean_reversion(params.mean_reversion_lookback, params.mean_reversion_entry_z)
    return rsi_threshold(params.rsi_period, params.rsi_oversold, params.rsi_overbought)
