"""
Return series and descriptive statistics.

Pure functions over numeric sequences. Every function tolerates short or
degenerate input by returning a defined value (usually 0) instead of
raising; callers decide whether a sample is large enough to trust.

Dispersion uses population formulas (divide by n) so volatility scaling
stays consistent across the library.
"""

import math
import statistics
from typing import Sequence

TRADING_DAYS_PER_YEAR = 252


def simple_returns(prices: Sequence[float]) -> list[float]:
    """
    Simple period returns.

    r_i = (p_i - p_{i-1}) / p_{i-1} for i >= 1; a zero prior price yields 0.

    Args:
        prices: Ordered price series

    Returns:
        List of len(prices) - 1 returns
    """
    returns = []
    for i in range(1, len(prices)):
        prev = prices[i - 1]
        returns.append((prices[i] - prev) / prev if prev != 0 else 0.0)
    return returns


def log_returns(prices: Sequence[float]) -> list[float]:
    """
    Continuously compounded returns ln(p_i / p_{i-1}).

    Non-positive prices yield 0 for the affected step.
    """
    returns = []
    for i in range(1, len(prices)):
        prev, curr = prices[i - 1], prices[i]
        returns.append(math.log(curr / prev) if prev > 0 and curr > 0 else 0.0)
    return returns


def arithmetic_mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0 for empty input."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def variance(values: Sequence[float]) -> float:
    """
    Population variance, 0 for empty input.

    Computed exactly, so a constant series has a variance of exactly 0.
    """
    if not values:
        return 0.0
    return statistics.pvariance(values)


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation, 0 for empty input."""
    return math.sqrt(variance(values))


def annualized_volatility(daily_returns: Sequence[float],
                          periods_per_year: int = TRADING_DAYS_PER_YEAR) -> float:
    """Standard deviation of daily returns scaled by sqrt(periods)."""
    return standard_deviation(daily_returns) * math.sqrt(periods_per_year)


def annualized_return(daily_returns: Sequence[float],
                      periods_per_year: int = TRADING_DAYS_PER_YEAR) -> float:
    """Mean daily return scaled to a year (arithmetic)."""
    return arithmetic_mean(daily_returns) * periods_per_year


def cagr(initial_value: float, final_value: float, trading_days: int,
         periods_per_year: int = TRADING_DAYS_PER_YEAR) -> float:
    """
    Compound annual growth rate.

    (final / initial) ^ (periods / trading_days) - 1; 0 when any input
    makes the ratio undefined.
    """
    if initial_value <= 0 or final_value <= 0 or trading_days <= 0:
        return 0.0
    return (final_value / initial_value) ** (periods_per_year / trading_days) - 1


def skewness(values: Sequence[float]) -> float:
    """Population skewness (third standardized moment)."""
    n = len(values)
    if n < 3:
        return 0.0
    std = standard_deviation(values)
    if std == 0:
        return 0.0
    mean = arithmetic_mean(values)
    return sum(((v - mean) / std) ** 3 for v in values) / n


def excess_kurtosis(values: Sequence[float]) -> float:
    """Population excess kurtosis (fourth standardized moment minus 3)."""
    n = len(values)
    if n < 4:
        return 0.0
    std = standard_deviation(values)
    if std == 0:
        return 0.0
    mean = arithmetic_mean(values)
    return sum(((v - mean) / std) ** 4 for v in values) / n - 3.0


def nearest_rank_percentile(sorted_values: Sequence[float], p: float) -> float:
    """
    Nearest-rank percentile of an ascending series (no interpolation).

    Picks sorted_values[floor(n * p)], clamped to the last index.
    """
    if not sorted_values:
        return 0.0
    index = min(int(math.floor(len(sorted_values) * p)), len(sorted_values) - 1)
    return sorted_values[index]


def safe_ratio(numerator: float, denominator: float) -> float:
    """Division that resolves undefined ratios to 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def percent(count: int, total: int) -> float:
    """count / total as a percentage, 0 when total is 0."""
    return safe_ratio(count, total) * 100.0
