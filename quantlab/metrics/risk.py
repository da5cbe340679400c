"""
Risk-adjusted performance and tail-risk measures.

Sharpe and Sortino use an arithmetic annualized mean return; the
risk-free rate is always a parameter so callers share one configured
default instead of hard-coding their own.
"""

import math
from dataclasses import dataclass
from typing import Mapping, Sequence

from ..data.models import CorrelationMatrix
from .returns import (
    TRADING_DAYS_PER_YEAR,
    annualized_return,
    annualized_volatility,
    arithmetic_mean,
    standard_deviation,
    variance,
)

DEFAULT_RISK_FREE_RATE = 0.04


@dataclass(frozen=True)
class DrawdownStats:
    """Worst peak-to-trough excursion of a value series."""
    max_drawdown_percent: float
    peak_index: int
    trough_index: int


@dataclass(frozen=True)
class BetaAlpha:
    """Single-factor regression of an asset on a benchmark."""
    beta: float
    alpha: float


def sharpe_ratio(daily_returns: Sequence[float],
                 risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
                 periods_per_year: int = TRADING_DAYS_PER_YEAR) -> float:
    """
    (annualized mean return - risk-free rate) / annualized volatility.

    Returns 0 when volatility is 0.
    """
    vol = annualized_volatility(daily_returns, periods_per_year)
    if vol == 0:
        return 0.0
    return (annualized_return(daily_returns, periods_per_year) - risk_free_rate) / vol


def downside_deviation(daily_returns: Sequence[float]) -> float:
    """Population standard deviation of the negative returns only."""
    return standard_deviation([r for r in daily_returns if r < 0])


def sortino_ratio(daily_returns: Sequence[float],
                  risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
                  periods_per_year: int = TRADING_DAYS_PER_YEAR) -> float:
    """
    Sharpe numerator over annualized downside deviation.

    Returns 0 when there is no downside dispersion.
    """
    downside = downside_deviation(daily_returns) * math.sqrt(periods_per_year)
    if downside == 0:
        return 0.0
    return (annualized_return(daily_returns, periods_per_year) - risk_free_rate) / downside


def max_drawdown(values: Sequence[float]) -> DrawdownStats:
    """
    Global worst peak-to-trough decline.

    Tracks the running peak; drawdown at i is (peak - value_i) / peak.

    Args:
        values: Ordered value series (prices or portfolio values)

    Returns:
        DrawdownStats with the percentage decline and its peak/trough indices
    """
    if not values:
        return DrawdownStats(0.0, 0, 0)

    peak_value = values[0]
    peak_index = 0
    worst = 0.0
    worst_peak = 0
    worst_trough = 0

    for i, value in enumerate(values):
        if value > peak_value:
            peak_value = value
            peak_index = i
        if peak_value <= 0:
            continue
        drawdown = (peak_value - value) / peak_value
        if drawdown > worst:
            worst = drawdown
            worst_peak = peak_index
            worst_trough = i

    return DrawdownStats(worst * 100.0, worst_peak, worst_trough)


def calmar_ratio(cagr: float, max_drawdown_percent: float) -> float:
    """CAGR (as percent) over max drawdown percent; 0 without drawdown."""
    if max_drawdown_percent == 0:
        return 0.0
    return (cagr * 100.0) / max_drawdown_percent


def beta_alpha(asset_returns: Sequence[float],
               benchmark_returns: Sequence[float]) -> BetaAlpha:
    """
    CAPM single-factor regression over the common prefix.

    beta = Cov(asset, benchmark) / Var(benchmark)
    alpha = mean(asset) - beta * mean(benchmark)

    Not risk-free adjusted; pre-subtract the rate for excess returns.
    """
    n = min(len(asset_returns), len(benchmark_returns))
    if n == 0:
        return BetaAlpha(0.0, 0.0)

    asset = asset_returns[:n]
    bench = benchmark_returns[:n]
    asset_mean = arithmetic_mean(asset)
    bench_mean = arithmetic_mean(bench)

    covariance = sum((a - asset_mean) * (b - bench_mean) for a, b in zip(asset, bench)) / n
    bench_variance = variance(bench)

    beta = covariance / bench_variance if bench_variance > 0 else 0.0
    return BetaAlpha(beta=beta, alpha=asset_mean - beta * bench_mean)


def _tail_index(n: int, confidence: float) -> int:
    return min(int(math.floor(n * (1 - confidence) + 1e-9)), n - 1)


def value_at_risk(returns: Sequence[float], confidence: float = 0.95) -> float:
    """
    Historical VaR: |sorted_returns[floor(n * (1 - confidence))]|.
    """
    if not returns:
        return 0.0
    ordered = sorted(returns)
    return abs(ordered[_tail_index(len(ordered), confidence)])


def conditional_var(returns: Sequence[float], confidence: float = 0.95) -> float:
    """
    Historical CVaR: mean of every return at or below the VaR index.

    The tail average is returned as-is (negative for losses).
    """
    if not returns:
        return 0.0
    ordered = sorted(returns)
    return arithmetic_mean(ordered[:_tail_index(len(ordered), confidence) + 1])


def value_at_risk_95(returns: Sequence[float]) -> float:
    """VaR at 95% confidence."""
    return value_at_risk(returns, 0.95)


def conditional_var_95(returns: Sequence[float]) -> float:
    """CVaR at 95% confidence."""
    return conditional_var(returns, 0.95)


def correlation(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation over the common prefix; 0 when undefined."""
    n = min(len(x), len(y))
    if n < 2:
        return 0.0
    xs, ys = x[:n], y[:n]
    mean_x, mean_y = arithmetic_mean(xs), arithmetic_mean(ys)
    cov = sum((a - mean_x) * (b - mean_y) for a, b in zip(xs, ys)) / n
    var_x = variance(xs)
    var_y = variance(ys)
    if var_x <= 0 or var_y <= 0:
        return 0.0
    return max(-1.0, min(1.0, cov / math.sqrt(var_x * var_y)))


def correlation_matrix(returns_by_ticker: Mapping[str, Sequence[float]]) -> CorrelationMatrix:
    """
    Build a symmetric correlation matrix with an exact unit diagonal.
    """
    labels = tuple(returns_by_ticker.keys())
    n = len(labels)
    rows = [[1.0 if i == j else 0.0 for j in range(n)] for i in range(n)]

    for i in range(n):
        for j in range(i + 1, n):
            value = correlation(returns_by_ticker[labels[i]], returns_by_ticker[labels[j]])
            rows[i][j] = value
            rows[j][i] = value

    return CorrelationMatrix(labels=labels, matrix=tuple(tuple(row) for row in rows))
