"""Volatility regime study"""

from typing import Sequence

from ..config.defaults import StudyParams
from ..data.models import PriceBar
from ..metrics.atr import atr_series, calculate_natr
from ..metrics.indicators import rolling_volatility
from ..metrics.returns import arithmetic_mean, percent, simple_returns
from .common import closes, summarize
from .models import VolatilityResult

HIGH_REGIME_RATIO = 1.25
LOW_REGIME_RATIO = 0.75


def _clustering(returns: Sequence[float], multiplier: float) -> tuple[float, float]:
    """
    Share of high-volatility days that follow another high-volatility day.

    A day is high-volatility when |return| exceeds `multiplier` times the
    mean absolute return.

    Returns:
        (clustering percent, threshold as a fraction)
    """
    magnitudes = [abs(r) for r in returns]
    threshold = multiplier * arithmetic_mean(magnitudes)
    high = [m > threshold for m in magnitudes]
    high_days = sum(high)
    clustered = sum(1 for i in range(1, len(high)) if high[i] and high[i - 1])
    return percent(clustered, high_days), threshold


def _regime(rolling: Sequence[float]) -> str:
    if not rolling:
        return "normal"
    average = arithmetic_mean(rolling)
    if average == 0:
        return "normal"
    ratio = rolling[-1] / average
    if ratio > HIGH_REGIME_RATIO:
        return "high"
    if ratio < LOW_REGIME_RATIO:
        return "low"
    return "normal"


def volatility_analysis(bars: Sequence[PriceBar], params: StudyParams) -> VolatilityResult:
    """
    ATR, daily range, rolling volatility and clustering.

    ATR uses Wilder smoothing over `atr_period`; rolling volatility is the
    annualized percent volatility over `volatility_window` returns.
    """
    atr_values = [v for v in atr_series(bars, params.atr_period) if v is not None]
    daily_ranges = [(b.high - b.low) / b.close * 100.0 for b in bars if b.close > 0]

    returns = simple_returns(closes(bars))
    rolling = [
        v * 100.0
        for v in rolling_volatility(returns, params.volatility_window)
        if v is not None
    ]
    clustering, threshold = _clustering(returns, params.cluster_multiplier)

    atr_summary = summarize(atr_values)
    return VolatilityResult(
        atr=atr_summary,
        atr_percent=calculate_natr(atr_summary.current, bars[-1].close) if bars else 0.0,
        daily_range=summarize(daily_ranges),
        rolling_volatility=summarize(rolling),
        volatility_clustering=clustering,
        high_volatility_threshold=threshold * 100.0,
        regime=_regime(rolling),
    )
