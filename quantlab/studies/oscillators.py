"""RSI behavior and mean reversion studies"""

from typing import Sequence

from ..config.defaults import StudyParams
from ..data.models import PriceBar
from ..metrics.indicators import rsi_series
from ..metrics.returns import arithmetic_mean, percent, simple_returns, standard_deviation
from ..metrics.risk import correlation
from .common import closes, forward_stats
from .models import HistogramBucket, MeanReversionResult, ReversalStats, RsiResult

RSI_BUCKET = 10


def _rsi_deciles(values: Sequence[float]) -> list[HistogramBucket]:
    counts: dict[int, int] = {}
    for value in values:
        bucket = min(int(value // RSI_BUCKET), 9) * RSI_BUCKET
        counts[bucket] = counts.get(bucket, 0) + 1
    return [HistogramBucket(range=float(b), count=counts[b]) for b in sorted(counts)]


def rsi_analysis(bars: Sequence[PriceBar], params: StudyParams) -> RsiResult:
    """
    Wilder RSI levels and forward returns after threshold crossings.

    An overbought crossing is a bar where RSI moves from at or below the
    overbought level to above it; oversold crossings mirror this.
    """
    prices = closes(bars)
    series = rsi_series(prices, params.rsi_period)
    overbought, oversold = params.rsi_overbought, params.rsi_oversold

    up_crossings = []
    down_crossings = []
    for i in range(1, len(series)):
        previous, current = series[i - 1], series[i]
        if previous is None or current is None:
            continue
        if previous <= overbought < current:
            up_crossings.append(i)
        if previous >= oversold > current:
            down_crossings.append(i)

    values = [v for v in series if v is not None]
    return RsiResult(
        period=params.rsi_period,
        current=values[-1] if values else 0.0,
        avg=arithmetic_mean(values),
        min=min(values, default=0.0),
        max=max(values, default=0.0),
        overbought_pct=percent(sum(1 for v in values if v >= overbought), len(values)),
        oversold_pct=percent(sum(1 for v in values if v <= oversold), len(values)),
        distribution=_rsi_deciles(values),
        forward_days=params.forward_days,
        after_overbought=forward_stats(prices, up_crossings, params.forward_days),
        after_oversold=forward_stats(prices, down_crossings, params.forward_days),
    )


def _reversal_stats(next_returns: Sequence[float], reversed_moves: int) -> ReversalStats:
    return ReversalStats(
        count=len(next_returns),
        avg_next_return=arithmetic_mean(next_returns) * 100.0,
        reversal_rate=percent(reversed_moves, len(next_returns)),
    )


def mean_reversion(bars: Sequence[PriceBar], params: StudyParams) -> MeanReversionResult:
    """
    Lag-1 autocorrelation regime and next-day behavior after large moves.

    The regime is mean_reverting below -autocorr_threshold, trending above
    +autocorr_threshold and random in between. A large move deviates from
    the mean return by at least `large_move_sigma` standard deviations.
    """
    returns = simple_returns(closes(bars))
    autocorr = correlation(returns[:-1], returns[1:]) if len(returns) > 2 else 0.0

    if autocorr < -params.autocorr_threshold:
        regime = "mean_reverting"
    elif autocorr > params.autocorr_threshold:
        regime = "trending"
    else:
        regime = "random"

    mean = arithmetic_mean(returns)
    band = params.large_move_sigma * standard_deviation(returns)
    after_up: list[float] = []
    after_down: list[float] = []
    if band > 0:
        for i in range(len(returns) - 1):
            deviation = returns[i] - mean
            if deviation >= band:
                after_up.append(returns[i + 1])
            elif deviation <= -band:
                after_down.append(returns[i + 1])

    return MeanReversionResult(
        autocorrelation=autocorr,
        regime=regime,
        sigma_threshold=params.large_move_sigma,
        after_large_up=_reversal_stats(after_up, sum(1 for r in after_up if r < 0)),
        after_large_down=_reversal_stats(after_down, sum(1 for r in after_down if r > 0)),
    )
