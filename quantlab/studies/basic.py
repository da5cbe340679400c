"""Direction counts, return distribution and streak studies"""

import math
from typing import Sequence

from ..config.defaults import StudyParams
from ..data.models import PriceBar
from ..metrics.returns import (
    TRADING_DAYS_PER_YEAR,
    arithmetic_mean,
    excess_kurtosis,
    nearest_rank_percentile,
    percent,
    skewness,
    standard_deviation,
)
from .common import percent_returns
from .models import (
    DistributionResult,
    HistogramBucket,
    PercentageResult,
    StreaksResult,
)

PERCENTILES = (("p5", 0.05), ("p25", 0.25), ("p50", 0.50), ("p75", 0.75), ("p95", 0.95))


def close_above_open(bars: Sequence[PriceBar], params: StudyParams) -> PercentageResult:
    """Share of bars closing above their own open."""
    up_days = sum(1 for b in bars if b.close > b.open)
    down_days = sum(1 for b in bars if b.close < b.open)
    return PercentageResult(
        percentage=percent(up_days, len(bars)),
        up_days=up_days,
        down_days=down_days,
        unchanged=len(bars) - up_days - down_days,
        total_days=len(bars),
        label="of days closed above open",
    )


def close_above_prior(bars: Sequence[PriceBar], params: StudyParams) -> PercentageResult:
    """Share of bars closing above the prior bar's close."""
    up_days = 0
    down_days = 0
    for i in range(1, len(bars)):
        if bars[i].close > bars[i - 1].close:
            up_days += 1
        elif bars[i].close < bars[i - 1].close:
            down_days += 1

    total = max(len(bars) - 1, 0)
    return PercentageResult(
        percentage=percent(up_days, total),
        up_days=up_days,
        down_days=down_days,
        unchanged=total - up_days - down_days,
        total_days=total,
        label="of days closed above prior close",
    )


def _histogram(values: Sequence[float], bucket: float) -> list[HistogramBucket]:
    # Buckets are [lo + k*bucket, lo + (k+1)*bucket) starting at floor(min)
    low = math.floor(min(values))
    counts: dict[int, int] = {}
    for value in values:
        index = int(math.floor((value - low) / bucket))
        counts[index] = counts.get(index, 0) + 1
    return [
        HistogramBucket(range=low + index * bucket, count=counts[index])
        for index in sorted(counts)
    ]


def return_distribution(bars: Sequence[PriceBar], params: StudyParams) -> DistributionResult:
    """
    Distribution of daily percent returns.

    Percentiles use nearest rank; the histogram lists only non-empty
    buckets of `histogram_bucket_pct` width.
    """
    returns = percent_returns(bars)
    if not returns:
        return DistributionResult(
            mean=0.0, std_dev=0.0, annualized_vol=0.0, min=0.0, max=0.0, count=0,
            percentiles={name: 0.0 for name, _ in PERCENTILES}, histogram=[],
            skewness=0.0, kurtosis=0.0,
        )

    ordered = sorted(returns)
    std_dev = standard_deviation(returns)
    return DistributionResult(
        mean=arithmetic_mean(returns),
        std_dev=std_dev,
        annualized_vol=std_dev * math.sqrt(TRADING_DAYS_PER_YEAR),
        min=ordered[0],
        max=ordered[-1],
        count=len(returns),
        percentiles={name: nearest_rank_percentile(ordered, p) for name, p in PERCENTILES},
        histogram=_histogram(returns, params.histogram_bucket_pct),
        skewness=skewness(returns),
        kurtosis=excess_kurtosis(returns),
    )


def streaks(bars: Sequence[PriceBar], params: StudyParams) -> StreaksResult:
    """
    Runs of consecutive up or down closes.

    Flat days are dropped from the direction sequence, so they neither
    extend nor break a streak. The open streak at the end is signed:
    positive while running up, negative while running down.
    """
    directions = []
    for i in range(1, len(bars)):
        if bars[i].close > bars[i - 1].close:
            directions.append(1)
        elif bars[i].close < bars[i - 1].close:
            directions.append(-1)

    up_streaks: list[int] = []
    down_streaks: list[int] = []
    run_direction = 0
    run_length = 0
    for direction in directions:
        if direction == run_direction:
            run_length += 1
            continue
        if run_length:
            (up_streaks if run_direction > 0 else down_streaks).append(run_length)
        run_direction = direction
        run_length = 1
    if run_length:
        (up_streaks if run_direction > 0 else down_streaks).append(run_length)

    if run_direction > 0:
        current_direction = "up"
    elif run_direction < 0:
        current_direction = "down"
    else:
        current_direction = "flat"

    return StreaksResult(
        max_up_streak=max(up_streaks, default=0),
        max_down_streak=max(down_streaks, default=0),
        avg_up_streak=arithmetic_mean(up_streaks),
        avg_down_streak=arithmetic_mean(down_streaks),
        current_streak=run_direction * run_length,
        current_direction=current_direction,
        up_streak_count=len(up_streaks),
        down_streak_count=len(down_streaks),
    )
