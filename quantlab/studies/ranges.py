"""Intraday range and rolling high/low studies"""

from typing import Sequence

from ..config.defaults import StudyParams
from ..data.models import PriceBar
from ..metrics.returns import arithmetic_mean, percent
from .common import closes, forward_stats
from .models import HighLowResult, RangeResult


def _is_doji(bar: PriceBar, threshold: float) -> bool:
    bar_range = bar.high - bar.low
    if bar_range == 0:
        return True
    return abs(bar.close - bar.open) / bar_range <= threshold


def range_analysis(bars: Sequence[PriceBar], params: StudyParams) -> RangeResult:
    """
    Daily range, candle body size and inside/outside days.

    Inside and outside days are judged against the prior bar's high-low
    range; a doji has a body no larger than `doji_threshold` of its range.
    """
    ranges = [b.high - b.low for b in bars]
    range_pcts = [(b.high - b.low) / b.close * 100.0 for b in bars if b.close > 0]
    body_pcts = [
        abs(b.close - b.open) / (b.high - b.low) * 100.0
        for b in bars if b.high > b.low
    ]

    inside_days = []
    outside_days = 0
    for i in range(1, len(bars)):
        bar, prior = bars[i], bars[i - 1]
        if bar.high < prior.high and bar.low > prior.low:
            inside_days.append(i)
        elif bar.high > prior.high and bar.low < prior.low:
            outside_days += 1

    comparisons = max(len(bars) - 1, 0)
    return RangeResult(
        avg_daily_range=arithmetic_mean(ranges),
        avg_range_percent=arithmetic_mean(range_pcts),
        avg_body_percent=arithmetic_mean(body_pcts),
        doji_rate=percent(sum(1 for b in bars if _is_doji(b, params.doji_threshold)), len(bars)),
        inside_days=len(inside_days),
        outside_days=outside_days,
        inside_day_rate=percent(len(inside_days), comparisons),
        outside_day_rate=percent(outside_days, comparisons),
        after_inside_day=forward_stats(closes(bars), inside_days, params.forward_days),
    )


def high_low_analysis(bars: Sequence[PriceBar], params: StudyParams) -> HighLowResult:
    """
    Rolling new highs/lows and distance from the trailing-year extremes.

    Bar i is a new high when its high exceeds every high of the prior
    `high_low_lookback` bars; new lows mirror this.
    """
    lookback = params.high_low_lookback
    new_highs = []
    new_lows = []
    for i in range(lookback, len(bars)):
        window = bars[i - lookback:i]
        if bars[i].high > max(b.high for b in window):
            new_highs.append(i)
        if bars[i].low < min(b.low for b in window):
            new_lows.append(i)

    year = bars[-params.year_window:]
    year_high = max(b.high for b in year)
    year_low = min(b.low for b in year)
    price = bars[-1].close
    prices = closes(bars)

    return HighLowResult(
        lookback=lookback,
        new_highs=len(new_highs),
        new_lows=len(new_lows),
        after_new_high=forward_stats(prices, new_highs, params.forward_days),
        after_new_low=forward_stats(prices, new_lows, params.forward_days),
        year_high=year_high,
        year_low=year_low,
        dist_from_high=(price - year_high) / year_high * 100.0 if year_high else 0.0,
        dist_from_low=(price - year_low) / year_low * 100.0 if year_low else 0.0,
        current_price=price,
    )
