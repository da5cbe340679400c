"""Moving-average and trend strength studies"""

from typing import Optional, Sequence

from ..config.defaults import StudyParams
from ..data.models import PriceBar
from ..metrics.indicators import ema_series, sma_series
from ..metrics.returns import percent
from .common import closes
from .models import (
    CrossEvent,
    MovingAverageResult,
    MovingAverageStat,
    TrendStrengthResult,
)

TREND_DIRECTIONS = {
    5: "strong_up",
    4: "up",
    3: "neutral",
    2: "neutral",
    1: "down",
    0: "strong_down",
}


def _periods(params: StudyParams) -> tuple[int, int, int]:
    return params.ma_short, params.ma_medium, params.ma_long


def _last(series: Sequence[Optional[float]]) -> Optional[float]:
    return series[-1] if series else None


def detect_crosses(bars: Sequence[PriceBar], fast: Sequence[Optional[float]],
                   slow: Sequence[Optional[float]]) -> list[CrossEvent]:
    """
    Golden and death crosses of a fast average over a slow one.

    A golden cross is the first bar where fast > slow after fast <= slow;
    a death cross is the reverse.
    """
    crosses = []
    for i in range(1, len(bars)):
        if None in (fast[i - 1], slow[i - 1], fast[i], slow[i]):
            continue
        previous = fast[i - 1] - slow[i - 1]
        current = fast[i] - slow[i]
        if previous <= 0 < current:
            crosses.append(CrossEvent(date=bars[i].date, type="golden"))
        elif previous >= 0 > current:
            crosses.append(CrossEvent(date=bars[i].date, type="death"))
    return crosses


def moving_average_analysis(bars: Sequence[PriceBar], params: StudyParams) -> MovingAverageResult:
    """
    SMA/EMA levels at the configured periods and medium/long crosses.

    Periods longer than the series are left out of `averages`.
    """
    prices = closes(bars)
    price = prices[-1]
    short, medium, long_ = _periods(params)

    averages = {}
    sma_by_period = {}
    for period in (short, medium, long_):
        sma = sma_series(prices, period)
        sma_by_period[period] = sma
        last_sma = _last(sma)
        if last_sma is None:
            continue
        valid = [(p, s) for p, s in zip(prices, sma) if s is not None]
        above = sum(1 for p, s in valid if p > s)
        averages[f"ma{period}"] = MovingAverageStat(
            period=period,
            sma=last_sma,
            ema=_last(ema_series(prices, period)),
            price_vs_sma=(price - last_sma) / last_sma * 100.0 if last_sma else 0.0,
            pct_above_sma=percent(above, len(valid)),
        )

    crosses = detect_crosses(bars, sma_by_period[medium], sma_by_period[long_])
    medium_last = _last(sma_by_period[medium])
    long_last = _last(sma_by_period[long_])
    current_trend = None
    if medium_last is not None and long_last is not None:
        current_trend = "bullish" if medium_last > long_last else "bearish"

    return MovingAverageResult(
        current_price=price,
        averages=averages,
        crosses=crosses,
        golden_crosses=sum(1 for c in crosses if c.type == "golden"),
        death_crosses=sum(1 for c in crosses if c.type == "death"),
        last_cross=crosses[-1] if crosses else None,
        current_trend=current_trend,
    )


def _above(a: Optional[float], b: Optional[float]) -> bool:
    return a is not None and b is not None and a > b


def trend_strength(bars: Sequence[PriceBar], params: StudyParams) -> TrendStrengthResult:
    """
    Trend score from 0 to 5.

    One point each for price above the short, medium and long SMA, short
    above medium, and medium above long. An average the series is too
    short for scores nothing.
    """
    prices = closes(bars)
    price = prices[-1]
    short, medium, long_ = _periods(params)
    short_sma = _last(sma_series(prices, short))
    medium_sma = _last(sma_series(prices, medium))
    long_sma = _last(sma_series(prices, long_))

    components = {
        "price_above_short": _above(price, short_sma),
        "price_above_medium": _above(price, medium_sma),
        "price_above_long": _above(price, long_sma),
        "short_above_medium": _above(short_sma, medium_sma),
        "medium_above_long": _above(medium_sma, long_sma),
    }
    score = sum(components.values())

    comparisons = max(len(bars) - 1, 0)
    higher_highs = sum(1 for i in range(1, len(bars)) if bars[i].high > bars[i - 1].high)
    higher_lows = sum(1 for i in range(1, len(bars)) if bars[i].low > bars[i - 1].low)

    return TrendStrengthResult(
        trend_score=score,
        max_score=len(components),
        trend_direction=TREND_DIRECTIONS[score],
        components=components,
        higher_highs_rate=percent(higher_highs, comparisons),
        higher_lows_rate=percent(higher_lows, comparisons),
    )
