"""Calendar seasonality studies: day of week and month of year"""

from typing import Sequence

from ..config.defaults import StudyParams
from ..data.models import PriceBar
from ..metrics.returns import arithmetic_mean, percent
from ..utils.time import DAY_NAMES, MONTH_NAMES, month_key
from .models import CalendarResult, CalendarStat


def _calendar_stats(buckets: dict[int, list[float]], names: Sequence[str]) -> list[CalendarStat]:
    stats = []
    for key, name in enumerate(names):
        returns = buckets.get(key, [])
        if not returns:
            continue
        wins = sum(1 for r in returns if r > 0)
        stats.append(CalendarStat(
            name=name,
            avg_return=arithmetic_mean(returns),
            hit_rate=percent(wins, len(returns)),
            count=len(returns),
        ))
    return stats


def day_of_week(bars: Sequence[PriceBar], params: StudyParams) -> CalendarResult:
    """Close-to-close percent returns bucketed by the weekday of the later bar."""
    buckets: dict[int, list[float]] = {}
    for i in range(1, len(bars)):
        prev = bars[i - 1].close
        if prev == 0:
            continue
        ret = (bars[i].close - prev) / prev * 100.0
        buckets.setdefault(bars[i].date.weekday(), []).append(ret)

    return CalendarResult(period="day_of_week", stats=_calendar_stats(buckets, DAY_NAMES))


def month_of_year(bars: Sequence[PriceBar], params: StudyParams) -> CalendarResult:
    """
    Monthly percent returns bucketed by calendar month.

    A month's return runs from its first open to its last close. A
    segment only counts once the next month starts, so the trailing
    partial month is left out.
    """
    buckets: dict[int, list[float]] = {}
    if bars:
        segment_month = month_key(bars[0].date)
        segment_open = bars[0].open
        for i in range(1, len(bars)):
            month = month_key(bars[i].date)
            if month == segment_month:
                continue
            if segment_open != 0:
                ret = (bars[i - 1].close - segment_open) / segment_open * 100.0
                buckets.setdefault(segment_month[1] - 1, []).append(ret)
            segment_month = month
            segment_open = bars[i].open

    return CalendarResult(period="month_of_year", stats=_calendar_stats(buckets, MONTH_NAMES))
