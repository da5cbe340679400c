"""Opening gap study"""

from typing import Sequence

from ..config.defaults import StudyParams
from ..data.models import PriceBar
from ..metrics.returns import arithmetic_mean, percent
from .models import GapAnalysisResult, GapStats


def _gap_stats(sizes: list[float], filled: int, continued: int) -> GapStats:
    return GapStats(
        count=len(sizes),
        fill_rate=percent(filled, len(sizes)),
        continuation_rate=percent(continued, len(sizes)),
        avg_gap_size=arithmetic_mean(sizes),
    )


def gap_analysis(bars: Sequence[PriceBar], params: StudyParams) -> GapAnalysisResult:
    """
    Opening gaps against the prior close.

    A gap is |open - prior close| / prior close >= gap_threshold_pct.
    An up gap is filled when the day's low reaches the prior close and
    continues when the day closes above its open; down gaps mirror this.
    """
    threshold = params.gap_threshold_pct
    up_sizes: list[float] = []
    down_sizes: list[float] = []
    up_filled = up_continued = 0
    down_filled = down_continued = 0

    for i in range(1, len(bars)):
        prior_close = bars[i - 1].close
        if prior_close == 0:
            continue
        bar = bars[i]
        gap_pct = (bar.open - prior_close) / prior_close * 100.0
        if abs(gap_pct) < threshold:
            continue

        if gap_pct > 0:
            up_sizes.append(gap_pct)
            up_filled += bar.low <= prior_close
            up_continued += bar.close > bar.open
        else:
            down_sizes.append(gap_pct)
            down_filled += bar.high >= prior_close
            down_continued += bar.close < bar.open

    total_gaps = len(up_sizes) + len(down_sizes)
    return GapAnalysisResult(
        total_gaps=total_gaps,
        gap_frequency=percent(total_gaps, max(len(bars) - 1, 0)),
        threshold_pct=threshold,
        gaps_up=_gap_stats(up_sizes, up_filled, up_continued),
        gaps_down=_gap_stats(down_sizes, down_filled, down_continued),
    )
