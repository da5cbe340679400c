"""Drawdown episode study"""

from typing import Optional, Sequence

from ..config.defaults import StudyParams
from ..data.models import PriceBar
from ..metrics.returns import arithmetic_mean
from ..utils.time import calendar_days_between
from .models import DrawdownEpisode, DrawdownResult


def _episode(bars: Sequence[PriceBar], peak: int, trough: int,
             recovery: Optional[int]) -> DrawdownEpisode:
    peak_bar, trough_bar = bars[peak], bars[trough]
    recovery_bar = bars[recovery] if recovery is not None else None
    return DrawdownEpisode(
        peak_date=peak_bar.date,
        trough_date=trough_bar.date,
        recovery_date=recovery_bar.date if recovery_bar else None,
        depth=(peak_bar.close - trough_bar.close) / peak_bar.close * 100.0,
        days_to_trough=calendar_days_between(peak_bar.date, trough_bar.date),
        days_to_recover=(
            calendar_days_between(trough_bar.date, recovery_bar.date) if recovery_bar else None
        ),
        recovered=recovery_bar is not None,
    )


def find_drawdown_episodes(bars: Sequence[PriceBar]) -> list[DrawdownEpisode]:
    """
    Every peak-to-trough-to-recovery episode of the close series.

    An episode opens on the first close below the running peak and closes
    when a later close regains the peak. A drawdown still open at the last
    bar is returned with recovered=False.
    """
    episodes = []
    if not bars:
        return episodes

    peak = 0
    trough: Optional[int] = None
    for i in range(1, len(bars)):
        close = bars[i].close
        if close >= bars[peak].close:
            if trough is not None:
                episodes.append(_episode(bars, peak, trough, i))
                trough = None
            peak = i
        elif trough is None or close < bars[trough].close:
            trough = i

    if trough is not None:
        episodes.append(_episode(bars, peak, trough, None))
    return episodes


def drawdown_analysis(bars: Sequence[PriceBar], params: StudyParams) -> DrawdownResult:
    """Summary of all drawdown episodes plus the drawdown at the last bar."""
    episodes = find_drawdown_episodes(bars)

    peak_close = max((b.close for b in bars), default=0.0)
    current = (peak_close - bars[-1].close) / peak_close * 100.0 if peak_close > 0 else 0.0

    recovery_days = [e.days_to_recover for e in episodes if e.days_to_recover is not None]
    durations = []
    for episode in episodes:
        end = episode.recovery_date or bars[-1].date
        durations.append(calendar_days_between(episode.peak_date, end))

    return DrawdownResult(
        max_drawdown=max((e.depth for e in episodes), default=0.0),
        current_drawdown=current,
        avg_drawdown=arithmetic_mean([e.depth for e in episodes]),
        drawdown_count=len(episodes),
        avg_recovery_days=arithmetic_mean(recovery_days),
        longest_drawdown_days=max(durations, default=0),
        episodes=episodes,
    )
