"""Volume behavior study"""

from typing import Sequence

from ..config.defaults import StudyParams
from ..data.models import PriceBar
from ..metrics.returns import safe_ratio
from ..metrics.volume import average_volume, calculate_rvol, directional_volume
from .common import closes, forward_stats
from .models import VolumeResult


def volume_analysis(bars: Sequence[PriceBar], params: StudyParams) -> VolumeResult:
    """
    Volume levels, accumulation/distribution bias and high-volume follow-through.

    A high-volume day trades more than `high_volume_multiplier` times the
    average volume; follow-through is measured over `forward_days`. The
    volume ratio is the last bar against the prior `volume_trend_window`
    bars.
    """
    avg_volume = average_volume(bars)
    up_avg, down_avg = directional_volume(bars)
    threshold = avg_volume * params.high_volume_multiplier
    high_days = [i for i, b in enumerate(bars) if b.volume > threshold]
    recent = average_volume(bars[-params.volume_trend_window:])
    history = [b.volume for b in bars[:-1]]
    rvol = calculate_rvol(bars[-1].volume, history, params.volume_trend_window)

    return VolumeResult(
        avg_volume=avg_volume,
        current_volume=bars[-1].volume,
        volume_ratio=rvol if rvol is not None else safe_ratio(bars[-1].volume, avg_volume),
        up_day_avg_volume=up_avg,
        down_day_avg_volume=down_avg,
        volume_bias="accumulation" if up_avg >= down_avg else "distribution",
        high_volume_threshold=threshold,
        high_volume_days=len(high_days),
        after_high_volume=forward_stats(closes(bars), high_days, params.forward_days),
        volume_trend=safe_ratio(recent, avg_volume),
    )
