"""Volume calculations: relative volume and direction-split averages"""

from typing import Optional, Sequence

from ..data.models import PriceBar


def calculate_rvol(current_volume: float, volume_history: Sequence[float], period: int = 20) -> Optional[float]:
    """
    Calculate Relative Volume (RVOL)

    RVOL = current_volume / SMA(volume_history)

    Args:
        current_volume: Current bar volume
        volume_history: Historical volume values (excluding current)
        period: Lookback period for average (default 20)

    Returns:
        RVOL value or None if insufficient data
    """
    if len(volume_history) < period or period <= 0:
        return None

    # Use last 'period' values for average
    recent_volumes = volume_history[-period:]
    volume_average = sum(recent_volumes) / len(recent_volumes)

    if volume_average <= 0:
        return None

    return current_volume / volume_average


def average_volume(bars: Sequence[PriceBar]) -> float:
    """Mean volume over the bars, 0 for empty input."""
    if not bars:
        return 0.0
    return sum(b.volume for b in bars) / len(bars)


def directional_volume(bars: Sequence[PriceBar]) -> tuple[float, float]:
    """
    Average volume on up days and on down days

    A day is up when its close exceeds the prior close and down when it is
    below; flat days count toward neither side.

    Returns:
        (up_day_average, down_day_average), 0 for a side with no days
    """
    up_volumes = []
    down_volumes = []
    for i in range(1, len(bars)):
        if bars[i].close > bars[i - 1].close:
            up_volumes.append(bars[i].volume)
        elif bars[i].close < bars[i - 1].close:
            down_volumes.append(bars[i].volume)

    up_avg = sum(up_volumes) / len(up_volumes) if up_volumes else 0.0
    down_avg = sum(down_volumes) / len(down_volumes) if down_volumes else 0.0
    return up_avg, down_avg
