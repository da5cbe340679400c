"""Helpers shared by the study handlers"""

from typing import Iterable, Sequence

from ..data.models import PriceBar
from ..metrics.returns import arithmetic_mean, percent
from .models import ForwardStats, SeriesSummary


def closes(bars: Sequence[PriceBar]) -> list[float]:
    return [b.close for b in bars]


def percent_returns(bars: Sequence[PriceBar]) -> list[float]:
    """Close-to-close returns in percent, one per bar after the first."""
    returns = []
    for i in range(1, len(bars)):
        prev = bars[i - 1].close
        returns.append((bars[i].close - prev) / prev * 100.0 if prev != 0 else 0.0)
    return returns


def forward_stats(prices: Sequence[float], triggers: Iterable[int], days: int) -> ForwardStats:
    """
    Forward return behavior after trigger indices.

    Only triggers with a full `days` horizon inside the series count.

    Args:
        prices: Close prices
        triggers: Indices of the trigger bars
        days: Forward horizon in bars

    Returns:
        ForwardStats with average percent return and hit rate
    """
    outcomes = []
    for i in triggers:
        j = i + days
        if j >= len(prices) or prices[i] == 0:
            continue
        outcomes.append((prices[j] - prices[i]) / prices[i] * 100.0)

    wins = sum(1 for r in outcomes if r > 0)
    return ForwardStats(
        count=len(outcomes),
        avg_return=arithmetic_mean(outcomes),
        hit_rate=percent(wins, len(outcomes)),
    )


def summarize(values: Sequence[float]) -> SeriesSummary:
    """Current (last), average, min and max of a series; zeros when empty."""
    if not values:
        return SeriesSummary(current=0.0, avg=0.0, min=0.0, max=0.0)
    return SeriesSummary(
        current=values[-1],
        avg=arithmetic_mean(values),
        min=min(values),
        max=max(values),
    )
