"""Forward price projection and volume-weighted support/resistance"""

from typing import Sequence

from ..config.defaults import StudyParams
from ..data.models import PriceBar
from ..metrics.returns import arithmetic_mean, simple_returns, standard_deviation
from .common import closes
from .models import PriceTargetsResult, ProjectionBand


def project_price(price: float, mean: float, std_dev: float, k: float, days: int) -> float:
    """price * (1 + mean + k * std_dev) ^ days; floors at 0 when the base goes negative."""
    base = 1.0 + mean + k * std_dev
    if base <= 0:
        return 0.0
    return price * base ** days


def volume_profile(bars: Sequence[PriceBar], buckets: int) -> list[tuple[float, float]]:
    """
    Volume traded per close-price bucket.

    The low-to-high price span is split into `buckets` equal bins; each
    bar's volume lands in the bin holding its close.

    Returns:
        (bucket midpoint, volume) for every non-empty bucket, ascending by price
    """
    low = min(b.low for b in bars)
    high = max(b.high for b in bars)
    width = (high - low) / buckets if buckets > 0 else 0.0
    if width <= 0:
        return []

    volumes = [0.0] * buckets
    for bar in bars:
        index = min(int((bar.close - low) / width), buckets - 1)
        volumes[max(index, 0)] += bar.volume

    return [
        (low + (i + 0.5) * width, volume)
        for i, volume in enumerate(volumes)
        if volume > 0
    ]


def _levels(profile: list[tuple[float, float]], count: int, descending: bool) -> list[float]:
    heaviest = sorted(profile, key=lambda item: item[1], reverse=True)[:count]
    return sorted((mid for mid, _ in heaviest), reverse=descending)


def price_targets(bars: Sequence[PriceBar], params: StudyParams) -> PriceTargetsResult:
    """
    Drift-based price bands and support/resistance ladder.

    For each horizon the band is price * (1 + mean ± k * std)^days with
    k in {-2, -1, 0, 1, 2}. Support and resistance are the heaviest
    volume buckets below and above the current price, nearest first.
    """
    prices = closes(bars)
    price = prices[-1]
    returns = simple_returns(prices)
    mean = arithmetic_mean(returns)
    std_dev = standard_deviation(returns)

    projections = {}
    for days in params.projection_horizons:
        projections[f"days{days}"] = ProjectionBand(
            worst=project_price(price, mean, std_dev, -2, days),
            bear=project_price(price, mean, std_dev, -1, days),
            expected=project_price(price, mean, std_dev, 0, days),
            bull=project_price(price, mean, std_dev, 1, days),
            best=project_price(price, mean, std_dev, 2, days),
        )

    profile = volume_profile(bars, params.support_buckets)
    below = [(mid, vol) for mid, vol in profile if mid < price]
    above = [(mid, vol) for mid, vol in profile if mid > price]

    return PriceTargetsResult(
        current_price=price,
        mean_daily_return=mean,
        daily_std_dev=std_dev,
        projections=projections,
        support_levels=_levels(below, params.support_levels, descending=True),
        resistance_levels=_levels(above, params.support_levels, descending=False),
    )
