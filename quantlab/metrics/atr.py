"""ATR (Average True Range) and NATR (Normalized ATR) calculations"""

from typing import Optional, Sequence

from ..data.models import PriceBar


def calculate_true_range(current: PriceBar, previous: Optional[PriceBar] = None) -> float:
    """
    Calculate True Range for a single bar

    TR = max(high - low, abs(high - prev_close), abs(low - prev_close))

    Args:
        current: Current bar
        previous: Previous bar (None for first bar)

    Returns:
        True Range value
    """
    if previous is None:
        # First bar case - use high-low range
        return current.high - current.low

    range_hl = current.high - current.low
    range_hc = abs(current.high - previous.close)
    range_lc = abs(current.low - previous.close)

    return max(range_hl, range_hc, range_lc)


def true_range_series(bars: Sequence[PriceBar]) -> list[float]:
    """True Range for every bar, aligned with the input."""
    return [
        calculate_true_range(bars[i], bars[i - 1] if i > 0 else None)
        for i in range(len(bars))
    ]


def atr_series(bars: Sequence[PriceBar], period: int = 14) -> list[Optional[float]]:
    """
    Average True Range with Wilder's smoothing

    The first value (at index period - 1) is the simple average of the
    first `period` true ranges; afterwards
    ATR_t = (ATR_{t-1} * (period - 1) + TR_t) / period.

    Args:
        bars: Bars in chronological order
        period: ATR period (default 14)

    Returns:
        ATR values aligned with bars, None before the seed is available
    """
    true_ranges = true_range_series(bars)
    result: list[Optional[float]] = [None] * len(bars)

    if len(bars) < period or period <= 0:
        return result

    atr = sum(true_ranges[:period]) / period
    result[period - 1] = atr

    for i in range(period, len(bars)):
        atr = (atr * (period - 1) + true_ranges[i]) / period
        result[i] = atr

    return result


def calculate_atr(bars: Sequence[PriceBar], period: int = 14) -> Optional[float]:
    """
    Latest Wilder ATR value

    Args:
        bars: Bars in chronological order
        period: ATR period (default 14)

    Returns:
        ATR value or None if insufficient data
    """
    if len(bars) < period:
        return None
    return atr_series(bars, period)[-1]


def calculate_natr(atr: float, current_price: float) -> float:
    """
    Calculate Normalized Average True Range

    NATR = 100 * ATR / current_price

    Args:
        atr: ATR value
        current_price: Current close price

    Returns:
        NATR percentage value
    """
    if current_price <= 0:
        return 0.0

    return 100.0 * atr / current_price
