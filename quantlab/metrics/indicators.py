"""Moving averages, RSI and rolling volatility series"""

import math
from typing import Optional, Sequence

from .returns import TRADING_DAYS_PER_YEAR, standard_deviation


def sma_series(values: Sequence[float], period: int) -> list[Optional[float]]:
    """
    Simple moving average aligned with the input.

    Entries before the first full window are None.
    """
    result: list[Optional[float]] = [None] * len(values)
    if period <= 0 or len(values) < period:
        return result

    window_sum = sum(values[:period])
    result[period - 1] = window_sum / period
    for i in range(period, len(values)):
        window_sum += values[i] - values[i - period]
        result[i] = window_sum / period
    return result


def ema_series(values: Sequence[float], period: int) -> list[Optional[float]]:
    """
    Exponential moving average seeded with the first full-window SMA.

    Smoothing factor k = 2 / (period + 1).
    """
    result: list[Optional[float]] = [None] * len(values)
    if period <= 0 or len(values) < period:
        return result

    k = 2.0 / (period + 1)
    ema = sum(values[:period]) / period
    result[period - 1] = ema
    for i in range(period, len(values)):
        ema = values[i] * k + ema * (1 - k)
        result[i] = ema
    return result


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 50.0 if avg_gain == 0 else 100.0
    rs = avg_gain / avg_loss
    return 100.0 - 100.0 / (1.0 + rs)


def rsi_series(closes: Sequence[float], period: int = 14) -> list[Optional[float]]:
    """
    Wilder's Relative Strength Index aligned with the closes.

    The first value appears at index `period`, seeded with simple averages
    of the first `period` gains and losses; afterwards averages are
    smoothed as avg_t = (avg_{t-1} * (period - 1) + x_t) / period.
    A window with no losses reads 100, a perfectly flat one 50.
    """
    result: list[Optional[float]] = [None] * len(closes)
    if period <= 0 or len(closes) <= period:
        return result

    changes = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    gains = [max(c, 0.0) for c in changes]
    losses = [max(-c, 0.0) for c in changes]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    result[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period, len(changes)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        result[i + 1] = _rsi_value(avg_gain, avg_loss)

    return result


class WilderRsi:
    """
    Incremental Wilder RSI.

    Feeding closes one at a time through `update` yields the same values
    as `rsi_series` over the whole sequence, in constant time per close.
    """

    def __init__(self, period: int = 14):
        self.period = period
        self.value: Optional[float] = None
        self._previous: Optional[float] = None
        self._changes = 0
        self._gain_sum = 0.0
        self._loss_sum = 0.0
        self._avg_gain = 0.0
        self._avg_loss = 0.0

    def update(self, close: float) -> Optional[float]:
        """Add the next close and return the RSI, None until `period` changes are seen."""
        previous, self._previous = self._previous, close
        if previous is None or self.period <= 0:
            return self.value

        change = close - previous
        gain, loss = max(change, 0.0), max(-change, 0.0)
        self._changes += 1

        if self._changes < self.period:
            self._gain_sum += gain
            self._loss_sum += loss
            return None
        if self._changes == self.period:
            self._avg_gain = (self._gain_sum + gain) / self.period
            self._avg_loss = (self._loss_sum + loss) / self.period
        else:
            self._avg_gain = (self._avg_gain * (self.period - 1) + gain) / self.period
            self._avg_loss = (self._avg_loss * (self.period - 1) + loss) / self.period

        self.value = _rsi_value(self._avg_gain, self._avg_loss)
        return self.value


def rolling_volatility(returns: Sequence[float], window: int = 20,
                       periods_per_year: int = TRADING_DAYS_PER_YEAR) -> list[Optional[float]]:
    """
    Rolling annualized volatility of a return series.

    Each value is the population standard deviation of the trailing
    `window` returns times sqrt(periods_per_year); None before the first
    full window.
    """
    result: list[Optional[float]] = [None] * len(returns)
    if window <= 0:
        return result
    scale = math.sqrt(periods_per_year)
    for i in range(window - 1, len(returns)):
        result[i] = standard_deviation(returns[i - window + 1:i + 1]) * scale
    return result
