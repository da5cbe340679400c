"""Pytest configuration and shared fixtures."""

from datetime import date, timedelta
from typing import Callable, Optional, Sequence

import pytest

from quantlab.config.defaults import StudyParams, get_default_config
from quantlab.data.models import PriceBar


def weekdays(start: date, count: int) -> list[date]:
    """`count` consecutive weekdays starting at or after `start`."""
    days = []
    current = start
    while len(days) < count:
        if current.weekday() < 5:
            days.append(current)
        current += timedelta(days=1)
    return days


def build_bars(
    closes: Sequence[float],
    start: date = date(2024, 1, 1),
    volumes: Optional[Sequence[float]] = None,
    opens: Optional[Sequence[float]] = None,
) -> list[PriceBar]:
    """
    Deterministic weekday bars from a close sequence.

    Each bar opens at the prior close (its own close for the first bar) and
    spans 1% above and below its body unless explicit opens are given.
    """
    bars = []
    for i, (day, close) in enumerate(zip(weekdays(start, len(closes)), closes)):
        if opens is not None:
            open_ = opens[i]
        else:
            open_ = closes[i - 1] if i > 0 else close
        bars.append(PriceBar(
            date=day,
            open=open_,
            high=max(open_, close) * 1.01,
            low=min(open_, close) * 0.99,
            close=close,
            volume=volumes[i] if volumes is not None else 1000.0,
        ))
    return bars


@pytest.fixture
def make_bars() -> Callable[..., list[PriceBar]]:
    """Factory for deterministic bar series."""
    return build_bars


@pytest.fixture
def study_params() -> StudyParams:
    """Default study parameters."""
    return StudyParams()


@pytest.fixture
def default_config():
    """Default configuration instance."""
    return get_default_config()


@pytest.fixture
def trending_bars() -> list[PriceBar]:
    """60 bars rising 1 per day from 100."""
    return build_bars([100.0 + i for i in range(60)])


@pytest.fixture
def zigzag_bars() -> list[PriceBar]:
    """60 bars alternating between 100 and 102."""
    return build_bars([100.0 if i % 2 == 0 else 102.0 for i in range(60)])


def closes_from_returns(returns: Sequence[float], start_price: float = 100.0) -> list[float]:
    """Compound a return sequence into a close path."""
    closes = [start_price]
    for r in returns:
        closes.append(closes[-1] * (1 + r))
    return closes


@pytest.fixture
def bars_from_returns() -> Callable[..., list[PriceBar]]:
    """Factory for bar series with a prescribed close-to-close return path."""
    def factory(returns: Sequence[float], **kwargs) -> list[PriceBar]:
        return build_bars(closes_from_returns(returns), **kwargs)
    return factory
