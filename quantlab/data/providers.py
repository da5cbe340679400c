"""
Price bar providers.

The core never performs I/O itself: a host hands it bars obtained through a
PriceBarProvider. Two named strategies sit behind the one interface - a
real provider wrapping a host-supplied transport, and a deterministic
synthetic provider seeded from the ticker string. FallbackProvider combines
them and always reports whether synthetic data was substituted.
"""

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Callable, Iterable, Optional

import structlog

from ..utils.time import DateLike, to_date
from .models import PriceBar
from .parsers import ParseError, parse_price_rows

logger = structlog.get_logger(__name__)

RowFetcher = Callable[[str, date, date], Optional[Iterable[dict[str, Any]]]]


@dataclass(frozen=True)
class ProviderResult:
    """Bars returned to the host plus the fallback flag."""
    ticker: str
    bars: list[PriceBar]
    used_fallback_data: bool
    source: str


class PriceBarProvider(ABC):
    """Interface for anything that can supply daily bars."""

    name: str = "provider"

    @abstractmethod
    def fetch(self, ticker: str, start: DateLike, end: DateLike) -> Optional[list[PriceBar]]:
        """
        Fetch bars for a ticker in ascending date order.

        Returns:
            Bars, or None when the provider is unavailable for this request
        """
        pass


class RealProvider(PriceBarProvider):
    """Provider backed by a host-supplied transport returning raw rows."""

    name = "real"

    def __init__(self, fetcher: RowFetcher):
        self.fetcher = fetcher

    def fetch(self, ticker: str, start: DateLike, end: DateLike) -> Optional[list[PriceBar]]:
        start_date, end_date = to_date(start), to_date(end)
        try:
            rows = self.fetcher(ticker.upper(), start_date, end_date)
        except (OSError, ValueError) as e:
            logger.warning("Price provider request failed", ticker=ticker, error=str(e))
            return None

        if rows is None:
            return None

        try:
            bars = parse_price_rows(rows)
        except ParseError as e:
            logger.warning("Price provider returned unparseable rows", ticker=ticker, error=str(e))
            return None

        if not bars:
            return None

        return sorted(bars, key=lambda b: b.date)


class DeterministicSyntheticProvider(PriceBarProvider):
    """
    Generates reproducible weekday bars for any ticker.

    The random stream is seeded from the sum of the ticker's code points,
    so identical requests always yield identical bars.
    """

    name = "synthetic"

    def __init__(self, base_price: float = 100.0, price_spread: float = 200.0,
                 daily_drift: float = 0.48, daily_range: float = 0.03):
        self.base_price = base_price
        self.price_spread = price_spread
        self.daily_drift = daily_drift
        self.daily_range = daily_range

    @staticmethod
    def seed_for(ticker: str) -> int:
        """Seed derived from the ticker string."""
        return sum(ord(c) for c in ticker.upper())

    def fetch(self, ticker: str, start: DateLike, end: DateLike) -> Optional[list[PriceBar]]:
        rng = random.Random(self.seed_for(ticker))
        price = self.base_price + rng.random() * self.price_spread

        bars = []
        current = to_date(start)
        end_date = to_date(end)
        while current <= end_date:
            if current.weekday() < 5:
                daily_return = (rng.random() - self.daily_drift) * self.daily_range
                open_price = price
                close_price = price * (1 + daily_return)
                high = max(open_price, close_price) * (1 + rng.random() * 0.01)
                low = min(open_price, close_price) * (1 - rng.random() * 0.01)
                volume = float(int(1_000_000 + rng.random() * 5_000_000))
                bars.append(PriceBar(
                    date=current,
                    open=open_price,
                    high=high,
                    low=low,
                    close=close_price,
                    volume=volume,
                ))
                price = close_price
            current += timedelta(days=1)

        return bars


class FallbackProvider:
    """Tries a primary provider and substitutes a fallback when unavailable."""

    def __init__(self, primary: PriceBarProvider, fallback: Optional[PriceBarProvider] = None):
        self.primary = primary
        self.fallback = fallback or DeterministicSyntheticProvider()

    def fetch(self, ticker: str, start: DateLike, end: DateLike) -> ProviderResult:
        bars = self.primary.fetch(ticker, start, end)
        if bars:
            return ProviderResult(
                ticker=ticker.upper(),
                bars=bars,
                used_fallback_data=False,
                source=self.primary.name,
            )

        logger.warning(
            "Primary provider unavailable, substituting fallback data",
            ticker=ticker,
            primary=self.primary.name,
            fallback=self.fallback.name,
        )
        bars = self.fallback.fetch(ticker, start, end) or []
        return ProviderResult(
            ticker=ticker.upper(),
            bars=bars,
            used_fallback_data=True,
            source=self.fallback.name,
        )
