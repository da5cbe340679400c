"""Portfolio book: cash, whole-share positions and the trade log"""

import math
from datetime import date
from typing import Mapping, Optional

from ..data.models import PortfolioSnapshot, Trade, TradeSide


class Portfolio:
    """
    Mutable book owned by a single simulation run.

    Positions are whole shares; residual cash from flooring stays in cash.
    Cash reserved for tickers that had no price when they were allocated
    is tracked in `pending` and excluded from reinvestment.
    """

    def __init__(self, initial_capital: float):
        self.cash = initial_capital
        self.shares: dict[str, int] = {}
        self.last_prices: dict[str, float] = {}
        self.pending: dict[str, float] = {}
        self.trades: list[Trade] = []

    def mark(self, prices: Mapping[str, float]) -> None:
        """Record today's closes; tickers without a price keep their last close."""
        self.last_prices.update(prices)

    @property
    def holdings_value(self) -> float:
        return sum(
            shares * self.last_prices.get(ticker, 0.0)
            for ticker, shares in self.shares.items()
        )

    @property
    def total_value(self) -> float:
        return self.cash + self.holdings_value

    @property
    def reserved_cash(self) -> float:
        return sum(self.pending.values())

    @property
    def investable_cash(self) -> float:
        return max(self.cash - self.reserved_cash, 0.0)

    def held(self) -> set[str]:
        return {ticker for ticker, shares in self.shares.items() if shares > 0}

    def buy(self, day: date, ticker: str, budget: float, price: float) -> Optional[Trade]:
        """Buy floor(budget / price) shares; no trade when that rounds to zero."""
        if price <= 0 or budget <= 0:
            return None
        shares = math.floor(budget / price)
        if shares <= 0:
            return None
        self.cash -= shares * price
        self.shares[ticker] = self.shares.get(ticker, 0) + shares
        trade = Trade(date=day, ticker=ticker, side=TradeSide.BUY, shares=shares, price=price)
        self.trades.append(trade)
        return trade

    def sell_all(self, day: date, ticker: str, price: float) -> Optional[Trade]:
        """Liquidate the whole position at `price`."""
        shares = self.shares.get(ticker, 0)
        if shares <= 0:
            return None
        self.cash += shares * price
        self.shares[ticker] = 0
        trade = Trade(date=day, ticker=ticker, side=TradeSide.SELL, shares=shares, price=price)
        self.trades.append(trade)
        return trade

    def reserve(self, ticker: str, amount: float) -> None:
        self.pending[ticker] = self.pending.get(ticker, 0.0) + amount

    def fill_pending(self, day: date, prices: Mapping[str, float]) -> None:
        """Spend reserved cash for every pending ticker priced today."""
        for ticker in [t for t in self.pending if t in prices]:
            budget = self.pending.pop(ticker)
            self.buy(day, ticker, budget, prices[ticker])

    def final_holdings(self) -> dict[str, int]:
        return {ticker: shares for ticker, shares in self.shares.items() if shares > 0}

    def snapshot(self, day: date) -> PortfolioSnapshot:
        holdings_value = self.holdings_value
        return PortfolioSnapshot(
            date=day,
            total_value=self.cash + holdings_value,
            cash=self.cash,
            holdings_value=holdings_value,
        )
