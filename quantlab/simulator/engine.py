"""
Backtest simulator.

Walks the sorted union of trading dates across all instruments. The first
date performs the initial allocation; every date is then marked to market
and snapshotted before the strategy gets a chance to trade at that day's
close. All run state lives on a SimulationRun instance, so concurrent
simulations never share anything.
"""

from datetime import date
from typing import Mapping, Optional, Sequence

from ..config.defaults import DefaultConfig, get_default_config
from ..data.models import Allocation, PortfolioSnapshot, PriceBar
from ..errors import InsufficientDataError, SimulationError
from ..logging.config import get_simulation_logger, log_state_transition
from ..metrics.returns import (
    annualized_volatility,
    cagr,
    percent,
    simple_returns,
)
from ..metrics.risk import calmar_ratio, max_drawdown, sharpe_ratio, sortino_ratio
from ..utils.time import expected_trading_days
from .models import (
    STATE_TRANSITIONS,
    BacktestDataQuality,
    BacktestMetrics,
    BacktestResult,
    DateRange,
    SimulationState,
)
from .portfolio import Portfolio
from .strategies import Strategy

logger = get_simulation_logger(__name__)


def normalize_weights(tickers: Sequence[str],
                      allocations: Optional[Sequence[Allocation]]) -> dict[str, float]:
    """
    Percent weights for the simulated tickers.

    Without allocations every ticker gets 100 / n. With allocations, the
    weights of the simulated tickers are rescaled to sum to 100, so weight
    assigned to an excluded ticker is spread over the others.
    """
    if not tickers:
        return {}
    if not allocations:
        return {ticker: 100.0 / len(tickers) for ticker in tickers}

    by_ticker: dict[str, float] = {}
    for allocation in allocations:
        key = allocation.ticker.upper()
        by_ticker[key] = by_ticker.get(key, 0.0) + allocation.weight_percent
    included = {ticker: by_ticker.get(ticker, 0.0) for ticker in tickers}
    total = sum(included.values())
    if total <= 0:
        return {ticker: 0.0 for ticker in tickers}
    return {ticker: weight * 100.0 / total for ticker, weight in included.items()}


class SimulationRun:
    """State of one simulation from initial allocation to completion."""

    def __init__(self, run_id: str, strategy: Strategy, weights: Mapping[str, float],
                 closes_by_date: Mapping[date, Mapping[str, float]], initial_capital: float):
        self.run_id = run_id
        self.strategy = strategy
        self.weights = dict(weights)
        self.closes_by_date = closes_by_date
        self.dates = sorted(closes_by_date)
        self.initial_capital = initial_capital
        self.book = Portfolio(initial_capital)
        self.history: list[PortfolioSnapshot] = []
        self.state = SimulationState.NOT_STARTED
        self.last_period = None
        self.signal_rule = strategy.new_signal_rule()
        self.signal_targets: set[str] = set()
        self.close_history: dict[str, list[float]] = {ticker: [] for ticker in weights}

    def transition(self, to_state: SimulationState, trigger: str, day: Optional[date] = None) -> None:
        if to_state not in STATE_TRANSITIONS[self.state]:
            raise SimulationError(
                f"Invalid simulator transition {self.state.value} -> {to_state.value}",
                state=self.state.value,
                date=day.isoformat() if day else None
            )
        log_state_transition(
            logger,
            run_id=self.run_id,
            from_state=self.state.value,
            to_state=to_state.value,
            trigger=trigger,
            context={"date": day.isoformat()} if day else None
        )
        self.state = to_state

    def execute(self) -> None:
        first_day = self.dates[0]
        self.transition(SimulationState.INITIAL_ALLOCATION, "start", first_day)

        for index, day in enumerate(self.dates):
            prices = self.closes_by_date[day]
            self.book.mark(prices)
            for ticker, price in prices.items():
                self.close_history[ticker].append(price)

            if index == 0:
                self._allocate_initial(day, prices)
                if self.strategy.rebalance:
                    self.last_period = self.strategy.rebalance(day)
            else:
                self.book.fill_pending(day, prices)

            self.history.append(self.book.snapshot(day))

            if index > 0 and self.strategy.rebalance:
                period = self.strategy.rebalance(day)
                if period != self.last_period:
                    self.last_period = period
                    self._rebalance_equal(day, prices)
            if self.signal_rule:
                self._apply_signals(day, prices)

            if index == 0:
                self.transition(SimulationState.RUNNING, "initial_allocation_done", day)

        self.transition(SimulationState.COMPLETED, "end_of_data", self.dates[-1])

    def _allocate_initial(self, day: date, prices: Mapping[str, float]) -> None:
        if self.strategy.is_signal_driven:
            return
        for ticker, weight in self.weights.items():
            budget = self.initial_capital * weight / 100.0
            if ticker in prices:
                self.book.buy(day, ticker, budget, prices[ticker])
            elif budget > 0:
                self.book.reserve(ticker, budget)

    def _liquidate_and_buy(self, day: date, prices: Mapping[str, float],
                           targets: Sequence[str]) -> None:
        """Sell every priced position, then split investable cash equally over targets."""
        for ticker in sorted(self.book.held()):
            if ticker in prices:
                self.book.sell_all(day, ticker, prices[ticker])
        if not targets:
            return
        budget = self.book.investable_cash / len(targets)
        for ticker in targets:
            self.book.buy(day, ticker, budget, prices[ticker])

    def _rebalance_equal(self, day: date, prices: Mapping[str, float]) -> None:
        targets = [t for t in self.weights if t in prices and self.weights[t] > 0]
        logger.debug("Rebalancing", run_id=self.run_id, date=day.isoformat(), targets=targets)
        self._liquidate_and_buy(day, prices, targets)

    def _apply_signals(self, day: date, prices: Mapping[str, float]) -> None:
        desired = set()
        for ticker in (t for t in self.weights if self.weights[t] > 0):
            holding = ticker in self.signal_targets
            if ticker not in prices:
                # No price today: position is left as it is
                if holding:
                    desired.add(ticker)
                continue
            if self.signal_rule(ticker, self.close_history[ticker], holding):
                desired.add(ticker)

        if desired == self.signal_targets:
            return
        logger.debug(
            "Signal change",
            run_id=self.run_id,
            date=day.isoformat(),
            entered=sorted(desired - self.signal_targets),
            exited=sorted(self.signal_targets - desired),
        )
        self.signal_targets = desired
        self._liquidate_and_buy(day, prices, [t for t in sorted(desired) if t in prices])


class BacktestSimulator:
    """Runs strategies over already-fetched bar series."""

    def __init__(self, config: Optional[DefaultConfig] = None):
        self.config = config or get_default_config()

    def run(self, bars_by_ticker: Mapping[str, Sequence[PriceBar]], strategy: Strategy,
            allocations: Optional[Sequence[Allocation]] = None,
            initial_capital: Optional[float] = None,
            requested_range: Optional[DateRange] = None,
            run_id: Optional[str] = None) -> BacktestResult:
        """
        Simulate a strategy

        Args:
            bars_by_ticker: Ascending bar series per ticker
            strategy: Strategy capabilities
            allocations: Percent weights; equal weight when omitted
            initial_capital: Starting cash, defaults to the configured capital
            requested_range: Date range the caller asked for, used for coverage
            run_id: Identifier for log correlation

        Returns:
            BacktestResult with trades, daily snapshots and summary metrics

        Raises:
            InsufficientDataError: No ticker, or no ticker with a positive weight, has any bars
        """
        capital = initial_capital if initial_capital is not None else self.config.backtest.initial_capital
        tickers = [t.upper() for t in bars_by_ticker]
        run_id = run_id or f"{strategy.name}:{','.join(tickers)}"

        rows_per_ticker = {t.upper(): len(bars) for t, bars in bars_by_ticker.items()}
        included = [t for t in tickers if rows_per_ticker[t] > 0]
        excluded = [t for t in tickers if rows_per_ticker[t] == 0]
        warnings = [f"No data found for {t}" for t in excluded]
        for ticker in excluded:
            logger.warning("Ticker excluded from simulation", run_id=run_id, ticker=ticker)

        if not included:
            raise InsufficientDataError(
                "Insufficient data: no price data for any requested ticker",
                required_count=1,
                available_count=0,
                context={"tickers": tickers}
            )

        closes_by_date: dict[date, dict[str, float]] = {}
        for ticker, bars in bars_by_ticker.items():
            for bar in bars:
                closes_by_date.setdefault(bar.date, {})[ticker.upper()] = bar.close

        logger.info(
            "Starting simulation",
            run_id=run_id,
            strategy=strategy.name,
            tickers=included,
            trading_days=len(closes_by_date),
            initial_capital=capital,
        )

        weights = normalize_weights(included, allocations)
        if not any(weight > 0 for weight in weights.values()):
            raise InsufficientDataError(
                "Insufficient data: no price data for any allocated ticker",
                required_count=1,
                available_count=0,
                context={"tickers": tickers, "excluded": excluded}
            )

        run = SimulationRun(
            run_id=run_id,
            strategy=strategy,
            weights=weights,
            closes_by_date=closes_by_date,
            initial_capital=capital,
        )
        run.execute()

        data_quality = self._data_quality(run.dates, rows_per_ticker, requested_range)
        warnings.extend(self._coverage_warnings(data_quality, included))
        metrics = self._metrics(run, capital)

        logger.info(
            "Simulation complete",
            run_id=run_id,
            trading_days=metrics.trading_days,
            total_return=metrics.total_return,
            total_trades=metrics.total_trades,
        )

        return BacktestResult(
            metrics=metrics,
            trades=list(run.book.trades),
            portfolio_history=run.history,
            final_holdings=run.book.final_holdings(),
            cash_remaining=run.book.cash,
            data_quality=data_quality,
            warnings=warnings,
            excluded_tickers=excluded,
        )

    def _metrics(self, run: SimulationRun, capital: float) -> BacktestMetrics:
        risk = self.config.risk
        values = [snapshot.total_value for snapshot in run.history]
        returns = simple_returns(values)
        trading_days = len(values)
        final_value = values[-1] if values else capital

        growth = cagr(capital, final_value, trading_days, risk.trading_days_per_year)
        drawdown = max_drawdown(values)
        return BacktestMetrics(
            total_return=(final_value - capital) / capital * 100.0 if capital else 0.0,
            annualized_return=growth * 100.0,
            volatility=annualized_volatility(returns, risk.trading_days_per_year) * 100.0,
            sharpe_ratio=sharpe_ratio(returns, risk.risk_free_rate, risk.trading_days_per_year),
            sortino_ratio=sortino_ratio(returns, risk.risk_free_rate, risk.trading_days_per_year),
            max_drawdown=drawdown.max_drawdown_percent,
            calmar_ratio=calmar_ratio(growth, drawdown.max_drawdown_percent),
            initial_capital=capital,
            final_value=final_value,
            trading_days=trading_days,
            years=trading_days / risk.trading_days_per_year,
            total_trades=len(run.book.trades),
        )

    def _data_quality(self, dates: Sequence[date], rows_per_ticker: Mapping[str, int],
                      requested_range: Optional[DateRange]) -> BacktestDataQuality:
        actual = DateRange(start=dates[0], end=dates[-1])
        span = requested_range or actual
        expected = expected_trading_days(span.start, span.end)
        return BacktestDataQuality(
            trading_days=len(dates),
            expected_days=expected,
            completeness=percent(len(dates), expected),
            rows_per_ticker=dict(rows_per_ticker),
            actual_range=actual,
            requested_range=requested_range,
        )

    def _coverage_warnings(self, quality: BacktestDataQuality, tickers: Sequence[str]) -> list[str]:
        threshold = quality.expected_days * self.config.validation.high_coverage_threshold
        warnings = []
        if quality.trading_days < threshold:
            warnings.append(
                f"Data may be incomplete: {quality.trading_days} trading days found, "
                f"expected ~{quality.expected_days}"
            )
        for ticker in tickers:
            rows = quality.rows_per_ticker[ticker]
            if rows < threshold:
                warnings.append(
                    f"{ticker} has only {rows} days of data (expected ~{quality.expected_days})"
                )
        return warnings
