"""Tests for the backtest simulator"""

from datetime import date
from unittest.mock import patch

import pytest

from quantlab.data.models import Allocation, TradeSide
from quantlab.errors import InsufficientDataError, SimulationError
from quantlab.simulator import BacktestSimulator, DateRange, SimulationState
from quantlab.simulator.engine import SimulationRun, normalize_weights
from quantlab.simulator.strategies import (
    buy_and_hold,
    equal_weight,
    mean_reversion,
    momentum,
    rsi_threshold,
)


class TestNormalizeWeights:
    """Test weight resolution over the simulated tickers"""

    def test_equal_weight_default(self):
        assert normalize_weights(["A", "B", "C", "D"], None) == {"A": 25.0, "B": 25.0, "C": 25.0, "D": 25.0}

    def test_excluded_weight_redistributed(self):
        """Test weights of missing tickers are spread over the rest"""
        allocations = [Allocation("A", 60.0), Allocation("B", 20.0), Allocation("C", 20.0)]
        weights = normalize_weights(["A", "B"], allocations)
        assert weights["A"] == pytest.approx(75.0)
        assert weights["B"] == pytest.approx(25.0)

    def test_ticker_case(self):
        assert normalize_weights(["SPY"], [Allocation("spy", 100.0)]) == {"SPY": 100.0}


class TestBuyAndHold:
    """Test the initial allocation and mark-to-market"""

    def test_whole_shares_and_residual_cash(self, make_bars):
        """Test floor(budget / price) shares with the remainder kept as cash"""
        result = BacktestSimulator().run({"AAA": make_bars([30.0, 31.0, 33.0])}, buy_and_hold(),
                                         initial_capital=100.0)
        assert len(result.trades) == 1
        trade = result.trades[0]
        assert (trade.side, trade.shares, trade.price) == (TradeSide.BUY, 3, 30.0)
        assert result.cash_remaining == pytest.approx(10.0)
        assert result.final_holdings == {"AAA": 3}
        assert [s.total_value for s in result.portfolio_history] == pytest.approx([100.0, 103.0, 109.0])
        assert result.metrics.final_value == pytest.approx(109.0)
        assert result.metrics.total_return == pytest.approx(9.0)
        assert result.metrics.max_drawdown == 0.0
        assert result.metrics.trading_days == 3

    def test_two_tickers(self, make_bars):
        """Test each ticker gets its share of the capital"""
        bars = {"AAA": make_bars([50.0] * 3), "BBB": make_bars([30.0] * 3)}
        result = BacktestSimulator().run(bars, buy_and_hold(), initial_capital=1000.0)
        assert result.final_holdings == {"AAA": 10, "BBB": 16}
        assert result.cash_remaining == pytest.approx(20.0)
        assert result.metrics.total_return == pytest.approx(0.0)

    def test_allocations(self, make_bars):
        bars = {"AAA": make_bars([10.0] * 3), "BBB": make_bars([10.0] * 3)}
        allocations = [Allocation("AAA", 75.0), Allocation("BBB", 25.0)]
        result = BacktestSimulator().run(bars, buy_and_hold(), allocations, initial_capital=1000.0)
        assert result.final_holdings == {"AAA": 75, "BBB": 25}

    def test_drawdown_from_snapshots(self, make_bars):
        result = BacktestSimulator().run({"AAA": make_bars([10.0, 12.0, 9.0, 11.0])}, buy_and_hold(),
                                         initial_capital=100.0)
        assert result.metrics.max_drawdown == pytest.approx(25.0)


class TestEqualWeight:
    """Test periodic rebalancing"""

    def test_monthly_rebalance(self, make_bars):
        """Test a liquidate-and-rebuy at the first trading day of February"""
        # 23 January weekdays followed by 2 in February
        bars = {
            "AAA": make_bars([100.0 + i for i in range(25)]),
            "BBB": make_bars([50.0] * 25),
        }
        result = BacktestSimulator().run(bars, equal_weight("monthly"), initial_capital=10000.0)

        assert len(result.trades) == 6
        rebalance_trades = [t for t in result.trades if t.date == date(2024, 2, 1)]
        assert [t.side for t in rebalance_trades] == [TradeSide.SELL, TradeSide.SELL, TradeSide.BUY, TradeSide.BUY]
        assert not [t for t in result.trades if t.date == date(2024, 2, 2)]

    def test_quarterly_rebalance(self, make_bars):
        """Test no rebalance inside a quarter"""
        bars = {"AAA": make_bars([100.0 + i for i in range(25)])}
        result = BacktestSimulator().run(bars, equal_weight("quarterly"), initial_capital=10000.0)
        assert len(result.trades) == 1


class TestMissingData:
    """Test exclusion, pending allocation and stale prices"""

    def test_empty_ticker_excluded(self, make_bars):
        bars = {"AAA": make_bars([10.0] * 3), "ZZZ": []}
        result = BacktestSimulator().run(bars, buy_and_hold(), initial_capital=100.0)
        assert result.excluded_tickers == ["ZZZ"]
        assert "No data found for ZZZ" in result.warnings
        assert result.final_holdings == {"AAA": 10}

    def test_no_data_at_all(self):
        with pytest.raises(InsufficientDataError):
            BacktestSimulator().run({"AAA": [], "BBB": []}, buy_and_hold())

    def test_weight_only_on_excluded_ticker(self, make_bars):
        """Test a run holding nothing but cash is rejected rather than reported"""
        bars = {"AAA": [], "BBB": make_bars([10.0] * 3)}
        allocations = [Allocation("AAA", 100.0), Allocation("BBB", 0.0)]
        with pytest.raises(InsufficientDataError) as exc_info:
            BacktestSimulator().run(bars, buy_and_hold(), allocations, initial_capital=100.0)
        assert "allocated ticker" in str(exc_info.value)

    def test_pending_allocation(self, make_bars):
        """Test a late-starting ticker is bought with its reserved cash on its first priced day"""
        bars = {
            "AAA": make_bars([100.0] * 5),
            "BBB": make_bars([50.0] * 3, start=date(2024, 1, 3)),
        }
        result = BacktestSimulator().run(bars, buy_and_hold(), initial_capital=1000.0)
        late_buy = [t for t in result.trades if t.ticker == "BBB"]
        assert len(late_buy) == 1
        assert late_buy[0].date == date(2024, 1, 3)
        assert late_buy[0].shares == 10
        assert result.portfolio_history[0].cash == pytest.approx(500.0)

    def test_stale_price(self, make_bars):
        """Test a ticker missing a date is valued at its last close"""
        aaa = make_bars([10.0, 12.0, 14.0])
        bars = {"AAA": [aaa[0], aaa[2]], "BBB": make_bars([5.0] * 3)}
        result = BacktestSimulator().run(bars, buy_and_hold(), initial_capital=100.0)
        middle = result.portfolio_history[1]
        # AAA: 5 shares still marked at 10 on the second day
        assert middle.holdings_value == pytest.approx(5 * 10.0 + 10 * 5.0)


class TestSignalStrategies:
    """Test signal-driven simulation"""

    def test_momentum_holds_only_rising_ticker(self, make_bars):
        bars = {
            "UP": make_bars([100.0 + i for i in range(10)]),
            "DOWN": make_bars([100.0 - i for i in range(10)]),
        }
        result = BacktestSimulator().run(bars, momentum(lookback=2), initial_capital=1000.0)
        assert set(result.final_holdings) == {"UP"}
        assert result.trades[0].date == date(2024, 1, 3)
        assert all(t.ticker == "UP" for t in result.trades)

    def test_zero_weight_ticker_not_traded(self, make_bars):
        bars = {
            "A": make_bars([100.0 + i for i in range(10)]),
            "B": make_bars([100.0 + i for i in range(10)]),
        }
        allocations = [Allocation("A", 100.0), Allocation("B", 0.0)]
        result = BacktestSimulator().run(bars, momentum(lookback=2), allocations, initial_capital=1000.0)
        assert {t.ticker for t in result.trades} == {"A"}
        assert set(result.final_holdings) == {"A"}

    def test_mean_reversion_round_trip(self, make_bars):
        """Test entry on a 2-sigma dip and exit once the close is back above the average"""
        bars = {"AAA": make_bars([10.0, 10.0, 10.0, 10.0, 5.0, 5.0, 12.0, 12.0])}
        result = BacktestSimulator().run(bars, mean_reversion(lookback=5, entry_z=1.0),
                                         initial_capital=1000.0)
        assert [(t.date, t.side, t.shares, t.price) for t in result.trades] == [
            (date(2024, 1, 5), TradeSide.BUY, 200, 5.0),
            (date(2024, 1, 9), TradeSide.SELL, 200, 12.0),
        ]
        assert result.cash_remaining == pytest.approx(2400.0)
        assert result.final_holdings == {}

    def test_rsi_threshold_round_trip(self, make_bars):
        """Test entry when RSI(3) reaches 0 and exit once it passes 70"""
        bars = {"AAA": make_bars([10.0, 9.0, 8.0, 7.0, 8.0, 9.0, 10.0, 11.0])}
        result = BacktestSimulator().run(bars, rsi_threshold(period=3, oversold=30.0, overbought=70.0),
                                         initial_capital=1000.0)
        assert [(t.date, t.side, t.shares, t.price) for t in result.trades] == [
            (date(2024, 1, 4), TradeSide.BUY, 142, 7.0),
            (date(2024, 1, 9), TradeSide.SELL, 142, 10.0),
        ]
        assert result.metrics.final_value == pytest.approx(1426.0)

    def test_rsi_state_not_shared_between_runs(self, make_bars):
        bars = {"AAA": make_bars([10.0, 9.0, 8.0, 7.0, 8.0, 9.0, 10.0, 11.0])}
        strategy = rsi_threshold(period=3)
        first = BacktestSimulator().run(bars, strategy, initial_capital=1000.0)
        second = BacktestSimulator().run(bars, strategy, initial_capital=1000.0)
        assert second.trades == first.trades


class TestDataQuality:
    """Test coverage figures and warnings"""

    def test_requested_range(self, make_bars):
        bars = {"AAA": make_bars([10.0] * 5)}
        requested = DateRange(date(2024, 1, 1), date(2024, 3, 31))
        result = BacktestSimulator().run(bars, buy_and_hold(), requested_range=requested)
        quality = result.data_quality
        assert quality.expected_days == 90 * 5 // 7
        assert quality.rows_per_ticker == {"AAA": 5}
        assert quality.actual_range == DateRange(date(2024, 1, 1), date(2024, 1, 5))
        assert any(w.startswith("Data may be incomplete") for w in result.warnings)
        assert any(w.startswith("AAA has only 5 days") for w in result.warnings)

    def test_full_coverage(self, trending_bars):
        result = BacktestSimulator().run({"AAA": trending_bars}, buy_and_hold())
        assert result.warnings == []
        assert result.data_quality.completeness >= 100.0


class TestSimulationRun:
    """Test lifecycle transitions"""

    def test_transitions_logged(self, make_bars):
        closes_by_date = {bar.date: {"AAA": bar.close} for bar in make_bars([10.0, 11.0])}
        run = SimulationRun("run-1", buy_and_hold(), {"AAA": 100.0}, closes_by_date, 100.0)
        with patch("quantlab.simulator.engine.log_state_transition") as mock_log:
            run.execute()
        assert run.state == SimulationState.COMPLETED
        assert [c.kwargs["to_state"] for c in mock_log.call_args_list] == [
            "initial_allocation", "running", "completed"
        ]

    def test_invalid_transition(self, make_bars):
        closes_by_date = {bar.date: {"AAA": bar.close} for bar in make_bars([10.0])}
        run = SimulationRun("run-2", buy_and_hold(), {"AAA": 100.0}, closes_by_date, 100.0)
        with pytest.raises(SimulationError):
            run.transition(SimulationState.COMPLETED, "skip")
