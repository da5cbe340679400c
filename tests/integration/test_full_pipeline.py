"""End-to-end tests: provider -> validator -> study/simulator -> response."""


import pytest

from quantlab.config.loader import ConfigLoader
from quantlab.data.models import Allocation, DataQuality
from quantlab.data.providers import DeterministicSyntheticProvider, RealProvider
from quantlab.data.validators import SeriesValidator
from quantlab.engine import AnalysisService
from quantlab.metrics.returns import simple_returns
from quantlab.metrics.risk import correlation_matrix


def rows_from(bars):
    return [
        {"date": b.date.isoformat(), "open": b.open, "high": b.high, "low": b.low,
         "close": b.close, "volume": b.volume}
        for b in bars
    ]


@pytest.fixture
def service(tmp_path):
    synthetic = DeterministicSyntheticProvider()

    def fetcher(ticker, start, end):
        if ticker == "DOWN":
            raise ConnectionError("provider offline")
        return rows_from(synthetic.fetch(ticker, start, end))

    return AnalysisService(RealProvider(fetcher), ConfigLoader.create(tmp_path))


class TestStudyPipeline:
    def test_study_from_real_provider(self, service):
        response = service.study("SPY", "up_down_streaks", "2023-01-01", "2023-12-31")
        assert response.success
        assert not response.used_fallback_data
        assert response.data_quality == DataQuality.HIGH
        payload = response.to_dict()
        assert payload["result"]["type"] == "streaks"
        assert payload["bars_analyzed"] == response.bars_analyzed > 200

    def test_study_falls_back(self, service):
        response = service.study("DOWN", "price_targets", "2023-01-01", "2023-12-31")
        assert response.success
        assert response.used_fallback_data

    def test_study_too_short_range(self, service):
        response = service.study("SPY", "rsi_analysis", "2023-01-02", "2023-01-13")
        assert not response.success
        assert response.error_type == "data_error"


class TestBacktestPipeline:
    def test_portfolio_backtest(self, service):
        response = service.backtest(
            ["SPY", "AGG"], "2022-01-01", "2023-12-31",
            strategy="equal_weight",
            allocations=[Allocation("SPY", 60.0), Allocation("AGG", 40.0)],
            initial_capital=50000.0,
            rebalance_frequency="quarterly",
        )
        assert response.success
        result = response.result
        assert result.metrics.initial_capital == 50000.0
        assert result.metrics.trading_days == len(result.portfolio_history)
        # One initial buy per ticker, then sell/buy pairs at each quarter rollover
        assert len(result.trades) == 2 + 4 * 7
        assert all(s.total_value > 0 for s in result.portfolio_history)
        assert result.cash_remaining >= 0

    def test_metrics_pass_sanity_checks(self, service, default_config):
        response = service.backtest(["SPY"], "2022-01-01", "2023-12-31")
        metrics = response.result.metrics
        report = SeriesValidator(default_config.validation).validate_portfolio_metrics({
            "sharpe_ratio": metrics.sharpe_ratio,
            "sortino_ratio": metrics.sortino_ratio,
            "max_drawdown": metrics.max_drawdown / 100.0,
            "annual_volatility": metrics.volatility / 100.0,
            "annual_return": metrics.annualized_return / 100.0,
        })
        assert report.is_valid, report.issues

    def test_correlation_matrix_of_returns(self):
        provider = DeterministicSyntheticProvider()
        returns = {
            t: simple_returns([b.close for b in provider.fetch(t, "2023-01-01", "2023-06-30")])
            for t in ("SPY", "QQQ", "IWM")
        }
        matrix = correlation_matrix(returns)
        report = SeriesValidator().validate_correlation_matrix(matrix.matrix, matrix.labels)
        assert report.is_valid
