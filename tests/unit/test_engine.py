"""Unit tests for the request/response boundary and host service."""

from dataclasses import replace
from datetime import date
from unittest.mock import Mock

import pytest

from quantlab.config.loader import ConfigLoader
from quantlab.data.models import Allocation, DataQuality
from quantlab.engine import (
    AnalysisService,
    BacktestRequest,
    RecalculationPolicy,
    StudyRequest,
    classify_error,
    run_backtest,
    run_study,
)
from quantlab.errors import InsufficientDataError, MetricsCalculationError, UnsupportedStudyError

START, END = "2024-01-01", "2024-03-31"


@pytest.fixture
def loader(tmp_path) -> ConfigLoader:
    return ConfigLoader.create(tmp_path)


def study_request(bars, **kwargs) -> StudyRequest:
    fields = dict(ticker="spy", study_type="daily_close_gt_open", start_date=START,
                  end_date=END, price_series=bars)
    fields.update(kwargs)
    return StudyRequest(**fields)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


class TestClassifyError:
    def test_categories(self):
        assert classify_error(UnsupportedStudyError("x")) == "input_error"
        assert classify_error(InsufficientDataError("x")) == "data_error"
        assert classify_error(MetricsCalculationError("x")) == "computation_error"
        assert classify_error(RuntimeError("x")) == "unknown_error"


class TestRunStudy:
    """Test study requests end to end"""

    def test_success(self, trending_bars, loader):
        response = run_study(study_request(trending_bars), loader)
        assert response.success
        assert response.ticker == "SPY"
        assert response.bars_analyzed == 60
        assert response.data_quality == DataQuality.HIGH
        payload = response.to_dict()
        assert payload["result"]["type"] == "percentage"
        assert payload["data_quality"] == "high"
        assert payload["error"] is None

    def test_bars_outside_range_are_dropped(self, trending_bars, loader):
        response = run_study(study_request(trending_bars, end_date="2024-01-31"), loader)
        assert response.success
        assert response.bars_analyzed == 23

    @pytest.mark.parametrize("overrides, message", [
        ({"ticker": " "}, "Ticker is required"),
        ({"start_date": None}, "Missing date range"),
        ({"start_date": "2024-04-01"}, "Start date is after end date"),
        ({"start_date": "not-a-date"}, "Invalid date range"),
    ])
    def test_input_errors(self, trending_bars, loader, overrides, message):
        response = run_study(study_request(trending_bars, **overrides), loader)
        assert not response.success
        assert response.error_type == "input_error"
        assert message in response.error
        assert response.result is None

    def test_unsupported_study(self, trending_bars, loader):
        response = run_study(study_request(trending_bars, study_type="tea_leaves"), loader)
        assert response.error_type == "input_error"
        assert "tea_leaves" in response.error

    def test_invalid_params(self, trending_bars, loader):
        response = run_study(study_request(trending_bars, params={"rsi_period": -3}), loader)
        assert response.error_type == "input_error"
        assert response.issues == ["rsi_period: Must be a positive integer (got: -3)"]

    def test_min_bars_cannot_be_lowered(self, make_bars, loader):
        bars = make_bars([100.0 + i for i in range(10)])
        response = run_study(study_request(bars, params={"min_bars": 5}), loader)
        assert not response.success
        assert response.error_type == "input_error"
        assert response.issues == ["min_bars: Must be an integer of at least 20 (got: 5)"]

    def test_min_bars_can_be_raised(self, make_bars, loader):
        bars = make_bars([100.0 + i for i in range(25)])
        response = run_study(study_request(bars, params={"min_bars": 30}), loader)
        assert response.error_type == "data_error"
        assert response.bars_analyzed == 25

    def test_insufficient_bars(self, make_bars, loader):
        response = run_study(study_request(make_bars([100.0 + i for i in range(19)])), loader)
        assert response.error_type == "data_error"
        assert response.bars_analyzed == 19

    def test_no_bars(self, loader):
        response = run_study(study_request([]), loader)
        assert response.error_type == "data_error"
        assert "No data" in response.error

    def test_malformed_series(self, trending_bars, loader):
        broken = list(trending_bars)
        broken[5] = replace(broken[5], high=broken[5].low - 1)
        response = run_study(study_request(broken), loader)
        assert response.error_type == "data_error"
        assert response.issues == ["SPY: 1 bars with high below low"]

    def test_fallback_flag_passthrough(self, trending_bars, loader):
        response = run_study(study_request(trending_bars, used_fallback_data=True), loader)
        assert response.used_fallback_data


class TestRunBacktest:
    """Test backtest requests end to end"""

    def request(self, bars_by_ticker, **kwargs) -> BacktestRequest:
        fields = dict(tickers=list(bars_by_ticker), start_date=START, end_date=END,
                      price_series_by_ticker=bars_by_ticker, initial_capital=10000.0)
        fields.update(kwargs)
        return BacktestRequest(**fields)

    def test_success(self, trending_bars, zigzag_bars, loader):
        response = run_backtest(self.request({"AAA": trending_bars, "BBB": zigzag_bars}), loader)
        assert response.success
        assert response.bars_analyzed == 120
        assert response.result.metrics.initial_capital == 10000.0
        payload = response.to_dict()
        assert payload["result"]["metrics"]["trading_days"] == 60
        assert payload["result"]["trades"][0]["side"] == "buy"

    def test_allocation_total(self, trending_bars, zigzag_bars, loader):
        allocations = [Allocation("AAA", 60.0), Allocation("BBB", 30.0)]
        response = run_backtest(
            self.request({"AAA": trending_bars, "BBB": zigzag_bars}, allocations=allocations), loader
        )
        assert response.error_type == "input_error"
        assert "sum to 100" in response.error

    def test_allocation_unknown_ticker(self, trending_bars, loader):
        allocations = [Allocation("AAA", 50.0), Allocation("ZZZ", 50.0)]
        response = run_backtest(self.request({"AAA": trending_bars}, allocations=allocations), loader)
        assert response.error_type == "input_error"

    def test_negative_allocation(self, trending_bars, zigzag_bars, loader):
        allocations = [Allocation("AAA", 120.0), Allocation("BBB", -20.0)]
        response = run_backtest(
            self.request({"AAA": trending_bars, "BBB": zigzag_bars}, allocations=allocations), loader
        )
        assert response.error_type == "input_error"
        assert response.issues == ["BBB: negative weight"]

    def test_unknown_strategy(self, trending_bars, loader):
        response = run_backtest(self.request({"AAA": trending_bars}, strategy="yolo"), loader)
        assert response.error_type == "input_error"

    def test_invalid_capital(self, trending_bars, loader):
        response = run_backtest(self.request({"AAA": trending_bars}, initial_capital=-5.0), loader)
        assert response.error_type == "input_error"
        assert response.issues[0].startswith("initial_capital")

    def test_excluded_ticker_warning(self, trending_bars, loader):
        response = run_backtest(self.request({"AAA": trending_bars, "ZZZ": []}), loader)
        assert response.success
        assert "No data found for ZZZ" in response.warnings
        assert response.result.excluded_tickers == ["ZZZ"]

    def test_no_data(self, loader):
        response = run_backtest(self.request({"AAA": [], "BBB": []}), loader)
        assert response.error_type == "data_error"
        assert "Insufficient data" in response.error

    def test_weight_only_on_missing_ticker(self, trending_bars, loader):
        allocations = [Allocation("AAA", 0.0), Allocation("ZZZ", 100.0)]
        response = run_backtest(
            self.request({"AAA": trending_bars, "ZZZ": []}, allocations=allocations), loader
        )
        assert response.error_type == "data_error"
        assert "no price data for any allocated ticker" in response.error

    def test_no_tickers(self, loader):
        response = run_backtest(self.request({}), loader)
        assert response.error_type == "input_error"


class TestRecalculationPolicy:
    """Test result reuse decisions"""

    @pytest.mark.parametrize("age_ms, force, expected", [
        (None, False, True),
        (100, False, False),
        (100, True, False),
        (1000, True, True),
        (1000, False, False),
        (300000, False, True),
    ])
    def test_decisions(self, age_ms, force, expected):
        assert RecalculationPolicy().should_recalculate(age_ms, force) is expected


class TestAnalysisService:
    """Test fetching, fallback and result reuse"""

    def test_reuse_and_expiry(self, trending_bars, loader):
        provider = Mock(fetch=Mock(return_value=trending_bars))
        provider.name = "mock"
        clock = FakeClock()
        service = AnalysisService(provider, loader, RecalculationPolicy(500, 10000), clock)

        first = service.study("SPY", "rsi_analysis", START, END)
        assert first.success
        clock.advance_ms(100)
        assert service.study("SPY", "rsi_analysis", START, END, force=True) is first
        clock.advance_ms(1000)
        assert service.study("SPY", "rsi_analysis", START, END) is first
        assert provider.fetch.call_count == 1

        clock.advance_ms(10000)
        refreshed = service.study("SPY", "rsi_analysis", START, END)
        assert refreshed is not first
        assert provider.fetch.call_count == 2

    def test_different_params_not_shared(self, trending_bars, loader):
        provider = Mock(fetch=Mock(return_value=trending_bars))
        provider.name = "mock"
        service = AnalysisService(provider, loader, clock=FakeClock())
        service.study("SPY", "rsi_analysis", START, END)
        service.study("SPY", "rsi_analysis", START, END, params={"rsi_period": 10})
        assert provider.fetch.call_count == 2

    def test_fallback_data(self, loader):
        provider = Mock(fetch=Mock(return_value=None))
        provider.name = "mock"
        response = AnalysisService(provider, loader, clock=FakeClock()).study(
            "SPY", "volatility_analysis", START, END
        )
        assert response.success
        assert response.used_fallback_data

    def test_backtest(self, trending_bars, loader):
        provider = Mock(fetch=Mock(return_value=trending_bars))
        provider.name = "mock"
        service = AnalysisService(provider, loader, clock=FakeClock())
        response = service.backtest(["AAA", "BBB"], START, END, strategy="equal_weight",
                                    initial_capital=50000.0)
        assert response.success
        assert not response.used_fallback_data
        assert service.backtest(["AAA", "BBB"], START, END, strategy="equal_weight",
                                initial_capital=50000.0) is response
        assert provider.fetch.call_count == 2
