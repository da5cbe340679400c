"""
Request/response boundary of the analysis core.

`run_study` and `run_backtest` accept already-fetched bars, screen them
with the price series validator, run the pure computation and convert
every failure in the error taxonomy into a structured response.
`AnalysisService` is the host convenience layer that fetches bars through
a provider and reuses recent results according to a RecalculationPolicy.
"""

import time
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Mapping, Optional, Sequence, Union

import structlog

from .config.defaults import DefaultConfig, RecalculationParams
from .config.loader import ConfigLoader
from .config.validation import ConfigValidator, ValidationError
from .data.models import Allocation, DataQuality, PriceBar, ValidationReport
from .data.providers import FallbackProvider, PriceBarProvider
from .data.validators import SeriesValidator, worst_quality
from .errors import (
    AllocationError,
    DataQualityError,
    InputValidationError,
    MalformedDataError,
    MissingDataError,
    SystemFailureError,
)
from .simulator.engine import BacktestSimulator
from .simulator.models import BacktestResult, DateRange
from .simulator.strategies import build_strategy
from .studies.models import StudyResult, StudyType
from .studies.runner import StudyRunner, parse_study_type
from .utils.serialization import to_serializable
from .utils.time import DateLike, to_date

logger = structlog.get_logger(__name__)

ALLOCATION_TOLERANCE = 1e-9


@dataclass(frozen=True)
class StudyRequest:
    ticker: str
    study_type: Union[str, StudyType]
    start_date: Optional[DateLike]
    end_date: Optional[DateLike]
    price_series: Sequence[PriceBar] = ()
    params: Optional[dict[str, Any]] = None
    used_fallback_data: bool = False


@dataclass(frozen=True)
class BacktestRequest:
    tickers: Sequence[str]
    start_date: Optional[DateLike]
    end_date: Optional[DateLike]
    price_series_by_ticker: Mapping[str, Sequence[PriceBar]] = field(default_factory=dict)
    initial_capital: Optional[float] = None
    strategy: str = "buy_and_hold"
    rebalance_frequency: Optional[str] = None
    allocations: Optional[Sequence[Allocation]] = None
    params: Optional[dict[str, Any]] = None
    used_fallback_data: bool = False


@dataclass(frozen=True)
class StudyResponse:
    success: bool
    ticker: str
    study_type: str
    result: Optional[StudyResult] = None
    bars_analyzed: int = 0
    used_fallback_data: bool = False
    data_quality: Optional[DataQuality] = None
    issues: list[str] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return to_serializable(self)


@dataclass(frozen=True)
class BacktestResponse:
    success: bool
    tickers: list[str]
    result: Optional[BacktestResult] = None
    bars_analyzed: int = 0
    used_fallback_data: bool = False
    data_quality: Optional[DataQuality] = None
    warnings: list[str] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return to_serializable(self)


def classify_error(error: Exception) -> str:
    """Map an exception from the taxonomy to a response error_type."""
    if isinstance(error, InputValidationError):
        return "input_error"
    if isinstance(error, DataQualityError):
        return "data_error"
    if isinstance(error, SystemFailureError):
        return "computation_error"
    return "unknown_error"


def _error_issues(error: Exception) -> list[str]:
    return list(getattr(error, "issues", None) or [])


def _format_validation_errors(errors: Sequence[ValidationError]) -> list[str]:
    return [f"{err.field}: {err.message} (got: {err.value})" for err in errors]


def _parse_range(start: Optional[DateLike], end: Optional[DateLike]) -> tuple[date, date]:
    if start is None or end is None:
        raise InputValidationError("Missing date range", context={"start": start, "end": end})
    try:
        start_day, end_day = to_date(start), to_date(end)
    except (TypeError, ValueError) as e:
        raise InputValidationError(f"Invalid date range: {e}", context={"start": start, "end": end})
    if start_day > end_day:
        raise InputValidationError(
            "Start date is after end date",
            context={"start": start_day.isoformat(), "end": end_day.isoformat()}
        )
    return start_day, end_day


def _in_range(bars: Sequence[PriceBar], start: date, end: date) -> list[PriceBar]:
    return [bar for bar in bars if start <= bar.date <= end]


def _check_params(section: str, params: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    if not params:
        return None
    errors = ConfigValidator.validate_config({section: params})
    if errors:
        raise InputValidationError(
            f"Invalid {section} parameters",
            context={section: params},
            issues=_format_validation_errors(errors)
        )
    return {section: params}


def _screen(validator: SeriesValidator, ticker: str, bars: Sequence[PriceBar],
            start: date, end: date) -> ValidationReport:
    """Validate a series; structural problems stop the request."""
    if not bars:
        raise MissingDataError(f"No data provided for {ticker}", data_type="price_series")
    report = validator.validate(ticker, bars, expected_range=(start, end))
    if not report.is_valid:
        raise MalformedDataError(
            f"Price series for {ticker} failed validation",
            issues=[f"{ticker}: {issue}" for issue in report.issues]
        )
    return report


def validate_allocations(tickers: Sequence[str], allocations: Sequence[Allocation]) -> None:
    """
    Check allocation weights before a simulation.

    Raises:
        AllocationError: Negative weights or a total other than 100
        InputValidationError: Allocation for a ticker that was not requested
    """
    requested = {t.upper() for t in tickers}
    unknown = sorted({a.ticker.upper() for a in allocations} - requested)
    if unknown:
        raise InputValidationError(
            "Allocations reference tickers that were not requested",
            context={"tickers": unknown}
        )

    negative = [a.ticker for a in allocations if a.weight_percent < 0]
    if negative:
        raise AllocationError(
            "Allocation weights must not be negative",
            total_weight=sum(a.weight_percent for a in allocations),
            issues=[f"{t}: negative weight" for t in negative]
        )

    total = sum(a.weight_percent for a in allocations)
    if abs(total - 100.0) > ALLOCATION_TOLERANCE:
        raise AllocationError(
            f"Allocation weights must sum to 100, got {total}",
            total_weight=total
        )


def run_study(request: StudyRequest, loader: Optional[ConfigLoader] = None) -> StudyResponse:
    """
    Run one study request.

    Args:
        request: Ticker, study type, date range and bars
        loader: Configuration loader; defaults to the repository config directory

    Returns:
        StudyResponse, with success=False and an error description on failure
    """
    loader = loader or ConfigLoader.create()
    ticker = (request.ticker or "").strip().upper()
    study_name = request.study_type.value if isinstance(request.study_type, StudyType) \
        else str(request.study_type)
    bars: list[PriceBar] = []

    try:
        if not ticker:
            raise InputValidationError("Ticker is required")
        start, end = _parse_range(request.start_date, request.end_date)
        study_type = parse_study_type(request.study_type)
        overrides = _check_params("studies", request.params)

        config = loader.load(ticker, overrides)
        bars = _in_range(request.price_series, start, end)
        report = _screen(SeriesValidator(config.validation), ticker, bars, start, end)

        result = StudyRunner(config).run(ticker, study_type, bars)

    except (InputValidationError, DataQualityError, SystemFailureError) as e:
        logger.warning(
            "Study request failed",
            ticker=ticker,
            study_type=study_name,
            error=str(e),
            error_type=classify_error(e),
        )
        return StudyResponse(
            success=False,
            ticker=ticker,
            study_type=study_name,
            bars_analyzed=len(bars),
            used_fallback_data=request.used_fallback_data,
            issues=_error_issues(e),
            error=str(e),
            error_type=classify_error(e),
        )

    return StudyResponse(
        success=True,
        ticker=ticker,
        study_type=study_type.value,
        result=result,
        bars_analyzed=len(bars),
        used_fallback_data=request.used_fallback_data,
        data_quality=report.data_quality,
        issues=list(report.issues),
    )


def _backtest_config(loader: ConfigLoader, tickers: Sequence[str],
                     overrides: Optional[dict[str, Any]]) -> DefaultConfig:
    # Per-ticker overrides only apply to single-instrument runs
    ticker = tickers[0] if len(tickers) == 1 else None
    return loader.load(ticker, overrides)


def run_backtest(request: BacktestRequest, loader: Optional[ConfigLoader] = None) -> BacktestResponse:
    """
    Run one backtest request.

    Tickers with no bars in range are excluded with a warning; if none has
    data the response is a data_error ("insufficient data").

    Args:
        request: Tickers, date range, strategy, allocations and bars
        loader: Configuration loader; defaults to the repository config directory

    Returns:
        BacktestResponse, with success=False and an error description on failure
    """
    loader = loader or ConfigLoader.create()
    tickers = [t.strip().upper() for t in request.tickers if t and t.strip()]
    bars_analyzed = 0

    try:
        if not tickers:
            raise InputValidationError("At least one ticker is required")
        start, end = _parse_range(request.start_date, request.end_date)
        if request.allocations:
            validate_allocations(tickers, request.allocations)

        params = dict(request.params or {})
        if request.initial_capital is not None:
            params["initial_capital"] = request.initial_capital
        if request.rebalance_frequency is not None:
            params["rebalance_frequency"] = request.rebalance_frequency
        overrides = _check_params("backtest", params)
        config = _backtest_config(loader, tickers, overrides)
        strategy = build_strategy(request.strategy, config.backtest)

        supplied = {t.upper(): bars for t, bars in request.price_series_by_ticker.items()}
        validator = SeriesValidator(config.validation)
        series: dict[str, list[PriceBar]] = {}
        qualities = []
        issues: list[str] = []
        for ticker in tickers:
            bars = _in_range(supplied.get(ticker, ()), start, end)
            series[ticker] = bars
            if not bars:
                continue
            report = _screen(validator, ticker, bars, start, end)
            qualities.append(report.data_quality)
            issues.extend(f"{ticker}: {issue}" for issue in report.issues)
        bars_analyzed = sum(len(bars) for bars in series.values())

        result = BacktestSimulator(config).run(
            series,
            strategy,
            allocations=request.allocations,
            initial_capital=config.backtest.initial_capital,
            requested_range=DateRange(start=start, end=end),
        )

    except (InputValidationError, DataQualityError, SystemFailureError) as e:
        logger.warning(
            "Backtest request failed",
            tickers=tickers,
            strategy=request.strategy,
            error=str(e),
            error_type=classify_error(e),
        )
        return BacktestResponse(
            success=False,
            tickers=tickers,
            bars_analyzed=bars_analyzed,
            used_fallback_data=request.used_fallback_data,
            issues=_error_issues(e),
            error=str(e),
            error_type=classify_error(e),
        )

    return BacktestResponse(
        success=True,
        tickers=tickers,
        result=result,
        bars_analyzed=bars_analyzed,
        used_fallback_data=request.used_fallback_data,
        data_quality=worst_quality(*qualities),
        warnings=list(result.warnings),
        issues=issues,
    )


@dataclass(frozen=True)
class RecalculationPolicy:
    """
    When a repeated request may reuse its previous result.

    Within `debounce_ms` of the last computation the previous result is
    always reused, even on a forced refresh. Otherwise a result is reused
    until it is `stale_after_ms` old.
    """
    debounce_ms: int = 500
    stale_after_ms: int = 300000

    @classmethod
    def from_params(cls, params: RecalculationParams) -> "RecalculationPolicy":
        return cls(debounce_ms=params.debounce_ms, stale_after_ms=params.stale_after_ms)

    def should_recalculate(self, age_ms: Optional[float], force: bool = False) -> bool:
        if age_ms is None:
            return True
        if age_ms < self.debounce_ms:
            return False
        if force:
            return True
        return age_ms >= self.stale_after_ms


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return tuple(sorted((k, _freeze(v)) for k, v in value.items()))
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


class AnalysisService:
    """
    Host layer: fetch bars, call the pure core, reuse fresh results.

    The cache is per service instance; the core functions it calls stay
    stateless.
    """

    def __init__(self, provider: Union[FallbackProvider, PriceBarProvider],
                 loader: Optional[ConfigLoader] = None,
                 policy: Optional[RecalculationPolicy] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.provider = provider if isinstance(provider, FallbackProvider) else FallbackProvider(provider)
        self.loader = loader or ConfigLoader.create()
        self.policy = policy or RecalculationPolicy.from_params(self.loader.defaults.recalculation)
        self.clock = clock
        self._results: dict[Any, tuple[float, Any]] = {}

    def _now_ms(self) -> float:
        return self.clock() * 1000.0

    def _cached(self, key: Any, force: bool) -> Optional[Any]:
        entry = self._results.get(key)
        age = self._now_ms() - entry[0] if entry else None
        if self.policy.should_recalculate(age, force):
            return None
        logger.debug("Reusing previous result", key=str(key), age_ms=age)
        return entry[1] if entry else None

    def _store(self, key: Any, response: Any) -> Any:
        self._results[key] = (self._now_ms(), response)
        return response

    def study(self, ticker: str, study_type: Union[str, StudyType], start: DateLike, end: DateLike,
              params: Optional[dict[str, Any]] = None, force: bool = False) -> StudyResponse:
        """Fetch bars for one ticker and run a study, reusing a fresh result."""
        key = ("study", ticker.upper(), str(getattr(study_type, "value", study_type)),
               str(start), str(end), _freeze(params or {}))
        cached = self._cached(key, force)
        if cached is not None:
            return cached

        fetched = self.provider.fetch(ticker, start, end)
        response = run_study(
            StudyRequest(
                ticker=ticker,
                study_type=study_type,
                start_date=start,
                end_date=end,
                price_series=fetched.bars,
                params=params,
                used_fallback_data=fetched.used_fallback_data,
            ),
            self.loader,
        )
        return self._store(key, response)

    def backtest(self, tickers: Sequence[str], start: DateLike, end: DateLike,
                 strategy: str = "buy_and_hold",
                 allocations: Optional[Sequence[Allocation]] = None,
                 initial_capital: Optional[float] = None,
                 rebalance_frequency: Optional[str] = None,
                 params: Optional[dict[str, Any]] = None,
                 force: bool = False) -> BacktestResponse:
        """Fetch bars for every ticker and run a backtest, reusing a fresh result."""
        key = (
            "backtest",
            tuple(t.upper() for t in tickers),
            str(start),
            str(end),
            strategy,
            _freeze([(a.ticker.upper(), a.weight_percent) for a in allocations or ()]),
            initial_capital,
            rebalance_frequency,
            _freeze(params or {}),
        )
        cached = self._cached(key, force)
        if cached is not None:
            return cached

        series = {}
        used_fallback = False
        for ticker in tickers:
            fetched = self.provider.fetch(ticker, start, end)
            series[ticker.upper()] = fetched.bars
            used_fallback = used_fallback or fetched.used_fallback_data

        response = run_backtest(
            BacktestRequest(
                tickers=list(tickers),
                start_date=start,
                end_date=end,
                price_series_by_ticker=series,
                initial_capital=initial_capital,
                strategy=strategy,
                rebalance_frequency=rebalance_frequency,
                allocations=allocations,
                params=params,
                used_fallback_data=used_fallback,
            ),
            self.loader,
        )
        return self._store(key, response)
