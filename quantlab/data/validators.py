"""
Price series validation framework.

Sanity-checks raw OHLCV series before any computation trusts them, and
checks derived artifacts (correlation matrices, portfolio metrics) against
structural and realistic-range rules.

Structural violations (empty input, non-positive or inverted prices,
negative volume) make a series invalid. Everything else - sparse coverage,
zero-volume bars, ordering problems, stale prices - only lowers the
reported data quality.
"""

import math
from datetime import date
from typing import Any, Optional, Sequence

import structlog

from ..config.defaults import ValidationParams
from ..utils.time import expected_trading_days
from .models import (
    CorrelationValidationResult,
    DataAuditReport,
    DataQuality,
    MetricsValidationResult,
    PriceBar,
    TickerAudit,
    ValidationReport,
)

logger = structlog.get_logger(__name__)

_QUALITY_RANK = {DataQuality.HIGH: 0, DataQuality.MEDIUM: 1, DataQuality.LOW: 2}


def worst_quality(*qualities: DataQuality) -> DataQuality:
    """Return the lowest of the given quality levels."""
    return max(qualities, key=lambda q: _QUALITY_RANK[q], default=DataQuality.HIGH)


class SeriesValidator:
    """Validates price series, correlation matrices and portfolio metrics."""

    def __init__(self, params: Optional[ValidationParams] = None):
        """
        Initialize validator with configuration.

        Args:
            params: Validation parameters, defaults when omitted
        """
        self.params = params or ValidationParams()

    def validate(
        self,
        ticker: str,
        bars: Sequence[PriceBar],
        expected_range: Optional[tuple[date, date]] = None
    ) -> ValidationReport:
        """
        Validate one instrument's bar series.

        Args:
            ticker: Instrument symbol (for messages and logs)
            bars: Bars in provider order
            expected_range: Optional (start, end) the series should cover

        Returns:
            ValidationReport with validity, quality and issues
        """
        if not bars:
            logger.warning("Price series empty", ticker=ticker)
            return ValidationReport.empty()

        issues: list[str] = []
        score = 100.0
        structural = False
        n = len(bars)

        invalid_prices = sum(
            1 for b in bars if min(b.open, b.high, b.low, b.close) <= 0
        )
        inverted = sum(1 for b in bars if b.high < b.low)
        inconsistent = sum(
            1 for b in bars
            if b.high >= b.low and (
                max(b.open, b.close) > b.high or min(b.open, b.close) < b.low
            )
        )
        negative_volume = sum(1 for b in bars if b.volume < 0)
        zero_volume = sum(1 for b in bars if b.volume == 0)

        if invalid_prices:
            issues.append(f"{invalid_prices} bars with non-positive prices")
            score -= (invalid_prices / n) * 30
            structural = True

        if inverted:
            issues.append(f"{inverted} bars with high below low")
            score -= (inverted / n) * 25
            structural = True

        if inconsistent:
            issues.append(f"{inconsistent} bars with open/close outside the high-low range")
            score -= (inconsistent / n) * 25

        if negative_volume:
            issues.append(f"{negative_volume} bars with negative volume")
            score -= (negative_volume / n) * 20
            structural = True

        if zero_volume:
            issues.append(f"{zero_volume} bars with zero volume")
            score -= (zero_volume / n) * 5

        out_of_order = sum(1 for i in range(1, n) if bars[i].date <= bars[i - 1].date)
        if out_of_order:
            issues.append(f"{out_of_order} dates out of order or duplicated")
            score -= 15

        coverage = None
        coverage_cap = DataQuality.HIGH
        if expected_range is not None:
            start, end = expected_range
            if bars[0].date < start:
                issues.append(f"Data starts before expected range: {bars[0].date.isoformat()}")
            if bars[-1].date > end:
                issues.append(f"Data ends after expected range: {bars[-1].date.isoformat()}")

            expected_days = expected_trading_days(start, end)
            if expected_days > 0:
                coverage = n / expected_days
                if coverage < self.params.low_coverage_threshold:
                    issues.append(f"Low data coverage: {coverage * 100:.1f}% of expected trading days")
                    score -= 30
                    coverage_cap = DataQuality.LOW
                elif coverage < self.params.high_coverage_threshold:
                    issues.append(f"Low data coverage: {coverage * 100:.1f}% of expected trading days")
                    score -= 10
                    coverage_cap = DataQuality.MEDIUM

        unique_closes = len({b.close for b in bars})
        if n > self.params.stale_check_min_bars and unique_closes < n * self.params.min_unique_close_ratio:
            issues.append("Suspiciously low price variation - possible stale data")
            score -= 20

        quality = worst_quality(self._quality_from_score(score), coverage_cap)
        is_valid = not structural

        logger.info(
            "Price series validated",
            ticker=ticker,
            bars=n,
            is_valid=is_valid,
            data_quality=quality.value,
            issues=len(issues),
        )

        return ValidationReport(
            is_valid=is_valid,
            data_quality=quality,
            issues=issues,
            quality_score=max(score, 0.0),
            coverage=coverage,
        )

    def validate_correlation_matrix(
        self,
        matrix: Sequence[Sequence[float]],
        labels: Optional[Sequence[str]] = None
    ) -> CorrelationValidationResult:
        """
        Validate square shape, unit diagonal, symmetry and [-1, 1] range.

        The matrix is only read, never modified.
        """
        tolerance = self.params.matrix_tolerance

        if not matrix:
            return CorrelationValidationResult(
                is_valid=False,
                diagonal_valid=False,
                symmetry_valid=False,
                range_valid=False,
                issues=["Empty correlation matrix"],
            )

        n = len(matrix)
        for i, row in enumerate(matrix):
            if row is None or len(row) != n:
                return CorrelationValidationResult(
                    is_valid=False,
                    diagonal_valid=False,
                    symmetry_valid=False,
                    range_valid=False,
                    issues=[f"Row {i} has incorrect length"],
                )

        def label(i: int) -> str:
            return labels[i] if labels is not None and i < len(labels) else str(i)

        issues = []
        diagonal_valid = True
        symmetry_valid = True
        range_valid = True

        for i in range(n):
            if abs(matrix[i][i] - 1.0) > tolerance:
                diagonal_valid = False
                issues.append(f"Diagonal value at {label(i)} is {matrix[i][i]:.4f}, expected 1.0")

        for i in range(n):
            for j in range(i + 1, n):
                if abs(matrix[i][j] - matrix[j][i]) > tolerance:
                    symmetry_valid = False
                    issues.append(
                        f"Matrix not symmetric at ({label(i)},{label(j)}): "
                        f"{matrix[i][j]:.4f} vs {matrix[j][i]:.4f}"
                    )
                for value in (matrix[i][j], matrix[j][i]):
                    if not -1.0 <= value <= 1.0:
                        range_valid = False
                        issues.append(
                            f"Correlation at ({label(i)},{label(j)}) = {value:.4f} outside [-1, 1]"
                        )

        is_valid = diagonal_valid and symmetry_valid and range_valid

        logger.debug(
            "Correlation matrix validated",
            size=n,
            is_valid=is_valid,
            diagonal_valid=diagonal_valid,
            symmetry_valid=symmetry_valid,
            range_valid=range_valid,
        )

        return CorrelationValidationResult(
            is_valid=is_valid,
            diagonal_valid=diagonal_valid,
            symmetry_valid=symmetry_valid,
            range_valid=range_valid,
            issues=issues,
        )

    def validate_portfolio_metrics(
        self,
        metrics: dict[str, Any],
        weighted_components: Optional[Sequence[tuple[float, float]]] = None
    ) -> MetricsValidationResult:
        """
        Flag metrics outside realistic ranges and cross-check the return.

        Args:
            metrics: Metric name to value (fractions, e.g. 0.25 for 25%)
            weighted_components: Optional (weight, return) pairs per asset;
                the weighted sum must match metrics['annual_return']

        Returns:
            MetricsValidationResult
        """
        issues = []
        metrics_in_range: dict[str, bool] = {}

        for metric, (low, high) in self.params.metric_ranges.items():
            value = metrics.get(metric)
            if value is None:
                continue
            in_range = math.isfinite(value) and low <= value <= high
            metrics_in_range[metric] = in_range
            if not in_range:
                issues.append(f"{metric} ({value:.4f}) outside realistic range [{low}, {high}]")

        weighted_return_match = True
        discrepancy = None
        annual_return = metrics.get("annual_return")

        if weighted_components and annual_return is not None:
            weighted = sum(weight * ret for weight, ret in weighted_components)
            discrepancy = abs(weighted - annual_return)
            if discrepancy > self.params.weighted_return_tolerance:
                weighted_return_match = False
                issues.append(
                    f"Portfolio return ({annual_return * 100:.2f}%) doesn't match weighted sum "
                    f"({weighted * 100:.2f}%), discrepancy: {discrepancy * 100:.4f}%"
                )

        return MetricsValidationResult(
            is_valid=not issues,
            metrics_in_range=metrics_in_range,
            weighted_return_match=weighted_return_match,
            issues=issues,
            discrepancy=discrepancy,
        )

    def audit(
        self,
        bars_by_ticker: dict[str, Sequence[PriceBar]],
        correlation_matrix: Optional[Sequence[Sequence[float]]] = None
    ) -> DataAuditReport:
        """
        Build an audit report over every series feeding a computation.
        """
        audits = []
        total_issues = 0
        overall = DataQuality.HIGH

        for ticker, bars in bars_by_ticker.items():
            report = self.validate(ticker, bars)
            audits.append(TickerAudit(
                ticker=ticker,
                bar_count=len(bars),
                first_date=bars[0].date if bars else None,
                last_date=bars[-1].date if bars else None,
                data_quality=report.data_quality,
                issues=list(report.issues),
            ))
            total_issues += len(report.issues)
            overall = worst_quality(overall, report.data_quality)

        if correlation_matrix is not None:
            matrix_report = self.validate_correlation_matrix(
                correlation_matrix, list(bars_by_ticker.keys())
            )
            total_issues += len(matrix_report.issues)

        total_bars = sum(a.bar_count for a in audits)
        summary = (
            f"Audit of {len(audits)} tickers with {total_bars:,} total bars. "
            f"Data quality: {overall.value}. {total_issues} issue(s) found."
        )

        return DataAuditReport(
            ticker_audits=audits,
            overall_data_quality=overall,
            total_issues=total_issues,
            summary=summary,
        )

    def _quality_from_score(self, score: float) -> DataQuality:
        if score >= self.params.high_quality_score:
            return DataQuality.HIGH
        if score >= self.params.medium_quality_score:
            return DataQuality.MEDIUM
        return DataQuality.LOW
