"""
Canonical data models for price series and portfolio bookkeeping.

This module defines immutable records produced by providers (bars) and by
the simulator (trades, snapshots), plus validation reports attached to a
series or matrix before use.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class DataQuality(str, Enum):
    """Quality signal attached to a validated series."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TradeSide(str, Enum):
    """Direction of an executed trade."""
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class PriceBar:
    """One instrument, one trading day."""
    date: date          # Trading date
    open: float         # Opening price
    high: float         # High price
    low: float          # Low price
    close: float        # Closing price
    volume: float       # Shares traded


@dataclass(frozen=True)
class Allocation:
    """Target weight for one ticker, in percent."""
    ticker: str
    weight_percent: float


@dataclass(frozen=True)
class Trade:
    """Executed trade emitted by the simulator."""
    date: date
    ticker: str
    side: TradeSide
    shares: int
    price: float


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Marked-to-market portfolio state at one date."""
    date: date
    total_value: float
    cash: float
    holdings_value: float


@dataclass(frozen=True)
class ValidationReport:
    """Result of validating a price bar series."""
    is_valid: bool
    data_quality: DataQuality
    issues: list[str] = field(default_factory=list)
    quality_score: float = 100.0
    coverage: Optional[float] = None

    @classmethod
    def empty(cls) -> "ValidationReport":
        """Report for an empty series."""
        return cls(
            is_valid=False,
            data_quality=DataQuality.LOW,
            issues=["No data provided"],
            quality_score=0.0,
        )


@dataclass(frozen=True)
class CorrelationMatrix:
    """Labelled square correlation matrix; consumers never mutate it."""
    labels: tuple[str, ...]
    matrix: tuple[tuple[float, ...], ...]

    @property
    def size(self) -> int:
        return len(self.labels)

    def get(self, a: str, b: str) -> float:
        """Correlation between two labels."""
        return self.matrix[self.labels.index(a)][self.labels.index(b)]


@dataclass(frozen=True)
class CorrelationValidationResult:
    """Result of validating a correlation matrix."""
    is_valid: bool
    diagonal_valid: bool
    symmetry_valid: bool
    range_valid: bool
    issues: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class MetricsValidationResult:
    """Result of sanity-checking portfolio metrics."""
    is_valid: bool
    metrics_in_range: dict[str, bool]
    weighted_return_match: bool
    issues: list[str] = field(default_factory=list)
    discrepancy: Optional[float] = None


@dataclass(frozen=True)
class TickerAudit:
    """Audit line for one ticker's bar series."""
    ticker: str
    bar_count: int
    first_date: Optional[date]
    last_date: Optional[date]
    data_quality: DataQuality
    issues: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DataAuditReport:
    """Audit of every series feeding one computation."""
    ticker_audits: list[TickerAudit]
    overall_data_quality: DataQuality
    total_issues: int
    summary: str
