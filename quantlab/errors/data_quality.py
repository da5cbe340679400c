"""
Data quality error classifications for price series processing.

These exceptions categorize issues found in provider-supplied bar series.
Most of them are surfaced as quality flags; only missing or insufficient
data terminates a request.
"""

from typing import Optional, Dict, Any


class DataQualityError(Exception):
    """Base class for data quality issues that can be handled gracefully."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class TemporalDataError(DataQualityError):
    """Date ordering issues in a bar series."""

    def __init__(self, message: str, date: Optional[str] = None,
                 previous_date: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.date = date
        self.previous_date = previous_date


class PartialDataError(DataQualityError):
    """Missing but recoverable data fields."""

    def __init__(self, message: str, missing_fields: Optional[list] = None,
                 available_fields: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.missing_fields = missing_fields or []
        self.available_fields = available_fields or []


class MissingDataError(DataQualityError):
    """Required data is completely missing."""

    def __init__(self, message: str, data_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.data_type = data_type
        self.recoverable = False


class MalformedDataError(DataQualityError):
    """Data exists but violates structural invariants."""

    def __init__(self, message: str, issues: Optional[list[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.issues = issues or []
        self.recoverable = False


class InsufficientDataError(DataQualityError):
    """Not enough historical data for calculations."""

    def __init__(self, message: str, required_count: Optional[int] = None,
                 available_count: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.required_count = required_count
        self.available_count = available_count
        self.recoverable = False
