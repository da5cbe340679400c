"""
Error classification system for the simulator and study engine.

This module provides a structured exception hierarchy separating terminal
input errors, recoverable data quality issues and computation failures.
"""

from .data_quality import (
    DataQualityError,
    TemporalDataError,
    PartialDataError,
    MissingDataError,
    MalformedDataError,
    InsufficientDataError,
)
from .input_errors import (
    InputValidationError,
    AllocationError,
    UnsupportedStudyError,
)
from .system_failures import (
    SystemFailureError,
    MetricsCalculationError,
    SimulationError,
)

__all__ = [
    # Data Quality Errors
    "DataQualityError",
    "TemporalDataError",
    "PartialDataError",
    "MissingDataError",
    "MalformedDataError",
    "InsufficientDataError",
    # Input Errors
    "InputValidationError",
    "AllocationError",
    "UnsupportedStudyError",
    # System Failures
    "SystemFailureError",
    "MetricsCalculationError",
    "SimulationError",
]
