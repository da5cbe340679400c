"""
System failure error classifications for unrecoverable errors.

These exceptions represent failures inside the computation itself rather
than problems with the supplied data.
"""

from typing import Optional, Dict, Any


class SystemFailureError(Exception):
    """Base class for unrecoverable system failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class MetricsCalculationError(SystemFailureError):
    """Critical error in a metric or study calculation."""

    def __init__(self, message: str, metric_name: Optional[str] = None,
                 calculation_input: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.metric_name = metric_name
        self.calculation_input = calculation_input


class SimulationError(SystemFailureError):
    """Backtest day-loop reached an inconsistent state."""

    def __init__(self, message: str, state: Optional[str] = None,
                 date: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.state = state
        self.date = date
