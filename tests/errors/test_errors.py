"""
Error taxonomy tests.

Covers the hierarchy, recoverability flags and the context carried by
each error class.
"""

import pytest

from quantlab.errors import (
    AllocationError,
    DataQualityError,
    InputValidationError,
    InsufficientDataError,
    MalformedDataError,
    MetricsCalculationError,
    MissingDataError,
    PartialDataError,
    SimulationError,
    SystemFailureError,
    TemporalDataError,
    UnsupportedStudyError,
)


class TestErrorClassification:
    """Test error classification system."""

    def test_data_quality_error_hierarchy(self):
        """Test that data quality errors have proper hierarchy."""
        base_error = DataQualityError("base error")
        assert base_error.recoverable is True
        assert base_error.context == {}

        for error_cls in (TemporalDataError, PartialDataError, MissingDataError,
                          MalformedDataError, InsufficientDataError):
            assert issubclass(error_cls, DataQualityError)

    @pytest.mark.parametrize("error, recoverable", [
        (TemporalDataError("out of order", date="2024-01-02", previous_date="2024-01-03"), True),
        (PartialDataError("no volume", missing_fields=["volume"]), True),
        (MissingDataError("no bars", data_type="price_series"), False),
        (MalformedDataError("bad bars", issues=["1 bars with high below low"]), False),
        (InsufficientDataError("short", required_count=20, available_count=5), False),
    ])
    def test_recoverability(self, error, recoverable):
        assert error.recoverable is recoverable

    def test_input_errors(self):
        """Test input errors are terminal and carry issues."""
        error = AllocationError("bad weights", total_weight=90.0, issues=["sum is 90"])
        assert isinstance(error, InputValidationError)
        assert error.recoverable is False
        assert error.total_weight == 90.0
        assert error.issues == ["sum is 90"]

        unsupported = UnsupportedStudyError("nope", study_type="astrology")
        assert isinstance(unsupported, InputValidationError)
        assert unsupported.study_type == "astrology"
        assert unsupported.issues == []

    def test_system_failures(self):
        """Test computation failures keep their diagnostic context."""
        calc = MetricsCalculationError(
            "rsi failed",
            metric_name="rsi",
            calculation_input={"bar_count": 3},
            context={"ticker": "SPY"},
        )
        assert isinstance(calc, SystemFailureError)
        assert calc.recoverable is False
        assert calc.calculation_input == {"bar_count": 3}
        assert calc.context == {"ticker": "SPY"}

        sim = SimulationError("bad transition", state="completed", date="2024-01-02")
        assert sim.state == "completed"
        assert sim.date == "2024-01-02"

    def test_families_are_disjoint(self):
        """Test the three families do not overlap."""
        assert not issubclass(InputValidationError, DataQualityError)
        assert not issubclass(DataQualityError, SystemFailureError)
        assert not issubclass(SystemFailureError, InputValidationError)
