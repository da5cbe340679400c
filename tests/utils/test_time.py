"""Tests for calendar utilities."""

from datetime import date, datetime

import pytest

from quantlab.utils.time import (
    calendar_days_between,
    day_name,
    expected_trading_days,
    month_key,
    month_name,
    quarter_key,
    to_date,
)


class TestToDate:
    """Test date coercion."""

    def test_accepted_inputs(self):
        assert to_date("2024-03-05") == date(2024, 3, 5)
        assert to_date("2024-03-05T16:00:00Z") == date(2024, 3, 5)
        assert to_date(datetime(2024, 3, 5, 9, 30)) == date(2024, 3, 5)
        assert to_date(date(2024, 3, 5)) == date(2024, 3, 5)

    def test_rejected_inputs(self):
        with pytest.raises(ValueError):
            to_date("March 5th")
        with pytest.raises(ValueError):
            to_date(20240305)  # type: ignore[arg-type]


class TestPeriodKeys:
    """Test calendar period keys."""

    def test_month_key(self):
        assert month_key(date(2024, 1, 31)) != month_key(date(2024, 2, 1))
        assert month_key(date(2024, 2, 1)) == month_key(date(2024, 2, 29))

    def test_quarter_key(self):
        assert quarter_key(date(2024, 3, 31)) == (2024, 0)
        assert quarter_key(date(2024, 4, 1)) == (2024, 1)
        assert quarter_key(date(2023, 12, 29)) != quarter_key(date(2024, 1, 2))


class TestCalendarSpans:
    """Test span arithmetic."""

    def test_calendar_days(self):
        assert calendar_days_between(date(2024, 1, 1), date(2024, 1, 31)) == 30
        assert calendar_days_between(date(2024, 2, 1), date(2024, 1, 1)) == 0

    def test_expected_trading_days(self):
        assert expected_trading_days(date(2024, 1, 1), date(2024, 12, 31)) == 365 * 5 // 7
        assert expected_trading_days(date(2024, 1, 1), date(2024, 1, 1)) == 0

    def test_names(self):
        assert day_name(date(2024, 1, 1)) == "Monday"
        assert day_name(date(2024, 1, 7)) == "Sunday"
        assert month_name(date(2024, 9, 15)) == "Sep"
