"""
Calendar utilities for daily bar series.

All helpers are pure functions of their arguments; the core never consults
the wall clock so repeated computations stay byte-identical.
"""

from datetime import date, datetime
from typing import Union

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

DateLike = Union[str, date, datetime]


def to_date(value: DateLike) -> date:
    """
    Coerce an ISO string, datetime or date into a date.

    Args:
        value: 'YYYY-MM-DD' string (a time suffix is ignored), datetime or date

    Returns:
        Calendar date

    Raises:
        ValueError: If a string cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"Unsupported date value: {value!r}")


def month_key(day: date) -> tuple[int, int]:
    """Return (year, month) for calendar-period comparisons."""
    return (day.year, day.month)


def quarter_key(day: date) -> tuple[int, int]:
    """Return (year, quarter) with quarters numbered 0-3."""
    return (day.year, (day.month - 1) // 3)


def calendar_days_between(start: date, end: date) -> int:
    """Number of calendar days from start to end (0 when end <= start)."""
    return max((end - start).days, 0)


def expected_trading_days(start: date, end: date) -> int:
    """
    Rough estimate of trading days in a range.

    Uses the 5/7 weekday ratio over the calendar span, matching how
    coverage is judged for provider data.
    """
    return (calendar_days_between(start, end) * 5) // 7


def day_name(day: date) -> str:
    """English weekday name for a date."""
    return DAY_NAMES[day.weekday()]


def month_name(day: date) -> str:
    """Abbreviated month name for a date."""
    return MONTH_NAMES[day.month - 1]
