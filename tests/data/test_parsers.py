"""Tests for raw provider row parsing"""

from datetime import date

import pytest

from quantlab.data.parsers import (
    InvalidPriceError,
    InvalidTimestampError,
    InvalidVolumeError,
    ParseError,
    parse_price_row,
    parse_price_rows,
)


class TestParsePriceRow:
    """Test single-row parsing"""

    def test_full_names(self):
        """Test rows with full field names"""
        bar = parse_price_row({
            "date": "2024-01-02", "open": "100", "high": 105, "low": 99, "close": 104, "volume": 1200,
        })
        assert bar.date == date(2024, 1, 2)
        assert (bar.open, bar.high, bar.low, bar.close, bar.volume) == (100.0, 105.0, 99.0, 104.0, 1200.0)

    def test_short_names_and_epoch(self):
        """Test single-letter aliases with an epoch-millisecond timestamp"""
        bar = parse_price_row({"t": 1704067200000, "o": 1, "h": 2, "l": 0.5, "c": 1.5, "v": 10})
        assert bar.date == date(2024, 1, 1)
        assert bar.close == 1.5

    def test_missing_volume_defaults_to_zero(self):
        """Test absent volume"""
        bar = parse_price_row({"date": "2024-01-02", "open": 1, "high": 1, "low": 1, "close": 1})
        assert bar.volume == 0.0

    def test_missing_price(self):
        """Test a missing close"""
        with pytest.raises(InvalidPriceError):
            parse_price_row({"date": "2024-01-02", "open": 1, "high": 1, "low": 1})

    def test_non_numeric_price(self):
        """Test an unparseable price"""
        with pytest.raises(InvalidPriceError):
            parse_price_row({"date": "2024-01-02", "open": "abc", "high": 1, "low": 1, "close": 1})

    def test_non_finite_price(self):
        """Test NaN prices are rejected"""
        with pytest.raises(InvalidPriceError):
            parse_price_row({"date": "2024-01-02", "open": float("nan"), "high": 1, "low": 1, "close": 1})

    def test_bad_volume(self):
        """Test an unparseable volume"""
        with pytest.raises(InvalidVolumeError):
            parse_price_row({"date": "2024-01-02", "open": 1, "high": 1, "low": 1, "close": 1, "volume": "x"})

    def test_bad_date(self):
        """Test invalid and missing dates"""
        with pytest.raises(InvalidTimestampError):
            parse_price_row({"date": "not-a-date", "open": 1, "high": 1, "low": 1, "close": 1})
        with pytest.raises(InvalidTimestampError):
            parse_price_row({"open": 1, "high": 1, "low": 1, "close": 1})


class TestParsePriceRows:
    """Test batch parsing"""

    def test_preserves_order(self):
        """Test rows keep their input order"""
        rows = [
            {"date": "2024-01-03", "open": 1, "high": 1, "low": 1, "close": 1},
            {"date": "2024-01-02", "open": 1, "high": 1, "low": 1, "close": 1},
        ]
        assert [b.date.day for b in parse_price_rows(rows)] == [3, 2]

    def test_first_error_raises(self):
        """Test parse errors share a base class"""
        with pytest.raises(ParseError):
            parse_price_rows([{"date": "2024-01-02"}])
