"""
Parsers converting raw provider rows into PriceBar objects.

Providers deliver daily aggregates either with long field names
(date/open/high/low/close/volume) or in the compact aggregate format
(t/o/h/l/c/v, with t as epoch milliseconds). Parsing only enforces types
and presence; invariants are checked by the series validator.
"""

import math
from datetime import UTC, datetime
from typing import Any, Iterable

from .models import PriceBar
from ..utils.time import to_date


class ParseError(Exception):
    """Raised when parsing fails due to invalid data format."""
    pass


class InvalidPriceError(ParseError):
    """Raised when price data is invalid."""
    pass


class InvalidTimestampError(ParseError):
    """Raised when timestamp data is invalid."""
    pass


class InvalidVolumeError(ParseError):
    """Raised when volume data is invalid."""
    pass


_FIELD_ALIASES = {
    "open": ("open", "o", "open_price"),
    "high": ("high", "h", "high_price"),
    "low": ("low", "l", "low_price"),
    "close": ("close", "c", "adjusted_close", "close_price"),
    "volume": ("volume", "v"),
}


def _pick(row: dict[str, Any], aliases: tuple[str, ...]) -> Any:
    for key in aliases:
        if key in row and row[key] is not None:
            return row[key]
    return None


def _parse_float(value: Any, name: str) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidPriceError(f"Invalid {name} value: {value!r}") from e
    if not math.isfinite(result):
        raise InvalidPriceError(f"Non-finite {name} value: {value!r}")
    return result


def parse_bar_date(row: dict[str, Any]):
    """
    Extract the trading date from a raw row.

    Accepts 'date' / 'trade_date' (ISO strings or date objects) or 't'
    (epoch milliseconds, interpreted in UTC).
    """
    raw = row.get("date", row.get("trade_date"))
    if raw is not None:
        try:
            return to_date(raw)
        except ValueError as e:
            raise InvalidTimestampError(f"Invalid date value: {raw!r}") from e

    ts = row.get("t")
    if ts is None:
        raise InvalidTimestampError("Row has no date or timestamp field")
    try:
        return datetime.fromtimestamp(int(ts) / 1000, tz=UTC).date()
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise InvalidTimestampError(f"Invalid timestamp value: {ts!r}") from e


def parse_price_row(row: dict[str, Any]) -> PriceBar:
    """
    Parse a single raw row into a PriceBar.

    Raises:
        ParseError: If a required field is missing or not numeric
    """
    bar_date = parse_bar_date(row)

    values = {}
    for name in ("open", "high", "low", "close"):
        raw = _pick(row, _FIELD_ALIASES[name])
        if raw is None:
            raise InvalidPriceError(f"Missing {name} price for {bar_date}")
        values[name] = _parse_float(raw, name)

    raw_volume = _pick(row, _FIELD_ALIASES["volume"])
    try:
        volume = float(raw_volume) if raw_volume is not None else 0.0
    except (TypeError, ValueError) as e:
        raise InvalidVolumeError(f"Invalid volume value: {raw_volume!r}") from e

    return PriceBar(date=bar_date, volume=volume, **values)


def parse_price_rows(rows: Iterable[dict[str, Any]]) -> list[PriceBar]:
    """
    Parse raw provider rows into PriceBar objects, preserving order.

    Args:
        rows: Iterable of raw row dicts

    Returns:
        List of parsed bars

    Raises:
        ParseError: On the first row that cannot be parsed
    """
    return [parse_price_row(row) for row in rows]
