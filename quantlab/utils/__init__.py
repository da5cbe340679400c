"""
Utility functions module.

Calendar helpers for trading-day arithmetic and serialization helpers that
turn result dataclasses into JSON-friendly structures.

Date Semantics:
- Bar dates are calendar dates (no time of day, no timezone)
- Trading-day expectations are estimated from weekdays in a range
- No function here reads the wall clock
"""
