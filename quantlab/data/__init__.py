"""
Price data module.

Defines the canonical bar and portfolio records, parses raw provider rows,
validates bar series before computation trusts them, and exposes the
price bar provider interface with real and synthetic implementations.
"""
