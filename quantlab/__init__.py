"""
quantlab - Backtest Simulator and Statistical Study Engine

Deterministic computation over historical daily price bars: a multi-asset
backtest simulator with rebalancing strategies and a catalog of statistical
studies (seasonality, streaks, volatility regime, indicator behavior) for a
single instrument.
"""

__version__ = "0.1.0"
__author__ = "quantlab Team"
