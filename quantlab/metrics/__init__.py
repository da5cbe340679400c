"""Returns & risk library and technical indicator calculations"""

from .atr import atr_series, calculate_atr, calculate_natr, calculate_true_range
from .indicators import WilderRsi, ema_series, rolling_volatility, rsi_series, sma_series
from .returns import (
    annualized_return,
    annualized_volatility,
    arithmetic_mean,
    cagr,
    excess_kurtosis,
    log_returns,
    simple_returns,
    skewness,
    standard_deviation,
)
from .risk import (
    beta_alpha,
    calmar_ratio,
    conditional_var_95,
    correlation,
    correlation_matrix,
    max_drawdown,
    sharpe_ratio,
    sortino_ratio,
    value_at_risk_95,
)
from .volume import calculate_rvol, directional_volume

__all__ = [
    "simple_returns",
    "log_returns",
    "arithmetic_mean",
    "standard_deviation",
    "annualized_volatility",
    "annualized_return",
    "cagr",
    "skewness",
    "excess_kurtosis",
    "sharpe_ratio",
    "sortino_ratio",
    "max_drawdown",
    "calmar_ratio",
    "beta_alpha",
    "value_at_risk_95",
    "conditional_var_95",
    "correlation",
    "correlation_matrix",
    "calculate_true_range",
    "atr_series",
    "calculate_atr",
    "calculate_natr",
    "sma_series",
    "ema_series",
    "rsi_series",
    "WilderRsi",
    "rolling_volatility",
    "calculate_rvol",
    "directional_volume",
]
