"""Default configuration parameters for the simulator and study engine."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RiskParams:
    """Returns & risk library parameters."""
    risk_free_rate: float = 0.04                     # Canonical annual risk-free rate
    trading_days_per_year: int = 252
    var_confidence: float = 0.95


@dataclass(frozen=True)
class ValidationParams:
    """Price series and metrics validation parameters."""
    # Coverage of expected trading days
    high_coverage_threshold: float = 0.8             # Below this quality is at most medium
    low_coverage_threshold: float = 0.5              # Below this quality is low

    # Quality score bands (score starts at 100)
    high_quality_score: float = 90.0
    medium_quality_score: float = 70.0

    # Stale data detection
    min_unique_close_ratio: float = 0.1
    stale_check_min_bars: int = 10

    # Floating tolerances
    matrix_tolerance: float = 1e-4
    weighted_return_tolerance: float = 0.001

    # Realistic metric ranges (fractions, not percent)
    metric_ranges: dict = field(default_factory=lambda: {
        "annual_return": (-0.9, 5.0),
        "annual_volatility": (0.05, 1.0),
        "sharpe_ratio": (-2.0, 4.0),
        "sortino_ratio": (-3.0, 6.0),
        "max_drawdown": (0.0, 1.0),
        "calmar_ratio": (-5.0, 10.0),
        "beta": (-2.0, 3.0),
        "alpha": (-0.5, 0.5),
    })


# Studies never run on fewer bars, whatever min_bars is set to
MIN_STUDY_BARS = 20


@dataclass(frozen=True)
class StudyParams:
    """Statistical study parameters."""
    min_bars: int = MIN_STUDY_BARS                   # Minimum sample for any study, may only be raised

    # Distribution
    histogram_bucket_pct: float = 0.5                # Bucket width in percentage points

    # Gaps
    gap_threshold_pct: float = 0.5                   # |open - prior close| / prior close

    # Volatility regime
    atr_period: int = 14
    volatility_window: int = 20
    cluster_multiplier: float = 1.5                  # x mean absolute return

    # Moving averages
    ma_short: int = 20
    ma_medium: int = 50
    ma_long: int = 200

    # Volume
    high_volume_multiplier: float = 1.5
    volume_trend_window: int = 20

    # RSI
    rsi_period: int = 14
    rsi_overbought: float = 70.0
    rsi_oversold: float = 30.0
    forward_days: int = 5

    # Mean reversion
    autocorr_threshold: float = 0.1
    large_move_sigma: float = 2.0

    # Range / highs & lows
    doji_threshold: float = 0.1                      # Body / range ratio
    high_low_lookback: int = 20
    year_window: int = 252

    # Price targets
    projection_horizons: tuple = (30, 90, 180)
    support_buckets: int = 50
    support_levels: int = 3


@dataclass(frozen=True)
class BacktestParams:
    """Backtest simulator parameters."""
    initial_capital: float = 100000.0
    rebalance_frequency: str = "monthly"             # monthly | quarterly

    # Signal strategies
    momentum_lookback: int = 20
    mean_reversion_lookback: int = 20
    mean_reversion_entry_z: float = 1.0
    rsi_period: int = 14
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0


@dataclass(frozen=True)
class RecalculationParams:
    """Host-side recalculation policy parameters."""
    debounce_ms: int = 500
    stale_after_ms: int = 300000


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    risk: RiskParams
    validation: ValidationParams
    studies: StudyParams
    backtest: BacktestParams
    recalculation: RecalculationParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        risk=RiskParams(),
        validation=ValidationParams(),
        studies=StudyParams(),
        backtest=BacktestParams(),
        recalculation=RecalculationParams(),
    )
