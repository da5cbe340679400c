"""
Study catalog and result models.

StudyType is the closed set of request identifiers. Each result variant is
a frozen dataclass tagged with a `result_type` class attribute; the tag is
emitted as `type` when the result is serialized.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import ClassVar, Optional, Union


class StudyType(str, Enum):
    """Every supported study request identifier."""
    CLOSE_ABOVE_OPEN = "daily_close_gt_open"
    CLOSE_ABOVE_PRIOR = "daily_close_gt_prior"
    RETURN_DISTRIBUTION = "daily_return_distribution"
    STREAKS = "up_down_streaks"
    DAY_OF_WEEK = "day_of_week_returns"
    MONTH_OF_YEAR = "month_of_year_returns"
    GAP_ANALYSIS = "gap_analysis"
    VOLATILITY = "volatility_analysis"
    DRAWDOWN = "drawdown_analysis"
    MOVING_AVERAGE = "moving_average_analysis"
    VOLUME = "volume_analysis"
    RSI = "rsi_analysis"
    MEAN_REVERSION = "mean_reversion"
    RANGE = "range_analysis"
    HIGH_LOW = "high_low_analysis"
    TREND_STRENGTH = "trend_strength"
    PRICE_TARGETS = "price_targets"


@dataclass(frozen=True)
class ForwardStats:
    """Forward-return behavior after a set of trigger days (percent)."""
    count: int
    avg_return: float
    hit_rate: float


@dataclass(frozen=True)
class ReversalStats:
    """Next-day behavior after large one-day moves (percent)."""
    count: int
    avg_next_return: float
    reversal_rate: float


@dataclass(frozen=True)
class PercentageResult:
    result_type: ClassVar[str] = "percentage"
    percentage: float
    up_days: int
    down_days: int
    unchanged: int
    total_days: int
    label: str


@dataclass(frozen=True)
class HistogramBucket:
    range: float
    count: int


@dataclass(frozen=True)
class DistributionResult:
    result_type: ClassVar[str] = "distribution"
    mean: float
    std_dev: float
    annualized_vol: float
    min: float
    max: float
    count: int
    percentiles: dict[str, float]
    histogram: list[HistogramBucket]
    skewness: float
    kurtosis: float


@dataclass(frozen=True)
class StreaksResult:
    result_type: ClassVar[str] = "streaks"
    max_up_streak: int
    max_down_streak: int
    avg_up_streak: float
    avg_down_streak: float
    current_streak: int
    current_direction: str
    up_streak_count: int
    down_streak_count: int


@dataclass(frozen=True)
class CalendarStat:
    name: str
    avg_return: float
    hit_rate: float
    count: int


@dataclass(frozen=True)
class CalendarResult:
    result_type: ClassVar[str] = "calendar"
    period: str
    stats: list[CalendarStat]


@dataclass(frozen=True)
class GapStats:
    count: int
    fill_rate: float
    continuation_rate: float
    avg_gap_size: float


@dataclass(frozen=True)
class GapAnalysisResult:
    result_type: ClassVar[str] = "gap_analysis"
    total_gaps: int
    gap_frequency: float
    threshold_pct: float
    gaps_up: GapStats
    gaps_down: GapStats


@dataclass(frozen=True)
class SeriesSummary:
    current: float
    avg: float
    min: float
    max: float


@dataclass(frozen=True)
class VolatilityResult:
    result_type: ClassVar[str] = "volatility"
    atr: SeriesSummary
    atr_percent: float
    daily_range: SeriesSummary
    rolling_volatility: SeriesSummary
    volatility_clustering: float
    high_volatility_threshold: float
    regime: str


@dataclass(frozen=True)
class DrawdownEpisode:
    peak_date: date
    trough_date: date
    recovery_date: Optional[date]
    depth: float
    days_to_trough: int
    days_to_recover: Optional[int]
    recovered: bool


@dataclass(frozen=True)
class DrawdownResult:
    result_type: ClassVar[str] = "drawdown"
    max_drawdown: float
    current_drawdown: float
    avg_drawdown: float
    drawdown_count: int
    avg_recovery_days: float
    longest_drawdown_days: int
    episodes: list[DrawdownEpisode]


@dataclass(frozen=True)
class MovingAverageStat:
    period: int
    sma: float
    ema: float
    price_vs_sma: float
    pct_above_sma: float


@dataclass(frozen=True)
class CrossEvent:
    date: date
    type: str


@dataclass(frozen=True)
class MovingAverageResult:
    result_type: ClassVar[str] = "moving_average"
    current_price: float
    averages: dict[str, MovingAverageStat]
    crosses: list[CrossEvent]
    golden_crosses: int
    death_crosses: int
    last_cross: Optional[CrossEvent]
    current_trend: Optional[str]


@dataclass(frozen=True)
class VolumeResult:
    result_type: ClassVar[str] = "volume"
    avg_volume: float
    current_volume: float
    volume_ratio: float
    up_day_avg_volume: float
    down_day_avg_volume: float
    volume_bias: str
    high_volume_threshold: float
    high_volume_days: int
    after_high_volume: ForwardStats
    volume_trend: float


@dataclass(frozen=True)
class RsiResult:
    result_type: ClassVar[str] = "rsi"
    period: int
    current: float
    avg: float
    min: float
    max: float
    overbought_pct: float
    oversold_pct: float
    distribution: list[HistogramBucket]
    forward_days: int
    after_overbought: ForwardStats
    after_oversold: ForwardStats


@dataclass(frozen=True)
class MeanReversionResult:
    result_type: ClassVar[str] = "mean_reversion"
    autocorrelation: float
    regime: str
    sigma_threshold: float
    after_large_up: ReversalStats
    after_large_down: ReversalStats


@dataclass(frozen=True)
class RangeResult:
    result_type: ClassVar[str] = "range"
    avg_daily_range: float
    avg_range_percent: float
    avg_body_percent: float
    doji_rate: float
    inside_days: int
    outside_days: int
    inside_day_rate: float
    outside_day_rate: float
    after_inside_day: ForwardStats


@dataclass(frozen=True)
class HighLowResult:
    result_type: ClassVar[str] = "high_low"
    lookback: int
    new_highs: int
    new_lows: int
    after_new_high: ForwardStats
    after_new_low: ForwardStats
    year_high: float
    year_low: float
    dist_from_high: float
    dist_from_low: float
    current_price: float


@dataclass(frozen=True)
class TrendStrengthResult:
    result_type: ClassVar[str] = "trend_strength"
    trend_score: int
    max_score: int
    trend_direction: str
    components: dict[str, bool]
    higher_highs_rate: float
    higher_lows_rate: float


@dataclass(frozen=True)
class ProjectionBand:
    worst: float
    bear: float
    expected: float
    bull: float
    best: float


@dataclass(frozen=True)
class PriceTargetsResult:
    result_type: ClassVar[str] = "price_targets"
    current_price: float
    mean_daily_return: float
    daily_std_dev: float
    projections: dict[str, ProjectionBand]
    support_levels: list[float] = field(default_factory=list)
    resistance_levels: list[float] = field(default_factory=list)


StudyResult = Union[
    PercentageResult,
    DistributionResult,
    StreaksResult,
    CalendarResult,
    GapAnalysisResult,
    VolatilityResult,
    DrawdownResult,
    MovingAverageResult,
    VolumeResult,
    RsiResult,
    MeanReversionResult,
    RangeResult,
    HighLowResult,
    TrendStrengthResult,
    PriceTargetsResult,
]
