"""Study type to handler dispatch table"""

from typing import Callable, Mapping, Sequence

from ..config.defaults import StudyParams
from ..data.models import PriceBar
from . import basic, drawdown, gaps, oscillators, ranges, seasonality, targets, trend, volatility, volume
from .models import StudyResult, StudyType

StudyHandler = Callable[[Sequence[PriceBar], StudyParams], StudyResult]

STUDY_HANDLERS: dict[StudyType, StudyHandler] = {
    StudyType.CLOSE_ABOVE_OPEN: basic.close_above_open,
    StudyType.CLOSE_ABOVE_PRIOR: basic.close_above_prior,
    StudyType.RETURN_DISTRIBUTION: basic.return_distribution,
    StudyType.STREAKS: basic.streaks,
    StudyType.DAY_OF_WEEK: seasonality.day_of_week,
    StudyType.MONTH_OF_YEAR: seasonality.month_of_year,
    StudyType.GAP_ANALYSIS: gaps.gap_analysis,
    StudyType.VOLATILITY: volatility.volatility_analysis,
    StudyType.DRAWDOWN: drawdown.drawdown_analysis,
    StudyType.MOVING_AVERAGE: trend.moving_average_analysis,
    StudyType.VOLUME: volume.volume_analysis,
    StudyType.RSI: oscillators.rsi_analysis,
    StudyType.MEAN_REVERSION: oscillators.mean_reversion,
    StudyType.RANGE: ranges.range_analysis,
    StudyType.HIGH_LOW: ranges.high_low_analysis,
    StudyType.TREND_STRENGTH: trend.trend_strength,
    StudyType.PRICE_TARGETS: targets.price_targets,
}


def check_registry(handlers: Mapping[StudyType, StudyHandler]) -> None:
    """Raise RuntimeError when a study type has no handler."""
    missing = set(StudyType) - set(handlers)
    if missing:
        raise RuntimeError(f"Study types without a handler: {sorted(t.value for t in missing)}")


check_registry(STUDY_HANDLERS)


def get_handler(study_type: StudyType) -> StudyHandler:
    return STUDY_HANDLERS[study_type]
