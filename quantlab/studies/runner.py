"""Study runner coordinating validation, dispatch and logging"""

import math
from typing import Optional, Sequence, Union

from ..config.defaults import MIN_STUDY_BARS, DefaultConfig, StudyParams, get_default_config
from ..data.models import PriceBar
from ..errors import (
    InsufficientDataError,
    MalformedDataError,
    MetricsCalculationError,
    UnsupportedStudyError,
)
from ..logging.config import get_study_logger, log_study_run
from .models import StudyResult, StudyType
from .registry import get_handler

logger = get_study_logger(__name__)


def parse_study_type(value: Union[str, StudyType]) -> StudyType:
    """Resolve a request identifier to a StudyType."""
    try:
        return StudyType(value)
    except ValueError:
        raise UnsupportedStudyError(f"Unknown study type: {value}", study_type=str(value))


class StudyRunner:
    """
    Runs one study over one instrument's bars.

    Stateless apart from its configuration, so a single runner can serve
    concurrent requests.
    """

    def __init__(self, config: Optional[DefaultConfig] = None):
        self.config = config or get_default_config()

    @property
    def params(self) -> StudyParams:
        return self.config.studies

    def run(self, ticker: str, study_type: Union[str, StudyType],
            bars: Sequence[PriceBar], params: Optional[StudyParams] = None) -> StudyResult:
        """
        Compute a study result

        Args:
            ticker: Instrument symbol, used for logging only
            study_type: Study identifier
            bars: Bars in ascending date order
            params: Study parameters overriding the runner's configuration

        Returns:
            The study's result variant

        Raises:
            UnsupportedStudyError: Unknown study identifier
            InsufficientDataError: Fewer bars than the configured minimum
            MetricsCalculationError: A handler produced a non-finite value or failed
        """
        params = params or self.params
        try:
            kind = parse_study_type(study_type)
            self._validate_data_sufficiency(bars, params)
        except (UnsupportedStudyError, InsufficientDataError) as e:
            log_study_run(logger, ticker, str(study_type), len(bars), passed=False, reason=str(e))
            raise

        handler = get_handler(kind)
        try:
            result = handler(bars, params)
        except (MalformedDataError, InsufficientDataError):
            raise
        except (ArithmeticError, ValueError, TypeError) as e:
            raise MetricsCalculationError(
                f"{kind.value} calculation failed: {str(e)}",
                metric_name=kind.value,
                calculation_input={"ticker": ticker, "bar_count": len(bars)}
            )

        self._validate_result(kind, result)
        log_study_run(logger, ticker, kind.value, len(bars), passed=True)
        return result

    def _validate_data_sufficiency(self, bars: Sequence[PriceBar], params: StudyParams) -> None:
        required = max(params.min_bars, MIN_STUDY_BARS)
        if len(bars) < required:
            raise InsufficientDataError(
                f"At least {required} bars are required, got {len(bars)}",
                required_count=required,
                available_count=len(bars)
            )

    def _validate_result(self, kind: StudyType, result: StudyResult) -> None:
        """Reject results carrying NaN or infinite top-level numbers."""
        for name, value in vars(result).items():
            if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
                raise MetricsCalculationError(
                    f"Invalid {name} value in {kind.value}: {value}",
                    metric_name=f"{kind.value}.{name}"
                )
