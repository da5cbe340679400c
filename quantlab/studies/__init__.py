"""Statistical study engine: one handler per study type"""

from .models import StudyResult, StudyType
from .registry import STUDY_HANDLERS
from .runner import StudyRunner, parse_study_type

__all__ = [
    "StudyType",
    "StudyResult",
    "STUDY_HANDLERS",
    "StudyRunner",
    "parse_study_type",
]
