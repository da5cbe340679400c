"""
Input error classifications for malformed requests.

Input errors are terminal: the request is rejected before any
computation starts.
"""

from typing import Optional, Dict, Any


class InputValidationError(Exception):
    """Base class for request-level input errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 issues: Optional[list[str]] = None):
        super().__init__(message)
        self.context = context or {}
        self.issues = issues or []
        self.recoverable = False


class AllocationError(InputValidationError):
    """Portfolio allocation weights do not sum to 100."""

    def __init__(self, message: str, total_weight: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.total_weight = total_weight


class UnsupportedStudyError(InputValidationError):
    """Requested study type is not part of the catalog."""

    def __init__(self, message: str, study_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.study_type = study_type
