"""
Domain errors.

Every error raised inside the grading pipeline carries an explicit ErrorKind
so the orchestrator never has to inspect message text.
"""
import asyncio
from typing import Optional

from .enums.error_kind import ErrorKind


class GradingError(Exception):
    """Base class for grading pipeline failures."""

    default_kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind


class ElementDetectionError(GradingError):
    """Raised when a required anchor could not be located."""

    default_kind = ErrorKind.ELEMENT_DETECTION

    def __init__(self, message: str, missing: tuple = ()):
        super().__init__(message)
        self.missing = tuple(missing)


class CaptureError(GradingError):
    """Raised when the answer area could not be rendered."""
    pass


class CapabilityError(GradingError):
    """Raised when an AI capability failed outright."""

    default_kind = ErrorKind.AI_SCORING


class CapabilityNetworkError(CapabilityError):
    """Raised when an AI capability could not be reached or timed out."""

    default_kind = ErrorKind.NETWORK


class ScoreSyncError(GradingError):
    """Raised when the score could not be written back to the page."""
    pass


class ConfirmationCancelled(GradingError):
    """Raised when the user declined a pending score sync."""
    pass


class ConfirmationTimeout(ConfirmationCancelled):
    """Raised when no confirmation arrived in time."""
    pass


class InvalidRubricError(ValueError):
    """Raised when a rubric violates its own invariants."""
    pass


class WorkflowFrozenError(RuntimeError):
    """Raised on mutation of a workflow that already reached a terminal status."""
    pass


def classify_error(error: BaseException) -> ErrorKind:
    """
    Map an exception to its ErrorKind.

    GradingError subclasses carry their kind. Timeouts and connection
    failures that escape an adapter untranslated count as network errors.
    """
    kind = getattr(error, "kind", None)
    if isinstance(kind, ErrorKind):
        return kind
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, ConnectionError)):
        return ErrorKind.NETWORK
    return ErrorKind.UNKNOWN
