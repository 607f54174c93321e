"""Domain value objects - pure Python immutable types."""

from .detection import DetectedElement, Locator
from .image import ImagePayload, ImageQuality, RenderOptions
from .rubric import RubricDimension, ScoringRubric
from .scoring import BreakdownItem, QuestionInfo, ScoringQuality, ScoringResult, StudentInfo
from .workflow_id import WorkflowID

__all__ = [
    "BreakdownItem",
    "DetectedElement",
    "ImagePayload",
    "ImageQuality",
    "Locator",
    "QuestionInfo",
    "RenderOptions",
    "RubricDimension",
    "ScoringQuality",
    "ScoringResult",
    "ScoringRubric",
    "StudentInfo",
    "WorkflowID",
]
