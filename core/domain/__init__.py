"""Domain layer - pure domain models and errors."""

from .entities.workflow import Step, Workflow, WorkflowOptions, WorkflowSnapshot
from .errors import GradingError, classify_error
from .value_objects import DetectedElement, ScoringResult, ScoringRubric, WorkflowID

__all__ = [
    "DetectedElement",
    "GradingError",
    "ScoringResult",
    "ScoringRubric",
    "Step",
    "Workflow",
    "WorkflowID",
    "WorkflowOptions",
    "WorkflowSnapshot",
    "classify_error",
]
