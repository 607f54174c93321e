"""Domain enums."""
from .anchor_type import AnchorType, LocatorKind, PageType
from .error_kind import ErrorKind
from .question_type import QuestionType, ResponseSource
from .workflow_status import Decision, StepStatus, WorkflowState, WorkflowStatus

__all__ = [
    "AnchorType",
    "Decision",
    "ErrorKind",
    "LocatorKind",
    "PageType",
    "QuestionType",
    "ResponseSource",
    "StepStatus",
    "WorkflowState",
    "WorkflowStatus",
]
