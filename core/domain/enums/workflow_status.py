"""
Workflow Status Enums.

Status values for grading workflows and their steps.
"""
from enum import Enum


class WorkflowStatus(str, Enum):
    """Lifecycle status of a single grading workflow."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    AWAITING_REVIEW = "awaiting-review"
    RETRYING = "retrying"

    @property
    def is_terminal(self) -> bool:
        return self in (
            WorkflowStatus.COMPLETED,
            WorkflowStatus.FAILED,
            WorkflowStatus.AWAITING_REVIEW,
        )


class StepStatus(str, Enum):
    """Status of one pipeline step."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class WorkflowState(str, Enum):
    """Position of the orchestrator state machine."""

    IDLE = "idle"
    DETECTING = "detecting"
    CAPTURING = "capturing"
    GENERATING_RUBRIC = "generating-rubric"
    SCORING = "scoring"
    DECIDING = "deciding"
    SYNCING = "syncing"
    AWAITING_REVIEW = "awaiting-review"
    COMPLETED = "completed"
    FAILED = "failed"


class Decision(str, Enum):
    """Outcome of the confidence gate."""

    AUTO_SYNC = "auto-sync"
    MANUAL_REVIEW = "manual-review"
