"""
Workflow aggregate.

One Workflow is one end-to-end attempt to grade a single answer. It is
mutated only by the orchestrator while running and becomes read-only once
its status is terminal.

CRITICAL: This file must contain ZERO imports from:
- pydantic
- aiohttp
"""
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from gradeflow_sdk.utils.datetime import utc_now

from ..enums.anchor_type import AnchorType
from ..enums.error_kind import ErrorKind
from ..enums.workflow_status import Decision, StepStatus, WorkflowStatus
from ..errors import WorkflowFrozenError
from ..value_objects import QuestionInfo, ScoringRubric, StudentInfo, WorkflowID


def _read_only(value: Any) -> Any:
    """Recursively wrap mappings and lists so snapshots cannot be mutated."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _read_only(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_read_only(item) for item in value)
    return value


class _Freezable:
    """Rejects attribute assignment once ``freeze()`` has been called."""

    _frozen = False

    def __setattr__(self, name, value):
        if self._frozen:
            raise WorkflowFrozenError(
                f"Cannot set {name!r} on {type(self).__name__} after it was finalized"
            )
        object.__setattr__(self, name, value)

    def freeze(self) -> None:
        object.__setattr__(self, "_frozen", True)

    @property
    def is_frozen(self) -> bool:
        return self._frozen


@dataclass(frozen=True)
class WorkflowOptions:
    """Resolved per-run configuration."""

    confidence_threshold: float = 70.0
    max_retries: int = 3
    retry_delay: float = 1.0
    auto_submit: bool = True
    require_confirmation: bool = False
    confirmation_timeout: float = 30.0
    min_image_quality: int = 60
    required_anchors: tuple = (AnchorType.ANSWER_AREA, AnchorType.SCORE_INPUT)
    scoring_rubric: Optional[ScoringRubric] = None
    student_info: StudentInfo = field(default_factory=StudentInfo)
    question_info: QuestionInfo = field(default_factory=QuestionInfo)
    reference_answer: str = ""

    @classmethod
    def from_settings(cls, settings, **overrides) -> "WorkflowOptions":
        """
        Build options from workflow settings, then apply per-run overrides.

        Args:
            settings: Object exposing the WorkflowSettings fields
            **overrides: Any WorkflowOptions field
        """
        values = {
            "confidence_threshold": settings.confidence_threshold,
            "max_retries": settings.max_retries,
            "retry_delay": settings.retry_delay,
            "auto_submit": settings.auto_submit,
            "require_confirmation": settings.require_confirmation,
            "confirmation_timeout": settings.confirmation_timeout,
            "min_image_quality": settings.min_image_quality,
        }
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True)
class WorkflowErrorRecord:
    step: str
    message: str
    kind: ErrorKind
    timestamp: datetime


@dataclass(frozen=True)
class StepSnapshot:
    name: str
    description: str
    status: StepStatus
    start_time: datetime
    end_time: Optional[datetime]
    result: Any
    warnings: tuple
    errors: tuple


@dataclass(frozen=True)
class WorkflowSnapshot:
    """Immutable projection of a workflow, safe to hand to other components."""

    id: str
    status: WorkflowStatus
    retries: int
    start_time: datetime
    end_time: Optional[datetime]
    decision: Optional[Decision]
    steps: tuple
    errors: tuple
    needs_review: bool
    manual_mode: bool
    review_data: Optional[Dict[str, Any]]
    total_score: Optional[float]
    confidence: Optional[float]


@dataclass(eq=False)
class Step(_Freezable):
    """Execution record of one pipeline stage."""

    name: str
    description: str
    status: StepStatus = StepStatus.RUNNING
    start_time: datetime = field(default_factory=utc_now)
    end_time: Optional[datetime] = None
    result: Any = None
    warnings: List[str] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)

    def snapshot(self) -> StepSnapshot:
        return StepSnapshot(
            name=self.name,
            description=self.description,
            status=self.status,
            start_time=self.start_time,
            end_time=self.end_time,
            result=_read_only(self.result),
            warnings=tuple(self.warnings),
            errors=_read_only(self.errors),
        )


@dataclass(eq=False)
class Workflow(_Freezable):
    """One grading attempt."""

    id: WorkflowID
    options: WorkflowOptions
    retries: int = 0
    status: WorkflowStatus = WorkflowStatus.RUNNING
    start_time: datetime = field(default_factory=utc_now)
    end_time: Optional[datetime] = None
    steps: List[Step] = field(default_factory=list)
    results: Dict[str, Any] = field(default_factory=dict)
    errors: List[WorkflowErrorRecord] = field(default_factory=list)
    decision: Optional[Decision] = None
    needs_review: bool = False
    review_data: Optional[Dict[str, Any]] = None
    manual_mode: bool = False
    sync_cancelled: bool = False

    @classmethod
    def create(cls, options: WorkflowOptions, retries: int = 0) -> "Workflow":
        return cls(id=WorkflowID.generate(), options=options, retries=retries)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def start_step(self, name: str, description: str) -> Step:
        """Append a running Step. A stage may only be started once."""
        if self.find_step(name) is not None:
            raise ValueError(f"Step {name!r} already recorded on workflow {self.id}")
        step = Step(name=name, description=description)
        self.steps.append(step)
        return step

    def find_step(self, name: str) -> Optional[Step]:
        for step in self.steps:
            if step.name == name:
                return step
        return None

    def complete_step(self, step: Step, result: Any = None) -> None:
        step.status = StepStatus.COMPLETED
        step.result = result
        step.end_time = utc_now()

    def skip_step(self, step: Step, reason: str) -> None:
        step.status = StepStatus.SKIPPED
        step.result = {"reason": reason}
        step.end_time = utc_now()

    def fail_step(self, step: Step, error: BaseException, kind: ErrorKind) -> WorkflowErrorRecord:
        """Mark the step failed and append the error to the workflow history."""
        now = utc_now()
        step.status = StepStatus.FAILED
        step.end_time = now
        step.errors.append({"message": str(error), "type": type(error).__name__})
        record = WorkflowErrorRecord(step=step.name, message=str(error), kind=kind, timestamp=now)
        self.errors.append(record)
        return record

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def finish(self, status: WorkflowStatus) -> None:
        """Move to a terminal status and make the workflow read-only."""
        if not status.is_terminal:
            raise ValueError(f"{status.value} is not a terminal status")
        self.status = status
        self.end_time = utc_now()
        for step in self.steps:
            step.warnings = tuple(step.warnings)
            step.errors = tuple(step.errors)
            step.freeze()
        self.steps = tuple(self.steps)
        self.errors = tuple(self.errors)
        self.results = MappingProxyType(dict(self.results))
        self.freeze()

    @property
    def scoring_result(self):
        return self.results.get("scoring_result")

    def snapshot(self) -> WorkflowSnapshot:
        result = self.scoring_result
        return WorkflowSnapshot(
            id=self.id.value,
            status=self.status,
            retries=self.retries,
            start_time=self.start_time,
            end_time=self.end_time,
            decision=self.decision,
            steps=tuple(step.snapshot() for step in self.steps),
            errors=tuple(self.errors),
            needs_review=self.needs_review,
            manual_mode=self.manual_mode,
            review_data=_read_only(self.review_data) if self.review_data else None,
            total_score=result.total_score if result is not None else None,
            confidence=result.confidence if result is not None else None,
        )
