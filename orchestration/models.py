"""Orchestration models - HistoryEntry, OrchestratorStatus."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.domain.entities.workflow import Workflow
from core.domain.enums.workflow_status import Decision, WorkflowState, WorkflowStatus


@dataclass(frozen=True)
class HistoryEntry:
    """Summary of a finished workflow kept in the orchestrator history."""

    id: str
    start_time: datetime
    end_time: Optional[datetime]
    status: WorkflowStatus
    retries: int
    decision: Optional[Decision]
    total_score: Optional[float]
    confidence: Optional[float]

    @classmethod
    def from_workflow(cls, workflow: Workflow) -> "HistoryEntry":
        result = workflow.scoring_result
        return cls(
            id=workflow.id.value,
            start_time=workflow.start_time,
            end_time=workflow.end_time,
            status=workflow.status,
            retries=workflow.retries,
            decision=workflow.decision,
            total_score=result.total_score if result is not None else None,
            confidence=result.confidence if result is not None else None,
        )


@dataclass(frozen=True)
class OrchestratorStatus:
    """Point-in-time view of the orchestrator."""

    state: WorkflowState
    is_processing: bool
    auto_mode: bool
    current_workflow_id: Optional[str]
    current_step: Optional[str]
    history_size: int
