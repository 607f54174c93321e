"""Orchestration events - EventName, Event, EventMetadata."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Mapping


class EventName(str, Enum):
    """Events emitted by the workflow orchestrator."""

    WORKFLOW_STARTED = "workflow-started"
    STEP_COMPLETED = "step-completed"
    STEP_FAILED = "step-failed"
    WORKFLOW_COMPLETED = "workflow-completed"
    WORKFLOW_ERROR = "workflow-error"
    MANUAL_REVIEW_REQUIRED = "manual-review-required"
    MANUAL_MODE_REQUIRED = "manual-mode-required"
    SCORE_SYNCED = "score-synced"
    WORKFLOW_MAX_RETRIES_EXCEEDED = "workflow-max-retries-exceeded"


@dataclass(frozen=True)
class EventMetadata:
    """Metadata for an event."""

    workflow_id: str
    sequence: int
    timestamp: datetime


@dataclass(frozen=True)
class Event:
    """Notification published by the orchestrator.

    Payload values are snapshots, never live orchestrator state.
    """

    name: str
    payload: Mapping[str, object]
    metadata: EventMetadata
