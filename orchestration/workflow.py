"""Workflow definitions - PipelineStep, RetryPolicy, decide."""

from dataclasses import dataclass
from enum import Enum

from core.domain.enums.workflow_status import Decision, WorkflowState


class PipelineStep(str, Enum):
    """Ordered stages of one grading workflow."""

    DETECT_ELEMENTS = "detect-elements"
    CAPTURE_IMAGE = "capture-image"
    GENERATE_RUBRIC = "generate-rubric"
    AI_SCORING = "ai-scoring"
    PROCESS_RESULT = "process-result"

    @property
    def description(self) -> str:
        return STEP_DESCRIPTIONS[self]

    @property
    def state(self) -> WorkflowState:
        return STEP_STATES[self]


STEP_DESCRIPTIONS = {
    PipelineStep.DETECT_ELEMENTS: "检测页面元素",
    PipelineStep.CAPTURE_IMAGE: "截取答题卡图片",
    PipelineStep.GENERATE_RUBRIC: "生成评分细则",
    PipelineStep.AI_SCORING: "AI智能评分",
    PipelineStep.PROCESS_RESULT: "处理评分结果",
}

STEP_STATES = {
    PipelineStep.DETECT_ELEMENTS: WorkflowState.DETECTING,
    PipelineStep.CAPTURE_IMAGE: WorkflowState.CAPTURING,
    PipelineStep.GENERATE_RUBRIC: WorkflowState.GENERATING_RUBRIC,
    PipelineStep.AI_SCORING: WorkflowState.SCORING,
    PipelineStep.PROCESS_RESULT: WorkflowState.DECIDING,
}

PIPELINE = tuple(PipelineStep)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry policy for transient workflow failures.

    ``max_retries`` bounds the total number of attempts of one run, the
    first attempt included: with the default of 3, three network failures
    in a row give up and no fourth attempt is made. This is one retry fewer
    than the "1 + max_retries attempts" reading of the setting name.
    """

    max_retries: int = 3
    retry_delay: float = 1.0

    def allows_retry(self, retries: int) -> bool:
        """True if an attempt that already had ``retries`` predecessors may be retried."""
        return retries + 1 < self.max_retries


def decide(confidence: float, threshold: float) -> Decision:
    """Confidence gate. Depends on nothing but its two arguments."""
    if confidence >= threshold:
        return Decision.AUTO_SYNC
    return Decision.MANUAL_REVIEW
