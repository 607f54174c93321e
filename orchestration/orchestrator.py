"""Orchestrator - runs grading workflows with eventing, failure policy and history."""

import asyncio
from collections import deque
from dataclasses import replace
from types import MappingProxyType
from typing import Optional

from core.application.interfaces import IPageElementLocator
from core.application.services.element_detector import ElementDetector
from core.application.services.image_capturer import ImageCapturer
from core.application.services.manual_review import (
    LOW_CONFIDENCE_REASON,
    SCORING_FAILED_REASON,
    ManualReviewService,
    build_review_data,
)
from core.application.services.rubric_generator import RubricGenerator
from core.application.services.score_sync import ScoreSyncService, SyncOutcome
from core.application.services.scoring_engine import ScoringEngine
from core.domain.entities.workflow import Step, Workflow, WorkflowOptions
from core.domain.enums.anchor_type import AnchorType
from core.domain.enums.error_kind import ErrorKind
from core.domain.enums.workflow_status import Decision, WorkflowState, WorkflowStatus
from core.domain.errors import (
    CapabilityNetworkError,
    ConfirmationCancelled,
    ElementDetectionError,
    classify_error,
)
from gradeflow_sdk.logging import get_logger
from gradeflow_sdk.utils.datetime import duration_ms, utc_now

from .bus import EventBusProtocol
from .confirmation import ConfirmationGate
from .events import Event, EventMetadata, EventName
from .models import HistoryEntry, OrchestratorStatus
from .workflow import PIPELINE, PipelineStep, RetryPolicy, decide

LOW_QUALITY_WARNING = "图片质量可能较低,可能影响识别准确性"
MANUAL_MODE_REASON = "无法自动检测页面元素"
PREDEFINED_RUBRIC_REASON = "使用预定义的评分细则"

# Anchors that must be present before an automatic run is triggered
AUTO_TRIGGER_MIN_ANCHORS = 2

_TERMINAL_STATES = {
    WorkflowStatus.COMPLETED: WorkflowState.COMPLETED,
    WorkflowStatus.FAILED: WorkflowState.FAILED,
    WorkflowStatus.AWAITING_REVIEW: WorkflowState.AWAITING_REVIEW,
}


class WorkflowOrchestrator:
    """Orchestrator for grading one answer at a time.

    Each call to run() drives a fresh Workflow through detect, capture,
    rubric, score and decide. Transient (network) failures restart the
    pipeline from the first step in a new Workflow, up to
    ``options.max_retries`` attempts in total.
    """

    def __init__(
        self,
        page: IPageElementLocator,
        detector: ElementDetector,
        capturer: ImageCapturer,
        rubric_generator: RubricGenerator,
        scoring_engine: ScoringEngine,
        score_sync: ScoreSyncService,
        manual_review: ManualReviewService,
        event_bus: EventBusProtocol,
        default_options: Optional[WorkflowOptions] = None,
        history_limit: int = 10,
    ) -> None:
        """Initialize orchestrator.

        Args:
            page: Locator over the live host page
            detector: ElementDetector for page anchors
            capturer: ImageCapturer for the answer area
            rubric_generator: RubricGenerator used when no rubric is supplied
            scoring_engine: ScoringEngine for the captured image
            score_sync: ScoreSyncService (score sync port)
            manual_review: ManualReviewService (manual review port)
            event_bus: EventBusProtocol for publishing events
            default_options: Options used when run() gets none
            history_limit: Number of finished workflows kept in history
        """
        self._page = page
        self._detector = detector
        self._capturer = capturer
        self._rubric_generator = rubric_generator
        self._scoring_engine = scoring_engine
        self._score_sync = score_sync
        self._manual_review = manual_review
        self._event_bus = event_bus
        self._default_options = default_options or WorkflowOptions()
        self._history: deque[HistoryEntry] = deque(maxlen=history_limit)
        self._confirmation = ConfirmationGate()
        self._logger = get_logger("orchestration.orchestrator")

        self._state = WorkflowState.IDLE
        self._processing = False
        self._auto_mode = False
        self._current: Optional[Workflow] = None
        self._current_step: Optional[str] = None
        self._sequence = 0
        self._closed = asyncio.Event()

        self._handlers = {
            PipelineStep.DETECT_ELEMENTS: self._detect_elements,
            PipelineStep.CAPTURE_IMAGE: self._capture_image,
            PipelineStep.GENERATE_RUBRIC: self._generate_rubric,
            PipelineStep.AI_SCORING: self._score_answer,
            PipelineStep.PROCESS_RESULT: self._process_result,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def is_processing(self) -> bool:
        return self._processing

    @property
    def auto_mode(self) -> bool:
        return self._auto_mode

    @property
    def awaiting_confirmation(self) -> bool:
        return self._confirmation.pending

    async def run(
        self, options: Optional[WorkflowOptions] = None, **overrides
    ) -> Optional[Workflow]:
        """Grade the answer currently shown on the page.

        Args:
            options: Per-run options (defaults to the orchestrator defaults)
            **overrides: WorkflowOptions fields replacing those of ``options``

        Returns:
            The last Workflow of the run (terminal), or None if a run was
            already in progress
        """
        if self._closed.is_set():
            raise RuntimeError("Orchestrator is closed")
        if self._processing:
            self._logger.warning("Orchestrator busy, ignoring run request")
            return None

        resolved = replace(options or self._default_options, **overrides)
        self._processing = True
        try:
            return await self._run_with_retries(resolved)
        finally:
            self._processing = False
            self._current = None
            self._current_step = None

    def get_state(self) -> OrchestratorStatus:
        """Return a point-in-time view of the orchestrator."""
        return OrchestratorStatus(
            state=self._state,
            is_processing=self._processing,
            auto_mode=self._auto_mode,
            current_workflow_id=self._current.id.value if self._current else None,
            current_step=self._current_step,
            history_size=len(self._history),
        )

    def get_history(self, limit: Optional[int] = None) -> list[HistoryEntry]:
        """Return finished workflows, most recent first."""
        entries = list(reversed(self._history))
        return entries[:limit] if limit is not None else entries

    def set_auto_mode(self, enabled: bool) -> None:
        self._auto_mode = bool(enabled)
        self._logger.info(f"Auto mode {'enabled' if self._auto_mode else 'disabled'}")

    async def on_elements_detected(self, anchor_count: int) -> Optional[Workflow]:
        """Hook for the page layer after a (re)detection.

        Starts a run when auto mode is on, the page exposes enough anchors
        and nothing is running yet.
        """
        if not self._auto_mode or self._processing or self._closed.is_set():
            return None
        if anchor_count < AUTO_TRIGGER_MIN_ANCHORS:
            return None
        self._logger.info(f"Auto mode: {anchor_count} anchors detected, starting workflow")
        return await self.run()

    def confirm(self) -> bool:
        """Confirm a pending score sync. Returns False if none is pending."""
        return self._confirmation.confirm()

    def cancel(self) -> bool:
        """Cancel a pending score sync. Returns False if none is pending."""
        return self._confirmation.cancel()

    def close(self) -> None:
        """Release resources. Pending confirmations and retries are cancelled."""
        self._confirmation.cancel()
        self._history.clear()
        self._auto_mode = False
        self._closed.set()
        self._logger.info("Orchestrator closed")

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def _run_with_retries(self, options: WorkflowOptions) -> Workflow:
        policy = RetryPolicy(max_retries=options.max_retries, retry_delay=options.retry_delay)
        retries = 0
        while True:
            workflow = Workflow.create(options, retries=retries)
            if retries:
                workflow.status = WorkflowStatus.RETRYING

            should_retry = await self._execute(workflow, policy)
            if not should_retry:
                return workflow

            retries += 1
            self._logger.info(
                f"Retrying grading in {policy.retry_delay:g}s "
                f"(attempt {retries + 1}/{policy.max_retries})"
            )
            if await self._wait_before_retry(policy.retry_delay):
                self._logger.info(f"Orchestrator closed, retry of workflow {workflow.id} cancelled")
                return workflow

    async def _wait_before_retry(self, delay: float) -> bool:
        """Sleep ``delay`` seconds. Returns True if close() was called meanwhile."""
        try:
            await asyncio.wait_for(self._closed.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
        return self._closed.is_set()

    async def _execute(self, workflow: Workflow, policy: RetryPolicy) -> bool:
        """Run the pipeline once. Returns True if the run should be retried."""
        self._current = workflow
        self._logger.info(f"Workflow {workflow.id} starting (retries={workflow.retries})")

        await self._publish(EventName.WORKFLOW_STARTED, workflow, {"retries": workflow.retries})
        workflow.status = WorkflowStatus.RUNNING

        for stage in PIPELINE:
            self._state = stage.state
            self._current_step = stage.value
            step = workflow.start_step(stage.value, stage.description)
            try:
                await self._handlers[stage](workflow, step)
            except Exception as exc:
                return await self._handle_step_failure(workflow, step, exc, policy)

            self._logger.debug(f"Step {step.name} {step.status.value} on workflow {workflow.id}")
            await self._publish(EventName.STEP_COMPLETED, workflow, {"step": step.snapshot()})

        if workflow.decision is Decision.MANUAL_REVIEW:
            self._finish(workflow, WorkflowStatus.AWAITING_REVIEW)
        else:
            self._finish(workflow, WorkflowStatus.COMPLETED)

        await self._publish(
            EventName.WORKFLOW_COMPLETED,
            workflow,
            {"decision": workflow.decision.value if workflow.decision else None},
        )
        return False

    def _finish(self, workflow: Workflow, status: WorkflowStatus) -> None:
        workflow.finish(status)
        self._state = _TERMINAL_STATES[status]
        self._history.append(HistoryEntry.from_workflow(workflow))
        self._logger.info(
            f"Workflow {workflow.id} finished: {status.value} "
            f"in {duration_ms(workflow.start_time, workflow.end_time)} ms"
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _detect_elements(self, workflow: Workflow, step: Step) -> None:
        elements = await self._detector.detect(
            self._page, required=workflow.options.required_anchors
        )
        workflow.results["detected_elements"] = elements

        confidences = [element.confidence for element in elements.values()]
        workflow.complete_step(
            step,
            {
                "elements": [element.describe() for element in elements.values()],
                "confidence": round(sum(confidences) / len(confidences) * 100)
                if confidences
                else 0,
            },
        )

    async def _capture_image(self, workflow: Workflow, step: Step) -> None:
        anchor = workflow.results["detected_elements"].get(AnchorType.ANSWER_AREA)
        if anchor is None:
            raise ElementDetectionError(
                "Answer area element not found", missing=(AnchorType.ANSWER_AREA,)
            )

        image = await self._capturer.capture(anchor)
        workflow.results["captured_image"] = image

        if image.quality.score < workflow.options.min_image_quality:
            self._logger.warning(
                f"Captured image quality {image.quality.score} below "
                f"{workflow.options.min_image_quality}"
            )
            step.warnings.append(LOW_QUALITY_WARNING)

        workflow.complete_step(
            step,
            {
                "quality": image.quality.to_dict(),
                "size_bytes": image.size_bytes,
                "mime_type": image.mime_type,
            },
        )

    async def _generate_rubric(self, workflow: Workflow, step: Step) -> None:
        options = workflow.options
        if options.scoring_rubric is not None:
            workflow.results["scoring_rubric"] = options.scoring_rubric
            workflow.skip_step(step, PREDEFINED_RUBRIC_REASON)
            return

        question = options.question_info
        rubric = await self._rubric_generator.generate(
            question.content, options.reference_answer, question.type
        )
        workflow.results["scoring_rubric"] = rubric
        workflow.complete_step(step, rubric.summary())

    async def _score_answer(self, workflow: Workflow, step: Step) -> None:
        result = await self._scoring_engine.score(
            workflow.results["captured_image"],
            workflow.results["scoring_rubric"],
            workflow.options.student_info,
        )
        if result.is_error and result.error_kind is ErrorKind.NETWORK:
            raise CapabilityNetworkError(
                result.issues[0] if result.issues else "Scoring capability unreachable"
            )
        workflow.results["scoring_result"] = result

        quality = self._scoring_engine.evaluate_quality(result)
        step.warnings.extend(quality.issues)
        workflow.complete_step(
            step,
            {
                "total_score": result.total_score,
                "confidence": result.confidence,
                "source": result.source.value,
                "requires_review": result.requires_review,
                "quality_score": quality.score,
            },
        )

    async def _process_result(self, workflow: Workflow, step: Step) -> None:
        result = workflow.scoring_result
        threshold = workflow.options.confidence_threshold
        if result.is_error:
            # A failed capability call never reaches the page as a score
            decision = Decision.MANUAL_REVIEW
        else:
            decision = decide(result.confidence, threshold)
        self._logger.info(
            f"Workflow {workflow.id}: confidence {result.confidence:g} vs threshold "
            f"{threshold:g} -> {decision.value}"
        )

        summary = {
            "decision": decision.value,
            "confidence": result.confidence,
            "threshold": threshold,
        }
        if decision is Decision.AUTO_SYNC:
            outcome = await self._sync_score(workflow)
            summary.update(
                score=outcome.score, submitted=outcome.submitted, cancelled=outcome.cancelled
            )
        else:
            reason = SCORING_FAILED_REASON if result.is_error else LOW_CONFIDENCE_REASON
            await self._request_review(workflow, reason)
            summary["reason"] = reason

        workflow.decision = decision
        workflow.complete_step(step, summary)

    async def _sync_score(self, workflow: Workflow) -> SyncOutcome:
        self._state = WorkflowState.SYNCING
        options = workflow.options
        elements = workflow.results["detected_elements"]
        result = workflow.scoring_result

        score = await self._score_sync.write_score(elements, result)

        if options.require_confirmation:
            try:
                await self._confirmation.wait(options.confirmation_timeout)
            except ConfirmationCancelled as exc:
                self._logger.warning(f"Score sync for workflow {workflow.id} not confirmed: {exc}")
                workflow.sync_cancelled = True
                outcome = SyncOutcome(score=score, confidence=result.confidence, cancelled=True)
                workflow.results["sync_outcome"] = outcome
                return outcome

        submitted = False
        if options.auto_submit:
            submitted = await self._score_sync.submit(elements)

        outcome = SyncOutcome(score=score, confidence=result.confidence, submitted=submitted)
        workflow.results["sync_outcome"] = outcome
        await self._publish(
            EventName.SCORE_SYNCED,
            workflow,
            {"score": score, "confidence": result.confidence, "submitted": submitted},
        )
        return outcome

    async def _request_review(self, workflow: Workflow, reason: str) -> None:
        self._state = WorkflowState.AWAITING_REVIEW
        workflow.needs_review = True
        workflow.review_data = build_review_data(workflow.scoring_result, reason)

        await self._publish(EventName.MANUAL_REVIEW_REQUIRED, workflow, {"reason": reason})
        await self._manual_review.request_review(workflow.snapshot())

    # ------------------------------------------------------------------
    # Failure policy
    # ------------------------------------------------------------------

    async def _handle_step_failure(
        self, workflow: Workflow, step: Step, exc: Exception, policy: RetryPolicy
    ) -> bool:
        kind = classify_error(exc)
        workflow.fail_step(step, exc, kind)
        self._logger.error(
            f"Step {step.name} failed on workflow {workflow.id} ({kind.value}): {exc}",
            exc_info=kind is ErrorKind.UNKNOWN,
        )
        await self._publish(
            EventName.STEP_FAILED,
            workflow,
            {"step": step.snapshot(), "error": str(exc), "kind": kind.value},
        )

        if kind is ErrorKind.NETWORK:
            should_retry = policy.allows_retry(workflow.retries)
            self._finish(workflow, WorkflowStatus.FAILED)
            if should_retry:
                return True
            self._logger.error(
                f"Workflow {workflow.id} gave up after {workflow.retries + 1} attempts"
            )
            await self._publish(
                EventName.WORKFLOW_MAX_RETRIES_EXCEEDED,
                workflow,
                {
                    "error": str(exc),
                    "attempts": workflow.retries + 1,
                    "max_retries": policy.max_retries,
                },
            )
            return False

        if kind is ErrorKind.ELEMENT_DETECTION:
            workflow.manual_mode = True
            self._finish(workflow, WorkflowStatus.FAILED)
            await self._publish(
                EventName.MANUAL_MODE_REQUIRED,
                workflow,
                {"reason": MANUAL_MODE_REASON, "error": str(exc)},
            )
            return False

        if kind is ErrorKind.AI_SCORING:
            try:
                await self._request_review(workflow, SCORING_FAILED_REASON)
            except Exception as review_exc:
                self._logger.error(
                    f"Manual review handoff failed for workflow {workflow.id}: {review_exc}",
                    exc_info=True,
                )
                self._finish(workflow, WorkflowStatus.FAILED)
                await self._publish(
                    EventName.WORKFLOW_ERROR,
                    workflow,
                    {"error": str(review_exc), "kind": ErrorKind.UNKNOWN.value},
                )
                return False
            self._finish(workflow, WorkflowStatus.AWAITING_REVIEW)
            return False

        self._finish(workflow, WorkflowStatus.FAILED)
        await self._publish(
            EventName.WORKFLOW_ERROR, workflow, {"error": str(exc), "kind": kind.value}
        )
        return False

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def _publish(self, name: EventName, workflow: Workflow, payload: dict) -> None:
        """Publish an event carrying a snapshot of the workflow."""
        self._sequence += 1
        event = Event(
            name=name.value,
            payload=MappingProxyType({**payload, "workflow": workflow.snapshot()}),
            metadata=EventMetadata(
                workflow_id=workflow.id.value,
                sequence=self._sequence,
                timestamp=utc_now(),
            ),
        )
        await self._event_bus.publish(event)
