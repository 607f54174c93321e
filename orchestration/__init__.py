"""Orchestration layer - grading workflow orchestration with eventing."""

from typing import TYPE_CHECKING, Optional

from .bus import EventBusProtocol, InMemoryEventBus
from .confirmation import ConfirmationGate
from .events import Event, EventMetadata, EventName
from .models import HistoryEntry, OrchestratorStatus
from .orchestrator import WorkflowOrchestrator
from .workflow import PIPELINE, PipelineStep, RetryPolicy, decide

if TYPE_CHECKING:
    from core.application.interfaces import (
        IImageRenderer,
        IPageElementLocator,
        IReviewSink,
        IScoreWriter,
    )
    from core.settings.modules.app_settings import AppSettings

__all__ = [
    "ConfirmationGate",
    "Event",
    "EventBusProtocol",
    "EventMetadata",
    "EventName",
    "HistoryEntry",
    "InMemoryEventBus",
    "OrchestratorStatus",
    "PIPELINE",
    "PipelineStep",
    "RetryPolicy",
    "WorkflowOrchestrator",
    "create_default_orchestrator",
    "decide",
]


def create_default_orchestrator(
    page: "IPageElementLocator",
    renderer: Optional["IImageRenderer"],
    score_writer: "IScoreWriter",
    review_sink: Optional["IReviewSink"] = None,
    settings: Optional["AppSettings"] = None,
    event_bus: Optional[EventBusProtocol] = None,
) -> WorkflowOrchestrator:
    """Create an orchestrator wired to the OpenAI-compatible clients.

    Args:
        page: Locator over the live host page
        renderer: Image rendering backend (None when unavailable)
        score_writer: Writer for the host page score field
        review_sink: Review queue (defaults to an in-memory sink)
        settings: Application settings (defaults to get_app_settings())
        event_bus: Event bus (defaults to a new in-memory bus)

    Returns:
        WorkflowOrchestrator instance
    """
    from core.application.services import (
        ElementDetector,
        ImageCapturer,
        ManualReviewService,
        RubricGenerator,
        ScoreSyncService,
        ScoringEngine,
    )
    from core.domain.entities.workflow import WorkflowOptions
    from core.domain.value_objects import RenderOptions
    from core.infrastructure.adapters.completion import (
        OpenAITextCompletion,
        OpenAIVisionCompletion,
    )
    from core.infrastructure.adapters.review import InMemoryReviewSink
    from core.settings import get_app_settings

    settings = settings or get_app_settings()
    ai = settings.ai
    capture = settings.capture

    capturer = ImageCapturer(
        renderer,
        render_options=RenderOptions(
            scale=capture.scale,
            background_color=capture.background_color,
            timeout_ms=capture.timeout_ms,
        ),
        jpeg_quality=capture.jpeg_quality,
        max_width=capture.max_width,
    )
    rubric_generator = RubricGenerator(
        OpenAITextCompletion(ai, model=ai.text_model),
        temperature=ai.temperature,
        max_tokens=ai.analysis_max_tokens,
    )
    scoring_engine = ScoringEngine(
        OpenAIVisionCompletion(ai, model=ai.vision_model),
        model_name=ai.vision_model,
        temperature=ai.temperature,
        max_tokens=ai.scoring_max_tokens,
    )

    return WorkflowOrchestrator(
        page=page,
        detector=ElementDetector(),
        capturer=capturer,
        rubric_generator=rubric_generator,
        scoring_engine=scoring_engine,
        score_sync=ScoreSyncService(score_writer),
        manual_review=ManualReviewService(review_sink or InMemoryReviewSink()),
        event_bus=event_bus or InMemoryEventBus(),
        default_options=WorkflowOptions.from_settings(settings.workflow),
        history_limit=settings.workflow.history_limit,
    )
