"""Shared fixtures: a fully wired orchestrator over fakes."""
from dataclasses import dataclass
from typing import Optional

import pytest

from core.application.services import (
    ElementDetector,
    ImageCapturer,
    ManualReviewService,
    RubricGenerator,
    ScoreSyncService,
    ScoringEngine,
)
from core.domain.entities.workflow import WorkflowOptions
from core.infrastructure.adapters.review import InMemoryReviewSink
from orchestration.bus import ALL_EVENTS, InMemoryEventBus
from orchestration.events import Event
from orchestration.orchestrator import WorkflowOrchestrator
from tests.mocks.fake_completion import FakeTextCompletion, FakeVisionCompletion
from tests.mocks.fake_page import FakePage, grading_page
from tests.mocks.fake_renderer import FakeRenderer
from tests.mocks.fake_score_writer import FakeScoreWriter

ANALYSIS_JSON = (
    '```json\n{"questionType": "subjective", "difficulty": 5, '
    '"keyPoints": ["论点明确", "论据充分"], "commonErrors": ["偏题"], "analysis": "论述题"}\n```'
)

_DEFAULT = object()


class EventRecorder:
    """Async handler remembering every event it sees."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    async def __call__(self, event: Event) -> None:
        self.events.append(event)

    @property
    def names(self) -> list[str]:
        return [event.name for event in self.events]

    def of(self, name: str) -> list[Event]:
        return [event for event in self.events if event.name == name]


@dataclass
class Harness:
    orchestrator: WorkflowOrchestrator
    page: FakePage
    renderer: Optional[FakeRenderer]
    text: FakeTextCompletion
    vision: FakeVisionCompletion
    writer: FakeScoreWriter
    sink: InMemoryReviewSink
    bus: InMemoryEventBus
    recorder: EventRecorder


@pytest.fixture
def make_harness():
    """Factory building an orchestrator; keyword arguments beyond the fakes become options."""

    def _make(
        page=None,
        renderer=_DEFAULT,
        vision=None,
        text=None,
        writer=None,
        history_limit: int = 10,
        render_options=None,
        **option_overrides,
    ) -> Harness:
        page = page if page is not None else grading_page()
        renderer = FakeRenderer() if renderer is _DEFAULT else renderer
        vision = vision if vision is not None else FakeVisionCompletion()
        text = text if text is not None else FakeTextCompletion(ANALYSIS_JSON)
        writer = writer if writer is not None else FakeScoreWriter()
        sink = InMemoryReviewSink()
        bus = InMemoryEventBus()
        recorder = EventRecorder()
        bus.subscribe(ALL_EVENTS, recorder)

        option_overrides.setdefault("retry_delay", 0)
        orchestrator = WorkflowOrchestrator(
            page=page,
            detector=ElementDetector(),
            capturer=ImageCapturer(renderer, render_options=render_options),
            rubric_generator=RubricGenerator(text),
            scoring_engine=ScoringEngine(vision, model_name="fake-vision"),
            score_sync=ScoreSyncService(writer),
            manual_review=ManualReviewService(sink),
            event_bus=bus,
            default_options=WorkflowOptions(**option_overrides),
            history_limit=history_limit,
        )
        return Harness(
            orchestrator=orchestrator,
            page=page,
            renderer=renderer,
            text=text,
            vision=vision,
            writer=writer,
            sink=sink,
            bus=bus,
            recorder=recorder,
        )

    return _make
