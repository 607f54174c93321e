"""Tests for InMemoryReviewSink."""

import pytest

from core.domain.entities.workflow import Workflow, WorkflowOptions
from core.infrastructure.adapters.review import InMemoryReviewSink


@pytest.mark.asyncio
async def test_sink_records_in_order_and_drains():
    sink = InMemoryReviewSink()
    first = Workflow.create(WorkflowOptions()).snapshot()
    second = Workflow.create(WorkflowOptions()).snapshot()

    await sink.enqueue(first)
    await sink.enqueue(second)

    assert sink.drain() == [first, second]
    assert sink.drain() == []
