"""Tests for EventBus."""

from datetime import datetime, timezone
from types import MappingProxyType

import pytest

from orchestration.bus import ALL_EVENTS, InMemoryEventBus
from orchestration.events import Event, EventMetadata, EventName


def _event(name: str = EventName.WORKFLOW_STARTED.value, sequence: int = 1) -> Event:
    metadata = EventMetadata(
        workflow_id="workflow-1700000000000-abc123xyz",
        sequence=sequence,
        timestamp=datetime.now(timezone.utc),
    )
    return Event(name=name, payload=MappingProxyType({"retries": 0}), metadata=metadata)


@pytest.mark.asyncio
async def test_event_bus_subscribe_and_publish():
    """Test subscribing and publishing events."""
    bus = InMemoryEventBus()

    events_received: list[Event] = []

    async def handler(event: Event) -> None:
        events_received.append(event)

    bus.subscribe(EventName.WORKFLOW_STARTED.value, handler)

    await bus.publish(_event())

    assert len(events_received) == 1
    assert events_received[0].name == "workflow-started"
    assert events_received[0].payload == {"retries": 0}
    assert events_received[0].metadata.workflow_id == "workflow-1700000000000-abc123xyz"


@pytest.mark.asyncio
async def test_event_bus_multiple_handlers_in_subscription_order():
    """Handlers for the same event run in the order they subscribed."""
    bus = InMemoryEventBus()
    calls: list[str] = []

    async def handler1(event: Event) -> None:
        calls.append("first")

    async def handler2(event: Event) -> None:
        calls.append("second")

    bus.subscribe("workflow-started", handler1)
    bus.subscribe("workflow-started", handler2)

    await bus.publish(_event())

    assert calls == ["first", "second"]


@pytest.mark.asyncio
async def test_event_bus_failing_handler_does_not_stop_delivery():
    """A handler raising is logged and the remaining handlers still run."""
    bus = InMemoryEventBus()
    received: list[Event] = []

    async def broken(event: Event) -> None:
        raise RuntimeError("subscriber bug")

    async def healthy(event: Event) -> None:
        received.append(event)

    bus.subscribe("workflow-started", broken)
    bus.subscribe("workflow-started", healthy)

    await bus.publish(_event())

    assert len(received) == 1


@pytest.mark.asyncio
async def test_event_bus_wildcard_and_unsubscribe():
    """'*' handlers see every event; unsubscribed handlers see nothing more."""
    bus = InMemoryEventBus()
    seen: list[str] = []

    async def everything(event: Event) -> None:
        seen.append(event.name)

    bus.subscribe(ALL_EVENTS, everything)
    await bus.publish(_event("workflow-started"))
    await bus.publish(_event("step-completed", sequence=2))

    bus.unsubscribe(ALL_EVENTS, everything)
    await bus.publish(_event("workflow-completed", sequence=3))

    assert seen == ["workflow-started", "step-completed"]


@pytest.mark.asyncio
async def test_event_bus_no_handlers():
    """Test publishing event with no handlers."""
    bus = InMemoryEventBus()

    # Should not raise an error
    await bus.publish(_event())
