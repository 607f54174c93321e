"""Event bus - EventBusProtocol and InMemoryEventBus."""

from collections.abc import Awaitable, Callable
from typing import Protocol

from gradeflow_sdk.logging import get_logger

from .events import Event

EventHandler = Callable[[Event], Awaitable[None]]

ALL_EVENTS = "*"


class EventBusProtocol(Protocol):
    """Protocol for event bus implementations."""

    async def publish(self, event: Event) -> None:
        """Publish an event.

        Args:
            event: Event to publish
        """
        ...

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event name.

        Args:
            event_name: Event name to subscribe to ("*" for every event)
            handler: Async handler function
        """
        ...


class InMemoryEventBus(EventBusProtocol):
    """In-memory event bus implementation.

    Handlers run sequentially in subscription order. A failing handler is
    logged and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        """Initialize in-memory event bus."""
        self._handlers: dict[str, list[EventHandler]] = {}
        self._logger = get_logger("orchestration.event_bus")

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        """Subscribe a handler to an event name.

        Args:
            event_name: Event name to subscribe to ("*" for every event)
            handler: Async handler function
        """
        self._handlers.setdefault(str(event_name), []).append(handler)

    def unsubscribe(self, event_name: str, handler: EventHandler) -> None:
        """Remove a handler. Unknown handlers are ignored."""
        handlers = self._handlers.get(str(event_name), [])
        if handler in handlers:
            handlers.remove(handler)

    async def publish(self, event: Event) -> None:
        """Publish an event to all subscribed handlers.

        Args:
            event: Event to publish
        """
        handlers = [*self._handlers.get(event.name, []), *self._handlers.get(ALL_EVENTS, [])]
        if not handlers:
            return

        self._logger.debug(
            "publishing_event %s workflow_id=%s handler_count=%d",
            event.name,
            event.metadata.workflow_id,
            len(handlers),
        )

        for handler in handlers:
            try:
                await handler(event)
            except Exception as exc:
                self._logger.error(
                    "handler_error %s handler=%s error=%s",
                    event.name,
                    handler,
                    exc,
                    exc_info=True,
                )
