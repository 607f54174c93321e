"""Application layer interfaces.

Capabilities the grading pipeline consumes. They are implemented outside the
core (browser bridge, AI vendors, review queue) and injected at construction.
"""
from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from core.domain.entities.workflow import WorkflowSnapshot
from core.domain.value_objects import Locator, RenderOptions


@runtime_checkable
class PageElement(Protocol):
    """A live element handle on the host page."""

    def is_visible(self) -> bool:
        """True when the element has a non-empty rendered box."""
        ...

    def in_viewport(self) -> bool:
        """True when the element's box starts inside the viewport."""
        ...


class IPageElementLocator(ABC):
    """
    Interface for querying the live host page.
    """

    @abstractmethod
    async def find_all(self, locator: Locator) -> list[PageElement]:
        """
        Return every element matched by a locator.

        Args:
            locator: Locator strategy to evaluate

        Returns:
            Matching elements in document order (possibly empty)
        """
        pass


class IImageRenderer(ABC):
    """Interface for rasterising a page element."""

    @abstractmethod
    async def render(self, element: PageElement, options: RenderOptions) -> bytes:
        """
        Render an element's bounds into encoded image bytes.

        Raises:
            Exception: If the rendering backend is unavailable
        """
        pass


class ITextCompletion(ABC):
    """Interface for a text-only language model."""

    @abstractmethod
    async def complete(self, prompt: str, temperature: float, max_tokens: int) -> str:
        """
        Complete a prompt.

        Raises:
            CapabilityError: If the model call failed
        """
        pass


class IVisionCompletion(ABC):
    """Interface for a multimodal language model."""

    @abstractmethod
    async def complete(
        self, prompt: str, image: bytes, temperature: float, max_tokens: int
    ) -> str:
        """
        Complete a prompt about a JPEG image.

        Raises:
            CapabilityError: If the model call failed
        """
        pass


class IScoreWriter(ABC):
    """
    Interface for writing scores back into the host page.
    """

    @abstractmethod
    async def write(self, element: PageElement, score: float) -> None:
        """Fill the score field with a value."""
        pass

    @abstractmethod
    async def submit(self, element: PageElement) -> bool:
        """
        Activate the submit control.

        Returns:
            True if the page acknowledged the submission
        """
        pass


class IReviewSink(ABC):
    """Interface for queueing workflows for human adjudication."""

    @abstractmethod
    async def enqueue(self, snapshot: WorkflowSnapshot) -> None:
        """
        Queue a workflow for manual review.

        Args:
            snapshot: Immutable workflow snapshot
        """
        pass


__all__ = [
    "IImageRenderer",
    "IPageElementLocator",
    "IReviewSink",
    "IScoreWriter",
    "ITextCompletion",
    "IVisionCompletion",
    "PageElement",
]
