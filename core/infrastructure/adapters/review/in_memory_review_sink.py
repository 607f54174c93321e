"""
In-Memory Review Sink.

Keeps queued review requests in memory. Used when no external review queue
is wired in, and in tests.
"""
import logging

from core.application.interfaces import IReviewSink
from core.domain.entities.workflow import WorkflowSnapshot


logger = logging.getLogger(__name__)


class InMemoryReviewSink(IReviewSink):
    """
    In-memory implementation of the review queue.

    Records snapshots instead of forwarding them anywhere.
    """

    def __init__(self):
        """Initialize in-memory review sink."""
        self.queued: list[WorkflowSnapshot] = []
        logger.info("InMemoryReviewSink initialized")

    async def enqueue(self, snapshot: WorkflowSnapshot) -> None:
        """
        Record a workflow awaiting review.

        Args:
            snapshot: Immutable workflow snapshot
        """
        self.queued.append(snapshot)
        reason = snapshot.review_data.get("reason") if snapshot.review_data else None
        logger.info(
            f"📝 REVIEW REQUESTED:\n"
            f"   Workflow: {snapshot.id}\n"
            f"   Reason: {reason}\n"
            f"   Score: {snapshot.total_score} (confidence {snapshot.confidence})"
        )

    def drain(self) -> list[WorkflowSnapshot]:
        """Return and clear every queued snapshot."""
        queued, self.queued = self.queued, []
        return queued
