"""
Manual Review Service.

Hands workflows that need a human decision to the review queue.
"""
import logging
from typing import Any, Dict, Optional

from core.application.interfaces import IReviewSink
from core.domain.entities.workflow import WorkflowSnapshot
from core.domain.value_objects import ScoringResult


logger = logging.getLogger(__name__)


LOW_CONFIDENCE_REASON = "AI置信度较低"
SCORING_FAILED_REASON = "AI评分失败"


def build_review_data(result: Optional[ScoringResult], reason: str = LOW_CONFIDENCE_REASON) -> Dict[str, Any]:
    """Review payload attached to a workflow routed to a human."""
    return {
        "original_result": result,
        "reason": reason,
        "suggestions": result.feedback if result is not None else "",
    }


class ManualReviewService:
    """Manual review port backed by an IReviewSink."""

    def __init__(self, sink: IReviewSink):
        self.sink = sink

    async def request_review(self, snapshot: WorkflowSnapshot) -> None:
        """Queue a workflow snapshot for adjudication."""
        reason = snapshot.review_data.get("reason") if snapshot.review_data else None
        logger.info(f"Queueing workflow {snapshot.id} for manual review ({reason})")
        await self.sink.enqueue(snapshot)
