"""
Score Sync Service.

Writes an accepted score back into the host page and optionally submits it.
"""
import logging
from dataclasses import dataclass
from typing import Mapping

from core.application.interfaces import IScoreWriter
from core.domain.enums.anchor_type import AnchorType
from core.domain.errors import ScoreSyncError
from core.domain.value_objects import DetectedElement, ScoringResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncOutcome:
    score: float
    confidence: float
    submitted: bool = False
    cancelled: bool = False


class ScoreSyncService:
    """
    Score sync port backed by an IScoreWriter.

    Usage:
        sync = ScoreSyncService(writer)
        await sync.write_score(elements, result)
        await sync.submit(elements)
    """

    def __init__(self, writer: IScoreWriter):
        self.writer = writer

    async def write_score(
        self, elements: Mapping[AnchorType, DetectedElement], result: ScoringResult
    ) -> float:
        """
        Fill the score field with the validated total.

        Raises:
            ScoreSyncError: If no score field was detected or the write failed
        """
        anchor = elements.get(AnchorType.SCORE_INPUT)
        if anchor is None or anchor.primary is None:
            raise ScoreSyncError("Score input element not found")

        try:
            await self.writer.write(anchor.primary, result.total_score)
        except ScoreSyncError:
            raise
        except Exception as e:
            raise ScoreSyncError(f"Writing score failed: {e}") from e

        logger.info(f"Score written: {result.total_score:g} (confidence {result.confidence:g})")
        return result.total_score

    async def submit(self, elements: Mapping[AnchorType, DetectedElement]) -> bool:
        """
        Press the submit control.

        A missing control or a failed click leaves the score filled in for
        the user to submit by hand.
        """
        anchor = elements.get(AnchorType.SUBMIT_BUTTON)
        if anchor is None or anchor.primary is None:
            logger.warning("Submit button not found, score must be submitted manually")
            return False

        try:
            submitted = bool(await self.writer.submit(anchor.primary))
        except Exception as e:
            logger.warning(f"Automatic submit failed, score must be submitted manually: {e}")
            return False

        if submitted:
            logger.info("Score submitted")
        else:
            logger.warning("Submit was not acknowledged by the page")
        return submitted
