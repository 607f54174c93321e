"""Application layer - services, interfaces, and DTOs."""

from .dtos import RubricAnalysisDTO, ScoringResponseDTO
from .interfaces import (
    IImageRenderer,
    IPageElementLocator,
    IReviewSink,
    IScoreWriter,
    ITextCompletion,
    IVisionCompletion,
)
from .services import (
    ElementDetector,
    ImageCapturer,
    ManualReviewService,
    RubricGenerator,
    ScoreSyncService,
    ScoringEngine,
)

__all__ = [
    # DTOs
    "RubricAnalysisDTO",
    "ScoringResponseDTO",
    # Services
    "ElementDetector",
    "ImageCapturer",
    "ManualReviewService",
    "RubricGenerator",
    "ScoreSyncService",
    "ScoringEngine",
    # Interfaces
    "IImageRenderer",
    "IPageElementLocator",
    "IReviewSink",
    "IScoreWriter",
    "ITextCompletion",
    "IVisionCompletion",
]
