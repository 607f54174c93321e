"""Application services."""
from .element_detector import ElementDetector, calculate_confidence, classify_page
from .image_capturer import ImageCapturer
from .manual_review import ManualReviewService, build_review_data
from .rubric_generator import RubricGenerator, default_rubric
from .score_sync import ScoreSyncService, SyncOutcome
from .scoring_engine import ScoringEngine

__all__ = [
    "ElementDetector",
    "ImageCapturer",
    "ManualReviewService",
    "RubricGenerator",
    "ScoreSyncService",
    "ScoringEngine",
    "SyncOutcome",
    "build_review_data",
    "calculate_confidence",
    "classify_page",
    "default_rubric",
]
