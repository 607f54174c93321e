"""Scoring result value objects."""

from dataclasses import dataclass
from typing import Optional

from ..enums.error_kind import ErrorKind
from ..enums.question_type import ResponseSource


@dataclass(frozen=True)
class StudentInfo:
    name: str = ""
    id: str = ""


@dataclass(frozen=True)
class QuestionInfo:
    content: str = ""
    type: str = "subjective"
    number: str = ""


@dataclass(frozen=True)
class BreakdownItem:
    """Score awarded for one rubric dimension."""

    dimension: str
    score: float
    max_score: float
    reason: str = ""
    highlights: tuple = ()


@dataclass(frozen=True)
class ScoringResult:
    """
    Validated output of the scoring engine.

    ``total_score`` lies in [0, rubric total], ``confidence`` in [0, 100] and
    ``breakdown`` holds exactly one item per rubric dimension in rubric order.
    """

    total_score: float
    confidence: float
    breakdown: tuple
    feedback: str = ""
    issues: tuple = ()
    tags: tuple = ()
    source: ResponseSource = ResponseSource.PARSED_JSON
    requires_review: bool = False
    error_kind: Optional[ErrorKind] = None
    scoring_time: float = 0.0
    ai_model: str = ""

    @property
    def is_error(self) -> bool:
        return self.source is ResponseSource.ERROR

    def to_dict(self) -> dict:
        return {
            "total_score": self.total_score,
            "confidence": self.confidence,
            "breakdown": [
                {
                    "dimension": item.dimension,
                    "score": item.score,
                    "max_score": item.max_score,
                    "reason": item.reason,
                    "highlights": list(item.highlights),
                }
                for item in self.breakdown
            ],
            "feedback": self.feedback,
            "issues": list(self.issues),
            "tags": list(self.tags),
            "source": self.source.value,
            "requires_review": self.requires_review,
            "scoring_time": self.scoring_time,
            "ai_model": self.ai_model,
        }


@dataclass(frozen=True)
class ScoringQuality:
    """Heuristic sanity check of a scoring result."""

    score: int
    issues: tuple = ()
    recommendations: tuple = ()
