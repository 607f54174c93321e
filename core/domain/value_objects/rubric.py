"""Scoring rubric value objects."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Iterable, Optional

from gradeflow_sdk.utils.datetime import utc_now

from ..enums.question_type import QuestionType
from ..errors import InvalidRubricError


@dataclass(frozen=True)
class RubricDimension:
    """One weighted scoring dimension."""

    key: str
    name: str
    description: str
    max_score: float
    weight: float
    key_points: tuple = ()

    def with_weight(self, weight: float) -> "RubricDimension":
        return replace(self, weight=round(weight, 4))


@dataclass(frozen=True)
class ScoringRubric:
    """
    Immutable rubric for one question.

    The sum of the dimension maxima always equals ``total_score``.
    """

    question_type: QuestionType
    dimensions: tuple
    total_score: float
    difficulty: int = 5
    key_points: tuple = ()
    common_errors: tuple = ()
    analysis: str = ""
    generated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        if not self.dimensions:
            raise InvalidRubricError("Rubric must contain at least one dimension")
        expected = sum(d.max_score for d in self.dimensions)
        if abs(expected - self.total_score) > 1e-9:
            raise InvalidRubricError(
                f"Rubric total {self.total_score} does not match dimension sum {expected}"
            )
        names = [d.name for d in self.dimensions]
        if len(set(names)) != len(names):
            raise InvalidRubricError(f"Duplicate rubric dimensions: {names}")

    @classmethod
    def build(
        cls,
        question_type: QuestionType,
        dimensions: Iterable[RubricDimension],
        difficulty: int = 5,
        key_points: Iterable[str] = (),
        common_errors: Iterable[str] = (),
        analysis: str = "",
    ) -> "ScoringRubric":
        """Create a rubric whose total is derived from its dimensions."""
        dims = tuple(dimensions)
        return cls(
            question_type=question_type,
            dimensions=dims,
            total_score=sum(d.max_score for d in dims),
            difficulty=difficulty,
            key_points=tuple(key_points),
            common_errors=tuple(common_errors),
            analysis=analysis,
        )

    @property
    def dimension_names(self) -> list[str]:
        return [d.name for d in self.dimensions]

    def find(self, name: str) -> Optional[RubricDimension]:
        for dimension in self.dimensions:
            if dimension.name == name:
                return dimension
        return None

    def summary(self) -> dict:
        return {
            "dimensions": len(self.dimensions),
            "total_score": self.total_score,
            "difficulty": self.difficulty,
        }
