"""
DTOs for structured AI model responses.

Models answer with loosely typed JSON: numbers arrive as strings ("85%",
"18分"), lists arrive as single strings or null. These DTOs coerce what they
can and leave the rest as None so the engine can apply its own defaults.
"""
import re
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def _coerce_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _NUMBER.search(str(value))
    return float(match.group()) if match else None


def _coerce_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None and str(item).strip()]
    return [str(value)]


class BreakdownItemDTO(BaseModel):
    """One per-dimension entry as reported by the model."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    dimension: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("dimension", "name")
    )
    score: Optional[float] = None
    max_score: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("maxScore", "max_score")
    )
    reason: str = ""
    highlights: List[str] = Field(default_factory=list)

    @field_validator("score", "max_score", mode="before")
    @classmethod
    def _number(cls, v: Any) -> Optional[float]:
        return _coerce_number(v)

    @field_validator("reason", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("highlights", mode="before")
    @classmethod
    def _list(cls, v: Any) -> List[str]:
        return _coerce_str_list(v)


class ScoringResponseDTO(BaseModel):
    """Top-level scoring answer as reported by the model."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    total_score: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("totalScore", "total_score", "score")
    )
    confidence: Optional[float] = None
    breakdown: Optional[List[BreakdownItemDTO]] = None
    feedback: str = ""
    tags: List[str] = Field(default_factory=list)
    issues: List[str] = Field(default_factory=list)

    @field_validator("total_score", "confidence", mode="before")
    @classmethod
    def _number(cls, v: Any) -> Optional[float]:
        return _coerce_number(v)

    @field_validator("breakdown", mode="before")
    @classmethod
    def _breakdown(cls, v: Any) -> Optional[list]:
        if not isinstance(v, list):
            return None
        return [item for item in v if isinstance(item, dict)]

    @field_validator("feedback", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("tags", "issues", mode="before")
    @classmethod
    def _list(cls, v: Any) -> List[str]:
        return _coerce_str_list(v)


class RubricAnalysisDTO(BaseModel):
    """Question analysis used to tune a rubric."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    question_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("questionType", "question_type")
    )
    difficulty: int = 5
    key_points: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("keyPoints", "key_points")
    )
    common_errors: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices("commonErrors", "common_errors")
    )
    analysis: str = ""

    @field_validator("difficulty", mode="before")
    @classmethod
    def _difficulty(cls, v: Any) -> int:
        number = _coerce_number(v)
        if number is None:
            return 5
        return int(max(1, min(10, round(number))))

    @field_validator("key_points", "common_errors", mode="before")
    @classmethod
    def _list(cls, v: Any) -> List[str]:
        return _coerce_str_list(v)

    @field_validator("analysis", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else str(v)
