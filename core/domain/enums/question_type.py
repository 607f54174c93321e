"""
Scoring Enums.
"""
from enum import Enum


class QuestionType(str, Enum):
    """Question families with their own default rubric."""

    SUBJECTIVE = "subjective"
    OBJECTIVE = "objective"

    @classmethod
    def parse(cls, value: "str | QuestionType | None") -> "QuestionType":
        """Map free text to a question type, defaulting to subjective."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.SUBJECTIVE


class ResponseSource(str, Enum):
    """Where the numbers of a ScoringResult came from."""

    PARSED_JSON = "parsed-json"
    RECOVERED_TEXT = "recovered-text"
    DEFAULT = "default"
    ERROR = "error"
