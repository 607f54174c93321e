"""
Page Anchor Enums.

Anchor types, locator kinds and page types of the host exam page.
"""
from enum import Enum


class AnchorType(str, Enum):
    """UI anchors the grading workflow depends on."""

    ANSWER_AREA = "answer-area"
    SCORE_INPUT = "score-input"
    SUBMIT_BUTTON = "submit-button"
    STUDENT_INFO = "student-info"
    QUESTION_INFO = "question-info"


class LocatorKind(str, Enum):
    """How a locator finds elements. Drives the detection confidence bonus."""

    IDENTITY = "identity"
    ATTRIBUTE = "attribute"
    CLASS = "class"
    TAG = "tag"
    TEXT = "text"


class PageType(str, Enum):
    """Kind of host page currently shown."""

    GRADING = "grading"
    REVIEW = "review"
    LIST = "list"
    UNKNOWN = "unknown"
