"""
Parsing of free-form AI model output.

The scoring capability is asked for fenced JSON but may answer with prose.
Parsing yields one of three shapes:

- ParsedJSON: a JSON object was found and matched the response DTO
- RecoveredText: numbers were recovered from prose by keyword match
- DefaultResult: nothing usable was found

Validation against the rubric happens afterwards in the scoring engine,
whatever the shape.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from core.application.dtos.ai_response_dto import ScoringResponseDTO


logger = logging.getLogger(__name__)


_FENCED_JSON = re.compile(r"```(?:json)?\s*\n(.*?)\n?\s*```", re.DOTALL | re.IGNORECASE)
_TOTAL_LABELLED = re.compile(
    r"(?:总分|总得分|total\s*score|total)['\"]?\s*[:：]?\s*(\d+(?:\.\d+)?)", re.IGNORECASE
)
_POINTS = re.compile(r"(?<!满分)(?<![\d.])(\d+(?:\.\d+)?)\s*分")
_CONFIDENCE = re.compile(r"(?:置信度|confidence)['\"]?\s*[:：]?\s*(\d+(?:\.\d+)?)\s*%?", re.IGNORECASE)
_TRAILING_NUMBER = re.compile(r"[:：]\s*(\d+(?:\.\d+)?)")

DEFAULT_RECOVERED_CONFIDENCE = 70.0


@dataclass(frozen=True)
class ParsedJSON:
    response: ScoringResponseDTO


@dataclass(frozen=True)
class RecoveredText:
    text: str
    total_score: Optional[float]
    confidence: float
    scores: Dict[str, Tuple[float, str]] = field(default_factory=dict)


@dataclass(frozen=True)
class DefaultResult:
    reason: str


ParsedResponse = Union[ParsedJSON, RecoveredText, DefaultResult]


def extract_json_block(text: str) -> Optional[str]:
    """
    Return the JSON object embedded in a model answer.

    Prefers a fenced block; otherwise takes the outermost braces.
    """
    if not text:
        return None
    match = _FENCED_JSON.search(text)
    if match:
        return match.group(1).strip()
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        return text[start : end + 1]
    return None


def _first_number(pattern: re.Pattern, text: str) -> Optional[float]:
    match = pattern.search(text)
    return float(match.group(1)) if match else None


def recover_from_text(text: str, dimension_names: Sequence[str]) -> Optional[RecoveredText]:
    """
    Recover scores from prose by keyword match.

    Returns None when neither a total, a confidence nor any dimension score
    could be found.
    """
    lines = [line.strip() for line in text.splitlines() if line.strip()]

    total = _first_number(_TOTAL_LABELLED, text)
    if total is None:
        total = _first_number(_POINTS, text)
    confidence = _first_number(_CONFIDENCE, text)

    scores: Dict[str, Tuple[float, str]] = {}
    for name in dimension_names:
        line = next((candidate for candidate in lines if name in candidate), None)
        if line is None:
            continue
        remainder = line.split(name, 1)[1]
        score = _first_number(_TRAILING_NUMBER, remainder)
        if score is None:
            score = _first_number(_POINTS, remainder)
        if score is not None:
            scores[name] = (score, line)

    if total is None and confidence is None and not scores:
        return None

    return RecoveredText(
        text=text,
        total_score=total,
        confidence=confidence if confidence is not None else DEFAULT_RECOVERED_CONFIDENCE,
        scores=scores,
    )


def parse_scoring_response(text: str, dimension_names: Sequence[str]) -> ParsedResponse:
    """Classify a raw model answer into one of the parsed shapes."""
    if not text or not text.strip():
        return DefaultResult(reason="empty response")

    block = extract_json_block(text)
    if block is not None:
        try:
            payload = json.loads(block)
            if isinstance(payload, dict):
                return ParsedJSON(response=ScoringResponseDTO.model_validate(payload))
            logger.warning("Scoring response JSON is not an object, trying text recovery")
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Scoring response JSON could not be parsed: {e}")

    recovered = recover_from_text(text, dimension_names)
    if recovered is not None:
        return recovered

    return DefaultResult(reason="no score found in response")
