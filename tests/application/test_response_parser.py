"""Tests for model answer parsing."""

from core.application.dtos.ai_response_dto import ScoringResponseDTO
from core.application.services.response_parser import (
    DefaultResult,
    ParsedJSON,
    RecoveredText,
    extract_json_block,
    parse_scoring_response,
)

DIMENSIONS = ["内容完整性", "逻辑结构"]


def test_extract_prefers_fenced_block():
    text = 'Here you go {"ignored": 1}\n```json\n{"totalScore": 9}\n```'

    assert extract_json_block(text) == '{"totalScore": 9}'


def test_extract_falls_back_to_outer_braces():
    assert extract_json_block('结果: {"a": {"b": 1}} 完') == '{"a": {"b": 1}}'
    assert extract_json_block("no json here") is None


def test_parse_classifies_answers():
    assert isinstance(parse_scoring_response('{"totalScore": "88分"}', DIMENSIONS), ParsedJSON)
    assert isinstance(parse_scoring_response("总分: 80", DIMENSIONS), RecoveredText)
    assert isinstance(parse_scoring_response("   ", DIMENSIONS), DefaultResult)
    assert isinstance(parse_scoring_response("[1, 2, 3]", DIMENSIONS), DefaultResult)


def test_json_array_answer_is_not_an_object():
    parsed = parse_scoring_response("```json\n[1, 2]\n```\n总分：50", DIMENSIONS)

    assert isinstance(parsed, RecoveredText)
    assert parsed.total_score == 50


def test_dto_coerces_loose_values():
    dto = ScoringResponseDTO.model_validate(
        {
            "score": "91.5",
            "confidence": "80%",
            "breakdown": "n/a",
            "feedback": None,
            "issues": "看不清第二段",
            "tags": None,
        }
    )

    assert dto.total_score == 91.5
    assert dto.confidence == 80
    assert dto.breakdown is None
    assert dto.feedback == ""
    assert dto.issues == ["看不清第二段"]
    assert dto.tags == []


def test_points_after_full_marks_are_ignored():
    parsed = parse_scoring_response("满分100分，本题得 64 分", DIMENSIONS)

    assert isinstance(parsed, RecoveredText)
    assert parsed.total_score == 64
    assert parsed.confidence == 70
