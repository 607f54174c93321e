"""Tests for ScoringEngine - validation, text recovery and fallbacks."""

import asyncio

import pytest

from core.application.services.rubric_generator import default_rubric
from core.application.services.scoring_engine import ScoringEngine, build_scoring_prompt
from core.domain.enums.error_kind import ErrorKind
from core.domain.enums.question_type import QuestionType, ResponseSource
from core.domain.errors import CapabilityError, CapabilityNetworkError
from core.domain.value_objects import ImagePayload, ImageQuality, StudentInfo
from tests.mocks.fake_completion import FakeVisionCompletion, scoring_json

QUALITY = ImageQuality(score=80, width=800, height=600, brightness=70, contrast=80, sharpness=70)
IMAGE = ImagePayload(data=b"\xff\xd8fake-jpeg", quality=QUALITY)


@pytest.fixture
def rubric():
    return default_rubric(QuestionType.SUBJECTIVE)


def _assert_bounds(result, rubric):
    assert 0 <= result.total_score <= rubric.total_score
    assert 0 <= result.confidence <= 100
    assert [item.dimension for item in result.breakdown] == rubric.dimension_names
    for item in result.breakdown:
        assert 0 <= item.score <= item.max_score


@pytest.mark.asyncio
async def test_well_formed_json_is_used(rubric):
    engine = ScoringEngine(FakeVisionCompletion(scoring_json()), model_name="vision-x")

    result = await engine.score(IMAGE, rubric)

    assert result.source is ResponseSource.PARSED_JSON
    assert result.total_score == 85
    assert result.confidence == 85
    assert result.ai_model == "vision-x"
    assert result.requires_review is False
    _assert_bounds(result, rubric)


@pytest.mark.asyncio
async def test_out_of_range_total_is_clamped_with_issue(rubric):
    """totalScore 150 against a 100-point rubric is clamped and flagged."""
    engine = ScoringEngine(FakeVisionCompletion(scoring_json(total=150, confidence=130)))

    result = await engine.score(IMAGE, rubric)

    assert result.total_score == 100
    assert result.confidence == 100
    assert any("150" in issue for issue in result.issues)
    _assert_bounds(result, rubric)


@pytest.mark.asyncio
async def test_breakdown_is_resynced_to_rubric(rubric):
    breakdown = [
        {"dimension": "逻辑结构", "score": 25, "maxScore": 20},
        {"dimension": "逻辑结构", "score": 5, "maxScore": 20},
        {"dimension": "卷面整洁", "score": 10, "maxScore": 10},
        {"name": "内容完整性", "score": "18分", "max_score": 20},
    ]
    engine = ScoringEngine(FakeVisionCompletion(scoring_json(total=None, breakdown=breakdown)))

    result = await engine.score(IMAGE, rubric)

    scores = {item.dimension: item.score for item in result.breakdown}
    assert scores["逻辑结构"] == 20
    assert scores["内容完整性"] == 18
    assert scores["语言表达"] == 0
    assert result.total_score == 38
    assert any("卷面整洁" in issue for issue in result.issues)
    assert any("重复" in issue for issue in result.issues)
    _assert_bounds(result, rubric)


@pytest.mark.asyncio
async def test_missing_breakdown_uses_default_breakdown(rubric):
    engine = ScoringEngine(FakeVisionCompletion('{"totalScore": 70, "confidence": 80}'))

    result = await engine.score(IMAGE, rubric)

    assert [item.score for item in result.breakdown] == [10.0] * 5
    assert result.total_score == 70
    _assert_bounds(result, rubric)


@pytest.mark.asyncio
async def test_prose_answer_is_recovered(rubric):
    text = (
        "总分：78分\n"
        "置信度：65%\n"
        "内容完整性：16/20 要点基本覆盖\n"
        "逻辑结构：15 条理较清楚\n"
        "语言表达 (满分20分) 得 14分\n"
    )
    engine = ScoringEngine(FakeVisionCompletion(text))

    result = await engine.score(IMAGE, rubric)

    assert result.source is ResponseSource.RECOVERED_TEXT
    assert result.total_score == 78
    assert result.confidence == 65
    scores = {item.dimension: item.score for item in result.breakdown}
    assert scores["内容完整性"] == 16
    assert scores["逻辑结构"] == 15
    assert scores["语言表达"] == 14
    assert scores["创新思维"] == 0
    _assert_bounds(result, rubric)


@pytest.mark.asyncio
async def test_malformed_json_falls_back_to_text_recovery(rubric):
    engine = ScoringEngine(FakeVisionCompletion('```json\n{"totalScore": 80, "confidence": \n```'))

    result = await engine.score(IMAGE, rubric)

    assert result.source is ResponseSource.RECOVERED_TEXT
    _assert_bounds(result, rubric)


@pytest.mark.asyncio
async def test_unusable_answer_yields_default_result(rubric):
    engine = ScoringEngine(FakeVisionCompletion("抱歉，我无法识别这张图片。"))

    result = await engine.score(IMAGE, rubric)

    assert result.source is ResponseSource.DEFAULT
    assert result.confidence == 50
    assert [item.score for item in result.breakdown] == [12.0] * 5
    assert result.total_score == 60
    assert result.requires_review is True


@pytest.mark.parametrize(
    "error,kind",
    [
        (CapabilityError("model refused"), ErrorKind.AI_SCORING),
        (CapabilityNetworkError("connection reset"), ErrorKind.NETWORK),
        (asyncio.TimeoutError(), ErrorKind.NETWORK),
        (ConnectionError("refused"), ErrorKind.NETWORK),
    ],
)
@pytest.mark.asyncio
async def test_capability_failure_yields_error_result(rubric, error, kind):
    engine = ScoringEngine(FakeVisionCompletion(error))

    result = await engine.score(IMAGE, rubric)

    assert result.is_error
    assert result.error_kind is kind
    assert result.confidence == 0
    assert result.total_score == 0
    assert all(item.score == 0 for item in result.breakdown)
    assert result.requires_review is True
    assert len(result.issues) == 1


@pytest.mark.asyncio
async def test_unexpected_capability_bug_propagates(rubric):
    engine = ScoringEngine(FakeVisionCompletion(KeyError("bug")))

    with pytest.raises(KeyError):
        await engine.score(IMAGE, rubric)


def test_prompt_lists_dimensions_and_student(rubric):
    prompt = build_scoring_prompt(rubric, StudentInfo(name="张三", id="2024001"))

    for name in rubric.dimension_names:
        assert name in prompt
    assert "张三" in prompt
    assert "totalScore" in prompt


def test_quality_flags_suspicious_results(rubric):
    engine = ScoringEngine(FakeVisionCompletion())
    error_result = engine.create_error_result("boom", rubric)

    quality = engine.evaluate_quality(error_result)

    assert quality.score == 40
    assert len(quality.issues) == 3
