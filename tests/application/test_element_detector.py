"""Tests for ElementDetector."""

import pytest

from core.application.services.element_detector import (
    ElementDetector,
    calculate_confidence,
    classify_page,
)
from core.domain.enums.anchor_type import AnchorType, LocatorKind, PageType
from core.domain.errors import ElementDetectionError
from core.domain.value_objects import Locator
from tests.mocks.fake_page import FakeElement, FakePage, grading_page


@pytest.mark.parametrize(
    "count,locator,all_visible,expected",
    [
        (0, Locator(LocatorKind.IDENTITY, "#answer"), True, 0.0),
        (1, Locator(LocatorKind.IDENTITY, "#answer"), True, 1.0),
        (1, Locator(LocatorKind.ATTRIBUTE, "[data-score]"), False, 0.85),
        (3, Locator(LocatorKind.CLASS, ".answer-card"), True, 0.8),
        (3, Locator(LocatorKind.CLASS, ".ng-star-inserted"), True, 0.7),
        (12, Locator(LocatorKind.TAG, "textarea"), False, 0.5),
    ],
)
def test_calculate_confidence(count, locator, all_visible, expected):
    assert calculate_confidence(count, locator, all_visible) == pytest.approx(expected)


def test_calculate_confidence_stays_in_unit_interval():
    for count in range(0, 20):
        for kind in LocatorKind:
            for visible in (True, False):
                value = calculate_confidence(count, Locator(kind, ".x"), visible)
                assert 0.0 <= value <= 1.0


@pytest.mark.asyncio
async def test_detect_finds_anchors_with_first_matching_locator():
    page = grading_page()
    detector = ElementDetector()

    elements = await detector.detect(page, required=[AnchorType.ANSWER_AREA, AnchorType.SCORE_INPUT])

    assert set(elements) == {
        AnchorType.ANSWER_AREA,
        AnchorType.SCORE_INPUT,
        AnchorType.SUBMIT_BUTTON,
    }
    answer = elements[AnchorType.ANSWER_AREA]
    assert answer.locator_used.query == ".answer-card"
    assert answer.match_count == 1
    assert answer.primary.name == "answer-card"


@pytest.mark.asyncio
async def test_detect_is_idempotent_on_unchanged_page():
    page = grading_page()
    detector = ElementDetector()

    first = await detector.detect(page)
    second = await detector.detect(page)

    assert first == second


@pytest.mark.asyncio
async def test_detect_raises_when_required_anchor_missing():
    page = FakePage({".answer-card": [FakeElement("answer")]})
    detector = ElementDetector()

    with pytest.raises(ElementDetectionError) as exc_info:
        await detector.detect(page, required=[AnchorType.ANSWER_AREA, AnchorType.SCORE_INPUT])

    assert exc_info.value.missing == (AnchorType.SCORE_INPUT,)
    assert exc_info.value.kind.value == "element-detection"


@pytest.mark.asyncio
async def test_failing_locator_falls_through_to_next_one():
    page = FakePage(
        {".question-paper": [FakeElement("paper")]},
        failing_queries=(".answer-card",),
    )
    detector = ElementDetector()

    elements = await detector.detect(page)

    assert elements[AnchorType.ANSWER_AREA].locator_used.query == ".question-paper"


@pytest.mark.asyncio
async def test_text_locator_matches_button_label():
    page = FakePage(
        {
            ".answer-card": [FakeElement("answer")],
            "button": [FakeElement("cancel", text="取消"), FakeElement("save", text="提交评分")],
        }
    )

    elements = await ElementDetector().detect(page)

    submit = elements[AnchorType.SUBMIT_BUTTON]
    assert submit.locator_used.kind is LocatorKind.TEXT
    assert submit.primary.name == "save"


def test_should_redetect_only_for_watched_classes():
    detector = ElementDetector()

    assert detector.should_redetect(["answer-card"])
    assert not detector.should_redetect(["tooltip", "ripple"])


@pytest.mark.parametrize(
    "url,title,body,expected",
    [
        ("https://exam.example.com/grade/123", "", "", PageType.GRADING),
        ("https://exam.example.com/review/1", "", "", PageType.REVIEW),
        ("https://exam.example.com/list", "", "", PageType.LIST),
        ("https://exam.example.com/x", "在线阅卷", "", PageType.GRADING),
        ("https://exam.example.com/x", "首页", "欢迎", PageType.UNKNOWN),
    ],
)
def test_classify_page(url, title, body, expected):
    assert classify_page(url, title, body) is expected
