"""
Element Detector.

Locates the anchors of the host exam page (answer area, score field, submit
control, ...) and scores how much each match can be trusted.

Flow per anchor type:
1. Try the configured locators in order
2. The first locator with at least one match wins
3. Compute a confidence from match count, locator kind and visibility

The detector is stateless between calls; re-detection after DOM mutations
or visibility changes is driven by the hosting layer.
"""
import logging
from typing import Dict, Iterable, Mapping, Optional, Sequence

from core.application.interfaces import IPageElementLocator, PageElement
from core.domain.enums.anchor_type import AnchorType, LocatorKind, PageType
from core.domain.errors import ElementDetectionError
from core.domain.value_objects import DetectedElement, Locator


logger = logging.getLogger(__name__)


BASE_CONFIDENCE = 0.5
SINGLE_MATCH_BONUS = 0.2
FEW_MATCHES_BONUS = 0.1
ATTRIBUTE_BONUS = 0.15
IDENTITY_BONUS = 0.2
STABLE_CLASS_BONUS = 0.1
ALL_VISIBLE_BONUS = 0.1


def _cls(query: str) -> Locator:
    return Locator(LocatorKind.CLASS, query)


def _attr(query: str) -> Locator:
    return Locator(LocatorKind.ATTRIBUTE, query)


def _tag(query: str) -> Locator:
    return Locator(LocatorKind.TAG, query)


DEFAULT_LOCATORS: Dict[AnchorType, tuple] = {
    AnchorType.ANSWER_AREA: (
        _cls(".answer-card"),
        _cls(".question-paper"),
        _cls(".student-answer"),
        _attr("[data-answer]"),
        _cls(".answer-area"),
        _cls(".question-content"),
    ),
    AnchorType.SCORE_INPUT: (
        _tag('input[type="number"]'),
        _cls(".score-input"),
        _attr("[data-score]"),
        _cls(".mark-input"),
        _attr('input[name*="score"]'),
        _cls(".points-input"),
    ),
    AnchorType.SUBMIT_BUTTON: (
        _tag('button[type="submit"]'),
        _cls(".submit-btn"),
        _cls(".save-score"),
        _attr('[data-action="submit"]'),
        _cls(".grade-submit"),
        Locator(LocatorKind.TEXT, "button", text="提交"),
    ),
    AnchorType.STUDENT_INFO: (
        _cls(".student-name"),
        _cls(".student-id"),
        _cls(".student-info"),
        _attr("[data-student]"),
        _cls(".candidate-info"),
        _cls(".student-number"),
    ),
    AnchorType.QUESTION_INFO: (
        _cls(".question-number"),
        _cls(".question-title"),
        _attr("[data-question]"),
        _cls(".item-number"),
        _cls(".question-index"),
        _cls(".q-number"),
    ),
}


GRADING_KEYWORDS = ("阅卷", "评分", "打分", "批改", "mark", "grade", "score")


def calculate_confidence(match_count: int, locator: Locator, all_visible: bool) -> float:
    """
    Heuristic confidence that a locator found the right anchor.

    Pure function of its arguments, clamped to [0, 1].
    """
    if match_count <= 0:
        return 0.0

    confidence = BASE_CONFIDENCE

    if match_count == 1:
        confidence += SINGLE_MATCH_BONUS
    elif match_count <= 5:
        confidence += FEW_MATCHES_BONUS

    if locator.kind is LocatorKind.ATTRIBUTE:
        confidence += ATTRIBUTE_BONUS
    elif locator.kind is LocatorKind.IDENTITY:
        confidence += IDENTITY_BONUS
    elif locator.kind is LocatorKind.CLASS and not locator.is_dynamic:
        confidence += STABLE_CLASS_BONUS

    if all_visible:
        confidence += ALL_VISIBLE_BONUS

    return round(min(confidence, 1.0), 4)


def classify_page(url: str, title: str = "", body_text: str = "") -> PageType:
    """Guess the host page type from its URL, then from grading keywords."""
    lowered = url.lower()
    if any(token in lowered for token in ("grade", "mark", "score")):
        return PageType.GRADING
    if any(token in lowered for token in ("review", "check")):
        return PageType.REVIEW
    if any(token in lowered for token in ("list", "manage")):
        return PageType.LIST
    if any(keyword in body_text or keyword in title for keyword in GRADING_KEYWORDS):
        return PageType.GRADING
    return PageType.UNKNOWN


def _is_shown(element: PageElement) -> bool:
    return bool(element.is_visible() and element.in_viewport())


class ElementDetector:
    """
    Detects host page anchors using ordered locator strategies.

    Usage:
        detector = ElementDetector()
        elements = await detector.detect(page, required=[AnchorType.ANSWER_AREA])
    """

    def __init__(self, locators: Optional[Mapping[AnchorType, Sequence[Locator]]] = None):
        """
        Initialize detector.

        Args:
            locators: Ordered locators per anchor type (defaults to DEFAULT_LOCATORS)
        """
        source = locators if locators is not None else DEFAULT_LOCATORS
        self._locators: Dict[AnchorType, tuple] = {
            anchor: tuple(items) for anchor, items in source.items()
        }

    @property
    def anchor_types(self) -> list[AnchorType]:
        return list(self._locators)

    async def detect(
        self,
        page: IPageElementLocator,
        required: Iterable[AnchorType] = (AnchorType.ANSWER_AREA,),
    ) -> Dict[AnchorType, DetectedElement]:
        """
        Detect every configured anchor type on the page.

        Args:
            page: Locator over the live host page
            required: Anchor types whose absence fails the call

        Returns:
            Detected anchors keyed by type (missing optional anchors are omitted)

        Raises:
            ElementDetectionError: If a required anchor had no match
        """
        logger.info("Detecting page elements")
        detected: Dict[AnchorType, DetectedElement] = {}

        for anchor_type, locators in self._locators.items():
            element = await self._detect_anchor(page, anchor_type, locators)
            if element is not None:
                detected[anchor_type] = element

        missing = [AnchorType(a) for a in required if AnchorType(a) not in detected]
        if missing:
            names = ", ".join(a.value for a in missing)
            logger.warning(f"Required elements not found: {names}")
            raise ElementDetectionError(f"Required elements not found: {names}", missing=missing)

        logger.info(
            f"Page element detection finished: {len(detected)}/{len(self._locators)} anchor types"
        )
        return detected

    async def _detect_anchor(
        self,
        page: IPageElementLocator,
        anchor_type: AnchorType,
        locators: Sequence[Locator],
    ) -> Optional[DetectedElement]:
        for locator in locators:
            try:
                elements = list(await page.find_all(locator))
            except Exception as e:
                logger.warning(f"Locator {locator} failed for {anchor_type.value}: {e}")
                continue

            if not elements:
                continue

            visible = sum(1 for el in elements if _is_shown(el))
            confidence = calculate_confidence(len(elements), locator, visible == len(elements))
            logger.debug(
                f"Found {anchor_type.value} via {locator} "
                f"(count={len(elements)}, confidence={confidence})"
            )
            return DetectedElement(
                anchor_type=anchor_type,
                locator_used=locator,
                match_count=len(elements),
                confidence=confidence,
                visible_count=visible,
                elements=tuple(elements),
            )
        return None

    def should_redetect(self, added_class_names: Iterable[str]) -> bool:
        """
        Decide whether a DOM mutation is relevant.

        Args:
            added_class_names: Class names of nodes added by the mutation

        Returns:
            True if any added node carries a class used by a class locator
        """
        watched = {
            locator.query.lstrip(".")
            for locators in self._locators.values()
            for locator in locators
            if locator.kind is LocatorKind.CLASS
        }
        return any(name in watched for name in added_class_names)
