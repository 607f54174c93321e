"""
Scoring Engine.

Asks the vision capability to score a captured answer against a rubric and
validates whatever comes back.

Guarantees of every returned ScoringResult:
- 0 <= total_score <= rubric.total_score
- 0 <= confidence <= 100
- breakdown holds exactly one item per rubric dimension, in rubric order

Transport and model failures do not raise: they produce an error result with
confidence 0, which the orchestrator always routes to a human.
"""
import asyncio
import logging
import time
from dataclasses import replace
from typing import Dict, List, Optional

from core.application.interfaces import IVisionCompletion
from core.application.services.response_parser import (
    ParsedJSON,
    ParsedResponse,
    RecoveredText,
    parse_scoring_response,
)
from core.domain.enums.error_kind import ErrorKind
from core.domain.enums.question_type import ResponseSource
from core.domain.errors import CapabilityError, classify_error
from core.domain.value_objects import (
    BreakdownItem,
    ImagePayload,
    ScoringQuality,
    ScoringResult,
    ScoringRubric,
    StudentInfo,
)


logger = logging.getLogger(__name__)


DEFAULT_SCORE_RATIO = 0.6
DEFAULT_CONFIDENCE = 50.0
MISSING_DIMENSION_REASON = "该维度未检测到有效内容"
UNRECOVERED_DIMENSION_REASON = "未检测到该维度的具体评分"
DEFAULT_BREAKDOWN_RATIO = 0.5


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def build_scoring_prompt(rubric: ScoringRubric, student_info: Optional[StudentInfo] = None) -> str:
    """Build the instruction sent along with the answer image."""
    dimensions = "\n".join(
        f"- {d.name} ({d.max_score:g}分): {d.description}" for d in rubric.dimensions
    )
    sections = [
        "您是一位经验丰富的阅卷老师,请根据以下评分标准,对答题卡图片进行客观、准确的评分.",
        f"**评分标准:**\n{dimensions}",
    ]
    if rubric.key_points:
        points = "\n".join(f"{i}. {p}" for i, p in enumerate(rubric.key_points, start=1))
        sections.append(f"**评分关键点:**\n{points}")
    if student_info and student_info.name:
        sections.append(f"**学生信息:**{student_info.name} ({student_info.id or '未知'})")
    sections.append(
        "**输出格式(必须严格按照JSON格式):**\n"
        "```json\n"
        "{\n"
        '  "totalScore": 总分,\n'
        '  "confidence": 置信度(0-100),\n'
        '  "breakdown": [{"dimension": "维度名称", "score": 得分, "maxScore": 满分, '
        '"reason": "评分理由", "highlights": []}],\n'
        '  "feedback": "总体评价和改进建议",\n'
        '  "tags": [],\n'
        '  "issues": ["看不清或存疑的内容"]\n'
        "}\n"
        "```"
    )
    return "\n\n".join(sections)


class ScoringEngine:
    """
    Scores answer images with a multimodal model.

    Usage:
        engine = ScoringEngine(vision_completion, model_name="gpt-4o")
        result = await engine.score(image, rubric, student_info)
    """

    def __init__(
        self,
        vision: IVisionCompletion,
        model_name: str = "",
        temperature: float = 0.3,
        max_tokens: int = 1500,
    ):
        self.vision = vision
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def score(
        self,
        image: ImagePayload,
        rubric: ScoringRubric,
        student_info: Optional[StudentInfo] = None,
    ) -> ScoringResult:
        """
        Score one captured answer.

        Returns:
            A validated ScoringResult; an error result if the capability failed
        """
        prompt = build_scoring_prompt(rubric, student_info)
        logger.info(
            f"Scoring answer image ({image.size_bytes} bytes) against "
            f"{len(rubric.dimensions)} dimensions, total {rubric.total_score:g}"
        )

        started = time.monotonic()
        try:
            raw = await self.vision.complete(prompt, image.data, self.temperature, self.max_tokens)
        except (CapabilityError, asyncio.TimeoutError, ConnectionError) as e:
            kind = classify_error(e)
            logger.error(f"Scoring capability failed ({kind.value}): {e}")
            return self.create_error_result(str(e), rubric, kind)
        elapsed = round(time.monotonic() - started, 3)

        parsed = parse_scoring_response(raw, rubric.dimension_names)
        result = self.validate(parsed, rubric)

        logger.info(
            f"Scoring finished: total={result.total_score:g}, confidence={result.confidence:g}, "
            f"source={result.source.value}, time={elapsed}s"
        )
        return replace(result, scoring_time=elapsed, ai_model=self.model_name)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, parsed: ParsedResponse, rubric: ScoringRubric) -> ScoringResult:
        """Turn any parsed shape into a result that satisfies the rubric bounds."""
        if isinstance(parsed, ParsedJSON):
            return self._from_json(parsed, rubric)
        if isinstance(parsed, RecoveredText):
            return self._from_text(parsed, rubric)
        logger.warning(f"Using default scoring result: {parsed.reason}")
        return self.create_default_result(rubric)

    def _from_json(self, parsed: ParsedJSON, rubric: ScoringRubric) -> ScoringResult:
        response = parsed.response
        issues: List[str] = list(response.issues)

        if response.breakdown is None:
            breakdown = self._default_breakdown(rubric)
            issues.append("评分明细缺失,已使用默认明细")
        else:
            reported = {}
            for item in response.breakdown:
                if item.dimension is None:
                    continue
                if item.dimension in reported:
                    issues.append(f"重复的评分维度已忽略: {item.dimension}")
                    continue
                reported[item.dimension] = (item.score or 0.0, item.reason, tuple(item.highlights))
            unknown = [name for name in reported if rubric.find(name) is None]
            if unknown:
                issues.append(f"未知的评分维度已忽略: {', '.join(unknown)}")
            breakdown = self._resync(rubric, reported, MISSING_DIMENSION_REASON, issues)

        total = response.total_score
        if total is None:
            total = sum(item.score for item in breakdown)
        confidence = response.confidence if response.confidence is not None else 0.0

        return self._finalize(
            rubric,
            total=total,
            confidence=confidence,
            breakdown=breakdown,
            feedback=response.feedback,
            issues=issues,
            tags=tuple(response.tags),
            source=ResponseSource.PARSED_JSON,
        )

    def _from_text(self, parsed: RecoveredText, rubric: ScoringRubric) -> ScoringResult:
        issues: List[str] = ["评分结果非JSON格式,已从文本中提取"]
        reported = {name: (score, reason, ()) for name, (score, reason) in parsed.scores.items()}
        breakdown = self._resync(rubric, reported, UNRECOVERED_DIMENSION_REASON, issues=None)
        total = parsed.total_score
        if total is None:
            total = sum(item.score for item in breakdown)
        return self._finalize(
            rubric,
            total=total,
            confidence=parsed.confidence,
            breakdown=breakdown,
            feedback=parsed.text,
            issues=issues,
            tags=(),
            source=ResponseSource.RECOVERED_TEXT,
        )

    def _resync(
        self,
        rubric: ScoringRubric,
        reported: Dict[str, tuple],
        missing_reason: str,
        issues: Optional[List[str]],
    ) -> tuple:
        """One breakdown item per rubric dimension, in rubric order."""
        items = []
        for dimension in rubric.dimensions:
            entry = reported.get(dimension.name)
            if entry is None:
                if issues is not None:
                    issues.append(f"缺少维度评分: {dimension.name}")
                items.append(
                    BreakdownItem(
                        dimension=dimension.name,
                        score=0.0,
                        max_score=dimension.max_score,
                        reason=missing_reason,
                    )
                )
                continue
            score, reason, highlights = entry
            items.append(
                BreakdownItem(
                    dimension=dimension.name,
                    score=_clamp(float(score), 0.0, dimension.max_score),
                    max_score=dimension.max_score,
                    reason=reason,
                    highlights=highlights,
                )
            )
        return tuple(items)

    def _finalize(
        self,
        rubric: ScoringRubric,
        total: float,
        confidence: float,
        breakdown: tuple,
        feedback: str,
        issues: List[str],
        tags: tuple,
        source: ResponseSource,
    ) -> ScoringResult:
        clamped_total = _clamp(float(total), 0.0, rubric.total_score)
        if clamped_total != total:
            logger.warning(f"Total score {total:g} out of range [0, {rubric.total_score:g}]")
            issues.append(
                f"总分 {total:g} 超出范围 [0, {rubric.total_score:g}],已修正为 {clamped_total:g}"
            )
        return ScoringResult(
            total_score=clamped_total,
            confidence=_clamp(float(confidence), 0.0, 100.0),
            breakdown=breakdown,
            feedback=feedback,
            issues=tuple(issues),
            tags=tags,
            source=source,
        )

    # ------------------------------------------------------------------
    # Fallback results
    # ------------------------------------------------------------------

    def _default_breakdown(self, rubric: ScoringRubric) -> tuple:
        return tuple(
            BreakdownItem(
                dimension=d.name,
                score=float(round(d.max_score * DEFAULT_BREAKDOWN_RATIO)),
                max_score=d.max_score,
                reason="默认评分:中等表现",
            )
            for d in rubric.dimensions
        )

    def create_default_result(self, rubric: ScoringRubric) -> ScoringResult:
        """Deterministic result used when nothing could be parsed."""
        breakdown = tuple(
            BreakdownItem(
                dimension=d.name,
                score=float(round(d.max_score * DEFAULT_SCORE_RATIO)),
                max_score=d.max_score,
                reason="默认评分:中等水平表现",
            )
            for d in rubric.dimensions
        )
        return ScoringResult(
            total_score=_clamp(sum(item.score for item in breakdown), 0.0, rubric.total_score),
            confidence=DEFAULT_CONFIDENCE,
            breakdown=breakdown,
            feedback="由于AI识别失败,使用默认评分.建议人工复核确认.",
            issues=("AI识别异常",),
            tags=("默认评分", "需要复核"),
            source=ResponseSource.DEFAULT,
            requires_review=True,
            ai_model="default",
        )

    def create_error_result(
        self,
        message: str,
        rubric: ScoringRubric,
        kind: ErrorKind = ErrorKind.AI_SCORING,
    ) -> ScoringResult:
        """Result for a failed capability call; always needs manual review."""
        return ScoringResult(
            total_score=0.0,
            confidence=0.0,
            breakdown=tuple(
                BreakdownItem(
                    dimension=d.name,
                    score=0.0,
                    max_score=d.max_score,
                    reason=f"识别失败: {message}",
                )
                for d in rubric.dimensions
            ),
            feedback=f"AI识别过程中出现错误: {message}.建议转入人工复核流程.",
            issues=(message,),
            tags=("识别失败", "需要人工复核"),
            source=ResponseSource.ERROR,
            requires_review=True,
            error_kind=kind,
            ai_model=self.model_name or "unknown",
        )

    # ------------------------------------------------------------------
    # Quality
    # ------------------------------------------------------------------

    def evaluate_quality(self, result: ScoringResult) -> ScoringQuality:
        """Flag suspicious scoring patterns. Each issue costs 20 points."""
        issues: List[str] = []
        recommendations: List[str] = []

        if result.confidence < 60:
            issues.append("置信度较低,建议人工复核")
            recommendations.append("转入人工复核流程")

        if result.breakdown:
            zeros = sum(1 for item in result.breakdown if item.score == 0)
            if zeros > len(result.breakdown) * 0.5:
                issues.append("过多维度得分为0,可能存在识别问题")
                recommendations.append("检查图片质量或转入人工复核")

            if all(item.score == item.max_score for item in result.breakdown):
                issues.append("所有维度均为满分,需要验证")
                recommendations.append("建议人工确认评分合理性")

        if result.is_error:
            issues.append("评分过程出现错误")
            recommendations.append("必须转入人工复核")

        return ScoringQuality(
            score=max(0, 100 - len(issues) * 20),
            issues=tuple(issues),
            recommendations=tuple(recommendations),
        )
