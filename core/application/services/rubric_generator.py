"""
Rubric Generator.

Builds a scoring rubric for a question. The question is first analysed by a
text model (difficulty, key points, common errors); the analysis only tunes
weights and annotations of fixed dimension templates.

Generation is best-effort: when the model fails or its answer cannot be
parsed, the default rubric for the question type is returned instead.
"""
import json
import logging
import re
from typing import Dict, Optional, Tuple

from pydantic import ValidationError

from core.application.dtos.ai_response_dto import RubricAnalysisDTO
from core.application.interfaces import ITextCompletion
from core.application.services.response_parser import extract_json_block
from core.domain.enums.question_type import QuestionType
from core.domain.value_objects import RubricDimension, ScoringRubric


logger = logging.getLogger(__name__)


HIGH_DIFFICULTY = 8
WEIGHT_BOOSTS = {
    "innovation_thinking": 0.05,
    "content_completeness": 0.03,
}

DIMENSION_TEMPLATES: Dict[QuestionType, Tuple[RubricDimension, ...]] = {
    QuestionType.SUBJECTIVE: (
        RubricDimension("content_completeness", "内容完整性", "答案是否完整回答了题目要求的所有要点", 20, 0.25),
        RubricDimension("logical_structure", "逻辑结构", "答案的条理性和逻辑性是否清晰", 20, 0.20),
        RubricDimension("language_expression", "语言表达", "语言是否准确、流畅、规范", 20, 0.20),
        RubricDimension("innovation_thinking", "创新思维", "是否有独特的见解或创新性的思考", 20, 0.15),
        RubricDimension("format_standard", "格式规范", "书写是否规范,格式是否正确", 20, 0.20),
    ),
    QuestionType.OBJECTIVE: (
        RubricDimension("answer_correctness", "答案正确性", "答案是否正确", 60, 0.60),
        RubricDimension("step_completeness", "步骤完整性", "解题步骤是否完整", 25, 0.25),
        RubricDimension("process_standard", "过程规范性", "解题过程是否规范", 15, 0.15),
    ),
}

_DIFFICULTY_LINE = re.compile(r"(?:难度|difficulty)", re.IGNORECASE)
_KEY_POINT_LINE = re.compile(r"(?:要点|关键点|key\s*points?)", re.IGNORECASE)
_ERROR_LINE = re.compile(r"(?:错误|common\s*errors?)", re.IGNORECASE)
_INT = re.compile(r"(\d+)")
_ITEM_SEPARATORS = re.compile(r"[、,，;；]")


def build_analysis_prompt(question: str, reference_answer: str) -> str:
    return (
        "请作为一位经验丰富的出题专家,分析以下题目和参考答案.\n\n"
        f"**题目内容:**\n{question}\n\n"
        f"**参考答案:**\n{reference_answer}\n\n"
        "请以JSON格式输出:\n"
        "```json\n"
        '{"questionType": "subjective|objective", "difficulty": 1-10, '
        '"keyPoints": ["评分关键点"], "commonErrors": ["常见错误"], "analysis": "简要分析"}\n'
        "```"
    )


def _split_items(line: str) -> list[str]:
    parts = re.split(r"[:：]", line, maxsplit=1)
    if len(parts) < 2:
        return []
    return [item.strip() for item in _ITEM_SEPARATORS.split(parts[1]) if item.strip()]


def parse_text_analysis(text: str) -> Optional[RubricAnalysisDTO]:
    """
    Pull difficulty, key points and common errors out of prose.

    Returns None when none of them is present.
    """
    difficulty = None
    key_points: list[str] = []
    common_errors: list[str] = []

    for line in (raw.strip() for raw in text.splitlines()):
        if not line:
            continue
        has_colon = ":" in line or "：" in line
        if _DIFFICULTY_LINE.search(line) and has_colon and difficulty is None:
            match = _INT.search(line)
            if match:
                difficulty = int(match.group(1))
        if _KEY_POINT_LINE.search(line):
            key_points.extend(_split_items(line))
        if _ERROR_LINE.search(line):
            common_errors.extend(_split_items(line))

    if difficulty is None and not key_points and not common_errors:
        return None

    return RubricAnalysisDTO(
        difficulty=difficulty if difficulty is not None else 5,
        key_points=key_points,
        common_errors=common_errors,
        analysis=text,
    )


def parse_analysis(text: str) -> Optional[RubricAnalysisDTO]:
    """Parse the analysis answer as JSON first, then as prose."""
    if not text or not text.strip():
        return None
    block = extract_json_block(text)
    if block is not None:
        try:
            payload = json.loads(block)
            if isinstance(payload, dict):
                return RubricAnalysisDTO.model_validate(payload)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Rubric analysis JSON could not be parsed: {e}")
    return parse_text_analysis(text)


def default_rubric(question_type: QuestionType) -> ScoringRubric:
    """Fixed rubric for a question type."""
    return ScoringRubric.build(
        question_type=question_type,
        dimensions=DIMENSION_TEMPLATES[question_type],
        difficulty=5,
        analysis="默认评分细则",
    )


def build_rubric(analysis: RubricAnalysisDTO, question_type: QuestionType) -> ScoringRubric:
    """Apply an analysis to the dimension templates of a question type."""
    key_points = tuple(analysis.key_points)
    dimensions = []
    for template in DIMENSION_TEMPLATES[question_type]:
        dimension = template
        if analysis.difficulty >= HIGH_DIFFICULTY and template.key in WEIGHT_BOOSTS:
            dimension = dimension.with_weight(template.weight + WEIGHT_BOOSTS[template.key])
        if key_points:
            dimension = RubricDimension(
                key=dimension.key,
                name=dimension.name,
                description=dimension.description,
                max_score=dimension.max_score,
                weight=dimension.weight,
                key_points=key_points,
            )
        dimensions.append(dimension)

    return ScoringRubric.build(
        question_type=question_type,
        dimensions=dimensions,
        difficulty=analysis.difficulty,
        key_points=key_points,
        common_errors=analysis.common_errors,
        analysis=analysis.analysis,
    )


class RubricGenerator:
    """
    Generates (or reuses) rubrics for questions.

    Rubrics built from a successful analysis are cached per (question,
    reference answer, question type) for the lifetime of the generator.
    Default rubrics used as a fallback are not cached, so the next call
    asks the model again.
    """

    def __init__(self, text_completion: Optional[ITextCompletion], temperature: float = 0.3, max_tokens: int = 800):
        self.text_completion = text_completion
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._cache: Dict[Tuple[str, str, QuestionType], ScoringRubric] = {}

    async def generate(
        self,
        question: str,
        reference_answer: str,
        question_type: "QuestionType | str" = QuestionType.SUBJECTIVE,
    ) -> ScoringRubric:
        """
        Generate a rubric. Never raises because of the analysis model.

        Args:
            question: Question text
            reference_answer: Reference answer text
            question_type: Question family

        Returns:
            ScoringRubric (the default one for the type on any analysis failure)
        """
        qtype = QuestionType.parse(question_type)
        key = (question, reference_answer, qtype)
        if key in self._cache:
            logger.debug("Reusing cached rubric")
            return self._cache[key]

        rubric = await self._analyse(question, reference_answer, qtype)
        if rubric is None:
            return default_rubric(qtype)
        self._cache[key] = rubric
        return rubric

    async def _analyse(
        self, question: str, reference_answer: str, qtype: QuestionType
    ) -> Optional[ScoringRubric]:
        """Rubric from a model analysis, or None when the default must be used."""
        logger.info(f"Generating rubric (type={qtype.value}, question length={len(question)})")

        if self.text_completion is None:
            logger.warning("No text completion configured, using default rubric")
            return None

        try:
            text = await self.text_completion.complete(
                build_analysis_prompt(question, reference_answer),
                self.temperature,
                self.max_tokens,
            )
        except Exception as e:
            logger.warning(f"Rubric analysis failed, using default rubric: {e}")
            return None

        analysis = parse_analysis(text)
        if analysis is None:
            logger.warning("Rubric analysis could not be parsed, using default rubric")
            return None

        rubric = build_rubric(analysis, qtype)
        logger.info(
            f"Rubric generated: {len(rubric.dimensions)} dimensions, "
            f"total {rubric.total_score:g}, difficulty {rubric.difficulty}"
        )
        return rubric
