from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from core.settings.base_settings import GradeflowBaseSettings


class AISettings(GradeflowBaseSettings):
    """
    OpenAI-compatible model endpoint used for rubric analysis and scoring.
    Loaded from .env file with exact variable name matching.
    """

    base_url: str = Field("https://api.openai.com/v1", alias="GRADEFLOW_AI_BASE_URL")
    api_key: Optional[str] = Field(None, alias="GRADEFLOW_AI_API_KEY")
    text_model: str = Field("gpt-4o-mini", alias="GRADEFLOW_AI_TEXT_MODEL")
    vision_model: str = Field("gpt-4o", alias="GRADEFLOW_AI_VISION_MODEL")
    request_timeout: float = Field(60.0, alias="GRADEFLOW_AI_REQUEST_TIMEOUT")
    temperature: float = Field(0.3, alias="GRADEFLOW_AI_TEMPERATURE")
    scoring_max_tokens: int = Field(1500, alias="GRADEFLOW_AI_SCORING_MAX_TOKENS")
    analysis_max_tokens: int = Field(800, alias="GRADEFLOW_AI_ANALYSIS_MAX_TOKENS")

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")
