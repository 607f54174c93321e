from __future__ import annotations

from pydantic import Field, field_validator

from core.settings.base_settings import GradeflowBaseSettings


class WorkflowSettings(GradeflowBaseSettings):
    """
    Grading workflow defaults.
    Loaded from .env file with exact variable name matching.
    """

    confidence_threshold: float = Field(70.0, alias="GRADEFLOW_CONFIDENCE_THRESHOLD")
    max_retries: int = Field(3, alias="GRADEFLOW_MAX_RETRIES")
    retry_delay: float = Field(1.0, alias="GRADEFLOW_RETRY_DELAY")
    auto_submit: bool = Field(True, alias="GRADEFLOW_AUTO_SUBMIT")
    require_confirmation: bool = Field(False, alias="GRADEFLOW_REQUIRE_CONFIRMATION")
    confirmation_timeout: float = Field(30.0, alias="GRADEFLOW_CONFIRMATION_TIMEOUT")
    history_limit: int = Field(10, alias="GRADEFLOW_HISTORY_LIMIT")
    min_image_quality: int = Field(60, alias="GRADEFLOW_MIN_IMAGE_QUALITY")

    @field_validator("confidence_threshold")
    @classmethod
    def _threshold_range(cls, v: float) -> float:
        if not 0 <= v <= 100:
            raise ValueError("confidence_threshold must be within [0, 100]")
        return v

    @field_validator("max_retries", "history_limit")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v
