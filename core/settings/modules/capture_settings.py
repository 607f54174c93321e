from __future__ import annotations

from pydantic import Field

from core.settings.base_settings import GradeflowBaseSettings


class CaptureSettings(GradeflowBaseSettings):
    """
    Answer-area rendering settings.
    Loaded from .env file with exact variable name matching.
    """

    scale: float = Field(2.0, alias="GRADEFLOW_CAPTURE_SCALE")
    background_color: str = Field("#ffffff", alias="GRADEFLOW_CAPTURE_BACKGROUND")
    timeout_ms: int = Field(10000, alias="GRADEFLOW_CAPTURE_TIMEOUT_MS")
    jpeg_quality: int = Field(85, alias="GRADEFLOW_CAPTURE_JPEG_QUALITY")
    max_width: int = Field(1600, alias="GRADEFLOW_CAPTURE_MAX_WIDTH")
