from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from core.settings.modules.ai_settings import AISettings
from core.settings.modules.capture_settings import CaptureSettings
from core.settings.modules.workflow_settings import WorkflowSettings


class AppSettings(BaseModel):
    """Application settings aggregator."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    workflow: WorkflowSettings
    ai: AISettings
    capture: CaptureSettings


@lru_cache()
def get_app_settings() -> AppSettings:
    return AppSettings(
        workflow=WorkflowSettings(),
        ai=AISettings(),
        capture=CaptureSettings(),
    )
