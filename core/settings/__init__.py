# Settings package
from core.settings.modules import (
    AISettings,
    AppSettings,
    CaptureSettings,
    WorkflowSettings,
    get_app_settings,
)

__all__ = ["get_app_settings", "AppSettings", "AISettings", "CaptureSettings", "WorkflowSettings"]
