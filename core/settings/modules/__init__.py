# Settings modules
from .ai_settings import AISettings
from .app_settings import AppSettings, get_app_settings
from .capture_settings import CaptureSettings
from .workflow_settings import WorkflowSettings

__all__ = [
    "AppSettings",
    "get_app_settings",
    "AISettings",
    "CaptureSettings",
    "WorkflowSettings",
]
