"""
Test settings loading from the environment.

Every setting must have a GRADEFLOW_* alias and a usable default, so the
application starts without a .env file.
"""
from __future__ import annotations

import pytest

from core.settings import AISettings, CaptureSettings, WorkflowSettings, get_app_settings


def _collect_alias_map(model) -> dict[str, str]:
    """
    Return map: ENV_ALIAS -> field_name for a Pydantic model.
    """
    return {field.alias: name for name, field in model.model_fields.items() if field.alias}


@pytest.fixture(autouse=True)
def _clear_settings_cache(monkeypatch, tmp_path):
    # Keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)
    get_app_settings.cache_clear()
    yield
    get_app_settings.cache_clear()


@pytest.mark.parametrize("model", [WorkflowSettings, AISettings, CaptureSettings])
def test_every_field_has_a_gradeflow_alias(model):
    aliases = _collect_alias_map(model)

    assert set(aliases.values()) == set(model.model_fields)
    assert all(alias.startswith("GRADEFLOW_") for alias in aliases)


def test_defaults_load_without_environment():
    settings = get_app_settings()

    assert settings.workflow.confidence_threshold == 70
    assert settings.workflow.max_retries == 3
    assert settings.workflow.confirmation_timeout == 30
    assert settings.workflow.history_limit == 10
    assert settings.capture.scale == 2.0
    assert settings.capture.background_color == "#ffffff"
    assert settings.ai.api_key is None
    assert get_app_settings() is settings


def test_environment_overrides_defaults(monkeypatch):
    monkeypatch.setenv("GRADEFLOW_CONFIDENCE_THRESHOLD", "82.5")
    monkeypatch.setenv("GRADEFLOW_AUTO_SUBMIT", "false")
    monkeypatch.setenv("GRADEFLOW_AI_BASE_URL", "http://localhost:8000/v1/")
    monkeypatch.setenv("GRADEFLOW_CAPTURE_TIMEOUT_MS", "2500")

    settings = get_app_settings()

    assert settings.workflow.confidence_threshold == 82.5
    assert settings.workflow.auto_submit is False
    assert settings.ai.base_url == "http://localhost:8000/v1"
    assert settings.capture.timeout_ms == 2500


def test_env_file_is_read(tmp_path):
    (tmp_path / ".env").write_text("GRADEFLOW_MAX_RETRIES=5\nUNRELATED_KEY=1\n", encoding="utf-8")

    assert WorkflowSettings().max_retries == 5


@pytest.mark.parametrize(
    "env,value",
    [("GRADEFLOW_CONFIDENCE_THRESHOLD", "120"), ("GRADEFLOW_MAX_RETRIES", "0")],
)
def test_invalid_values_are_rejected(monkeypatch, env, value):
    monkeypatch.setenv(env, value)

    with pytest.raises(ValueError):
        WorkflowSettings()
