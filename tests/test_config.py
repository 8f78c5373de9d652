"""
Tests for environment-backed settings.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from surveybuilder.config import Settings, get_settings
from surveybuilder.drafts import open_draft_store
from surveybuilder.session import EditingSession


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults(monkeypatch):
    for name in ("DRAFTS_PATH", "HISTORY_LIMIT", "LOG_LEVEL", "DEFAULT_SURVEY_TITLE", "AUTOSAVE", "WORKING_COPY_PATH"):
        monkeypatch.delenv(f"SURVEYBUILDER_{name}", raising=False)
    settings = Settings(_env_file=None)
    assert settings.drafts_path == Path.home() / ".surveybuilder" / "drafts.json"
    assert settings.history_limit is None
    assert settings.log_level == "WARNING"
    assert settings.default_survey_title == "Untitled Survey"
    assert settings.autosave is True
    assert settings.resolved_working_copy_path() == Path.home() / ".surveybuilder" / "working_copy.json"


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("SURVEYBUILDER_DRAFTS_PATH", str(tmp_path / "d.yaml"))
    monkeypatch.setenv("SURVEYBUILDER_HISTORY_LIMIT", "5")
    monkeypatch.setenv("SURVEYBUILDER_DEFAULT_SURVEY_TITLE", "New survey")
    settings = get_settings()
    assert settings.drafts_path == tmp_path / "d.yaml"
    assert settings.history_limit == 5
    assert open_draft_store().fmt == "yaml"

    session = EditingSession()
    assert session.survey.title == "New survey"
    assert session.history.limit == 5


def test_negative_history_limit_rejected():
    with pytest.raises(ValidationError):
        Settings(history_limit=-1, _env_file=None)


def test_working_copy_path_follows_drafts_suffix(tmp_path):
    settings = Settings(drafts_path=tmp_path / "drafts.yaml", _env_file=None)
    assert settings.resolved_working_copy_path() == tmp_path / "working_copy.yaml"
    explicit = Settings(drafts_path=tmp_path / "drafts.yaml", working_copy_path=tmp_path / "live.json", _env_file=None)
    assert explicit.resolved_working_copy_path() == tmp_path / "live.json"
