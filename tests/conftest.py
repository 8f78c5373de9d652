"""
Pytest configuration and shared fixtures for surveybuilder tests.
"""
from __future__ import annotations

import pytest

from surveybuilder.config import Settings
from surveybuilder.drafts import InMemoryDraftStore
from surveybuilder.examples import build_feedback_survey
from surveybuilder.session import EditingSession


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the user's environment."""
    return Settings(drafts_path=tmp_path / "drafts.json", history_limit=None, autosave=False, _env_file=None)


@pytest.fixture
def feedback_survey():
    return build_feedback_survey()


@pytest.fixture
def session(settings) -> EditingSession:
    """A session on a new empty survey with an in-memory draft store."""
    return EditingSession(draft_store=InMemoryDraftStore(), settings=settings)


@pytest.fixture
def feedback_session(settings, feedback_survey) -> EditingSession:
    return EditingSession(feedback_survey, draft_store=InMemoryDraftStore(), settings=settings)
