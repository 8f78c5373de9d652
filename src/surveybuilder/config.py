"""
Configuration for the survey builder.

Values come from SURVEYBUILDER_* environment variables or a local .env file.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_drafts_path() -> Path:
    return Path.home() / ".surveybuilder" / "drafts.json"


class Settings(BaseSettings):
    """Environment-backed settings for editing sessions and the CLI."""

    model_config = SettingsConfigDict(
        env_prefix="SURVEYBUILDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Local drafts; suffix .json, .yaml or .yml picks the file format
    drafts_path: Path = Field(default_factory=_default_drafts_path)

    # Live survey autosaved on every change and restored by the next session
    autosave: bool = Field(default=True)
    working_copy_path: Optional[Path] = Field(default=None)

    # Undo depth; None keeps every step
    history_limit: Optional[int] = Field(default=None, ge=0)

    default_survey_title: str = Field(default="Untitled Survey", min_length=1)

    log_level: str = Field(default="WARNING")

    def resolved_working_copy_path(self) -> Path:
        """working_copy_path, or working_copy.<suffix> next to the drafts file."""
        if self.working_copy_path is not None:
            return self.working_copy_path
        return self.drafts_path.with_name(f"working_copy{self.drafts_path.suffix or '.json'}")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
