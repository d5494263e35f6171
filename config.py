"""
Configuration settings for the quizbank content store.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///quizdb.sqlite",
        description="SQLAlchemy URL of the quiz content store",
    )

    # ========================================
    # Quiz Source (upstream corpus)
    # ========================================
    quiz_repo_root: str = Field(
        default="vendor/quizzes",
        description="Local clone of the quiz corpus (<root>/<topic>/<topic>-quiz.md)",
    )
    quiz_commit: str = Field(
        default="6a818e3",
        description="Pinned commit of the upstream corpus, scopes external question UIDs",
    )
    repo_owner: str = Field(
        default="Ebazhanov",
        description="Upstream repository owner",
    )
    repo_name: str = Field(
        default="linkedin-skill-assessments-quizzes",
        description="Upstream repository name",
    )
    source_name: str = Field(
        default="LinkedIn Skill Assessments (Community)",
        description="Source name recorded for single-document imports",
    )
    local_source_name: str = Field(
        default="LinkedIn Skill Assessments (Local Clone)",
        description="Source name recorded for bulk reloads from the local clone",
    )
    license_spdx: str = Field(
        default="CC-BY-SA-4.0",
        description="SPDX licence identifier of the upstream corpus",
    )
    parser_version: str = Field(
        default="v1",
        description="Provenance tag stored on every import batch",
    )

    # ========================================
    # Retrieval
    # ========================================
    questions_page_size: int = Field(
        default=200,
        ge=1,
        description="Default page size for paginated question listing",
    )
    questions_page_max: int = Field(
        default=500,
        ge=1,
        description="Upper bound applied to any requested page size",
    )
    random_question_count: int = Field(
        default=10,
        ge=1,
        description="Default number of questions in a randomized draw",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    @property
    def repo_url(self) -> str:
        """Web URL of the upstream repository."""
        return f"https://github.com/{self.repo_owner}/{self.repo_name}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
