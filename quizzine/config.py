"""
Configuration settings for the quiz engine.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are prefixed with QUIZZINE_ (e.g. QUIZZINE_QUESTION_BANK_URL).
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class QuizzineSettings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="QUIZZINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Question Bank
    # ========================================
    question_bank_url: str = Field(
        default="http://localhost:8080/questions.json",
        description="URL or local file path of the static question bank JSON",
    )
    fetch_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Upper bound for the question bank fetch",
    )

    # ========================================
    # Local Storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".quizzine",
        description="Directory holding local state",
    )
    storage_url: str | None = Field(
        default=None,
        description="SQLAlchemy URL of the key/value store (defaults to SQLite in data_dir)",
    )
    storage_key: str = Field(
        default="quizzineApp",
        description="Key the store document is saved under",
    )
    export_dir: Path | None = Field(
        default=None,
        description="Default directory for backups (defaults to the current directory)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Minimum level written to stderr",
    )
    log_file: str | None = Field(
        default=None,
        description="Optional log file path (rotated at 5 MB)",
    )

    @property
    def resolved_storage_url(self) -> str:
        """Storage URL, falling back to a SQLite file under data_dir."""
        if self.storage_url:
            return self.storage_url
        return f"sqlite:///{self.data_dir / 'storage.db'}"


@lru_cache(maxsize=1)
def get_settings() -> QuizzineSettings:
    """Get cached settings instance."""
    return QuizzineSettings()
