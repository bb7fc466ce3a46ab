"""
Configuration settings for langdrill.

Uses Pydantic Settings for environment variable management with .env file support.
Every field can be set as LANGDRILL_<FIELD_NAME>, e.g. LANGDRILL_BASE_DIR.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LANGDRILL_",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    base_dir: Path = Field(
        default=Path("~/.langdrill"),
        description="Root directory for profiles, logs, caches and attribution",
    )
    save_debounce_seconds: float = Field(
        default=1.5,
        ge=0.0,
        description="Quiet period before a scheduled profile save is written",
    )

    # ========================================
    # Languages
    # ========================================
    default_language: str = Field(
        default="nl",
        description="Language code used when none is given",
    )
    reference_language: str = Field(
        default="English",
        description="Language learners translate into for comprehension prompts",
    )

    # ========================================
    # Session
    # ========================================
    recent_limit: int = Field(
        default=5,
        ge=1,
        description="How many recently shown items to avoid repeating",
    )
    fast_answer_ms: int = Field(
        default=5000,
        ge=0,
        description="Exact answers at or below this latency earn quality 5",
    )

    # ========================================
    # Grading Judge (optional, OpenAI-compatible)
    # ========================================
    judge_url: str | None = Field(
        default=None,
        description="Base URL of a chat completions API, e.g. http://localhost:11434/v1",
    )
    judge_api_key: str | None = Field(
        default=None,
        description="Bearer token for the judge API",
    )
    judge_model: str = Field(
        default="llama3.2",
        description="Model name sent to the judge",
    )
    judge_timeout_seconds: float = Field(
        default=8.0,
        gt=0.0,
        description="Upper bound on one judge call",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Console log level",
    )
    log_file: Path | None = Field(
        default=None,
        description="Optional rotating log file",
    )

    @property
    def data_dir(self) -> Path:
        return self.base_dir.expanduser()

    def has_judge_configured(self) -> bool:
        return bool(self.judge_url)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
