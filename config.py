"""
Configuration settings for the theory practice CLI.

Uses Pydantic Settings for environment variable management with .env file support.
Every field can be overridden with a THEORY_ prefixed environment variable,
e.g. THEORY_BANK_PATH=data/quiz_data.json.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="THEORY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Question Bank
    # ========================================
    bank_path: Path = Field(
        default=Path("quiz_data.json"),
        description="JSON file holding the question bank",
    )
    bank_limit: int = Field(
        default=200,
        ge=1,
        description="Only the first N questions of the bank are used",
    )

    # ========================================
    # Local Storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".theory",
        description="Directory holding progress and cursor files",
    )

    # ========================================
    # Scoring
    # ========================================
    time_cap_ms: int = Field(
        default=10_000,
        ge=0,
        description="Per-attempt cap applied before response time is accumulated",
    )

    # ========================================
    # Test Mode
    # ========================================
    test_length: int = Field(
        default=40,
        ge=1,
        description="Number of questions in a timed test",
    )
    test_duration_minutes: int = Field(
        default=40,
        ge=1,
        description="Time budget for a timed test",
    )
    tick_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Countdown refresh period",
    )

    # ========================================
    # Presentation
    # ========================================
    auto_advance_ms: int = Field(
        default=1000,
        ge=0,
        description="Pause after a correct answer before the next question",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="WARNING",
        description="Loguru level for stderr output",
    )

    @property
    def test_duration_ms(self) -> int:
        return self.test_duration_minutes * 60 * 1000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
