"""
Configuration settings for lms-player.

Uses Pydantic Settings for environment variable management with .env file support.
Nested API settings can be overridden with LMSPLAYER_API__BASE_URL and friends.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiConfig(BaseModel):
    """Connection settings for the LMS platform API."""

    base_url: str = "https://lms.unicou.uk"
    api_key: str | None = None
    timeout_seconds: float = 30.0
    retry_attempts: int = 3
    retry_backoff_seconds: float = 1.0

    # Endpoints
    auth_endpoint: str = "/api/v1/auth/login"
    courses_endpoint: str = "/api/v1/courses"
    enrollments_endpoint: str = "/api/v1/enrollments"
    tests_endpoint: str = "/api/v1/tests"
    pages_endpoint: str = "/api/v1/pages"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LMSPLAYER_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Platform API
    # ========================================
    api: ApiConfig = Field(default_factory=ApiConfig)

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="WARNING",
        description="loguru level for the CLI sink",
    )

    # ========================================
    # Assessment engine
    # ========================================
    quiz_pass_ratio: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="Minimum score/total ratio for a lesson quiz to pass",
    )
    tick_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Wall-clock length of one section timer tick",
    )
    recording_tick_ms: int = Field(
        default=100,
        ge=0,
        description="Interval of the cosmetic recording progress counter",
    )
    recording_max_ticks: int = Field(
        default=100,
        ge=1,
        description="Cap for the recording progress counter",
    )
    capture_sentinel: str = Field(
        default="AUDIO_NODE_CAPTURED",
        description="Answer value stored for a committed audio capture",
    )
    default_word_limit: int = Field(
        default=250,
        ge=1,
        description="Word limit shown for essay questions without their own",
    )

    # ========================================
    # Session save/resume
    # ========================================
    session_dir: Path = Field(
        default=Path.home() / ".lmsplayer" / "sessions",
        description="Directory for saved practice-test sessions",
    )
    session_expiry_hours: int = Field(
        default=24,
        ge=1,
        description="Saved sessions older than this are considered stale",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
