"""
Application configuration using Pydantic Settings.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DuplicateDetectionSettings(BaseSettings):
    """Thresholds and windows for the duplicate detector."""

    model_config = SettingsConfigDict(env_prefix="DEDUP_")

    title_similarity_threshold: float = Field(
        default=0.70,
        description="Levenshtein title similarity above which a candidate is a duplicate",
    )
    summary_similarity_threshold: float = Field(
        default=0.80,
        description="Jaccard summary keyword similarity above which a candidate is a duplicate",
    )
    exact_window_hours: int = Field(
        default=24,
        ge=1,
        description="Trailing window consulted for exact title/URL matches",
    )
    fuzzy_window_hours: int = Field(
        default=24,
        ge=1,
        le=168,
        description="Trailing window consulted for fuzzy similarity checks",
    )

    @field_validator("title_similarity_threshold", "summary_similarity_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("Similarity thresholds must be between 0 and 1")
        return v


class SchedulerSettings(BaseSettings):
    """Periodic trigger and per-task pacing."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULER_")

    interval_minutes: int = Field(default=30, ge=1)
    task_delay_seconds: float = Field(default=2.0, ge=0.0)
    manual_task_delay_seconds: float = Field(default=3.0, ge=0.0)
    timezone: str = Field(default="America/New_York")
    run_on_start: bool = Field(default=True)
    manual_fetch_counts_against_budget: bool = Field(
        default=False,
        description="Whether administrative fetch-now runs consume provider budgets",
    )
    fetch_retry_attempts: int = Field(
        default=1,
        ge=1,
        description="Attempts per task on transport failure (1 = no retry)",
    )
    fetch_retry_wait_seconds: float = Field(default=2.0, ge=0.0)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Consumer Pulse News Ingestion"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./consumer_pulse.db",
        description="Async database URL (SQLAlchemy format)",
    )
    cleanup_days: int = Field(default=7, ge=1)

    # Provider API keys (a provider without a key is not registered)
    newsdata_api_key: str | None = Field(default=None)
    newsapi_key: str | None = Field(default=None)
    finlight_api_key: str | None = Field(default=None)
    currents_api_key: str | None = Field(default=None)

    # Transformation
    fallback_image_url: str = Field(default="/consumer-pulse-banner.svg")

    # Nested groups
    dedup: DuplicateDetectionSettings = Field(default_factory=DuplicateDetectionSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
