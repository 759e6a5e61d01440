"""
Configuration settings for the remediation player.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache

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
    # Backend API
    # ========================================
    api_base_url: str = Field(
        default="http://localhost:5000",
        description="Base URL of the video catalog / notification backend",
    )
    api_token: str | None = Field(
        default=None,
        description="Bearer token sent with catalog and notification requests",
    )
    learner_email: str | None = Field(
        default=None,
        description="Signed-in learner; notifications are only sent when set",
    )
    http_timeout_ms: int = Field(
        default=10000,
        description="HTTP request timeout in milliseconds",
    )
    http_retry_attempts: int = Field(
        default=3,
        description="Catalog fetch attempts before giving up",
    )

    # ─── Endpoints ─────────────────────────────────────────────────────────────
    catalog_endpoint: str = Field(
        default="/api/videos/remediation",
        description="Remediation video catalog, queried with ?niveau=<level>",
    )
    notify_remediation_endpoint: str = Field(
        default="/api/notify/remediation",
        description="Notification sent when the focused video changes",
    )
    notify_videofinish_endpoint: str = Field(
        default="/api/notify/videofinish",
        description="Notification sent when a video ends",
    )

    # ========================================
    # Learner defaults
    # ========================================
    default_level: str = Field(
        default="6e",
        description="Level used when none is given (e.g. '6e', '2nde C')",
    )
    default_subject: str = Field(
        default="maths",
        description="Subject used when none is given",
    )

    # ========================================
    # Quiz & feedback timing
    # ========================================
    quiz_question_duration: int = Field(
        default=600,
        description="Countdown ticks allowed per quiz question",
    )
    countdown_tick_seconds: float = Field(
        default=1.0,
        description="Seconds between countdown ticks",
    )
    correct_feedback_seconds: float = Field(
        default=1.2,
        description="Feedback window after a correct answer",
    )
    wrong_feedback_seconds: float = Field(
        default=1.8,
        description="Feedback window after a wrong answer",
    )
    advance_delay_seconds: float = Field(
        default=1.0,
        description="Pause between passing a video quiz and focusing the next video",
    )
    evaluation_divisor: int = Field(
        default=4,
        description="Evaluation samples max(1, pool // divisor) questions",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(
        default="INFO",
        description="Loguru level for the CLI sink",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
