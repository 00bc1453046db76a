"""
Centralized application configuration using Pydantic v2 BaseSettings.

Loads environment variables and provides sane defaults. This module should be the
single source of truth for configuration across the app. Import and instantiate
`get_settings()` rather than constructing `AppSettings` directly to benefit from
cached settings and env loading.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from takedown_assistant import constants

# Get the project root directory (parent of takedown_assistant package)
_PROJECT_ROOT = Path(__file__).parent.parent


class AppSettings(BaseSettings):
    model_config: SettingsConfigDict = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )
    # Server
    app_name: str = Field(default="Takedown Letter Assistant")
    debug: bool = Field(default=False)
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Anthropic / LLM
    anthropic_api_key: str = Field(default="", alias="ANTHROPIC_API_KEY")
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com/v1", alias="ANTHROPIC_BASE_URL"
    )
    anthropic_api_version: str = Field(default="2023-06-01", alias="ANTHROPIC_API_VERSION")
    anthropic_model: str = Field(default="claude-3-sonnet-20240229", alias="ANTHROPIC_MODEL")
    ai_request_timeout_seconds: int = Field(default=120, alias="AI_REQUEST_TIMEOUT_SECONDS")

    # Per prompt kind: question generation runs warmest, quality checks coolest
    follow_up_max_tokens: int = Field(default=4000, alias="FOLLOW_UP_MAX_TOKENS")
    follow_up_temperature: float = Field(default=0.7, alias="FOLLOW_UP_TEMPERATURE")
    letter_max_tokens: int = Field(default=4000, alias="LETTER_MAX_TOKENS")
    letter_temperature: float = Field(default=0.6, alias="LETTER_TEMPERATURE")
    quality_check_max_tokens: int = Field(default=4000, alias="QUALITY_CHECK_MAX_TOKENS")
    quality_check_temperature: float = Field(default=0.5, alias="QUALITY_CHECK_TEMPERATURE")

    # Gap detection and retry bounds
    ownership_detail_threshold: int = Field(
        default=constants.OWNERSHIP_DETAIL_THRESHOLD, alias="OWNERSHIP_DETAIL_THRESHOLD"
    )
    impact_detail_threshold: int = Field(
        default=constants.IMPACT_DETAIL_THRESHOLD, alias="IMPACT_DETAIL_THRESHOLD"
    )
    minimal_answer_threshold: int = Field(
        default=constants.MINIMAL_ANSWER_THRESHOLD, alias="MINIMAL_ANSWER_THRESHOLD"
    )
    max_follow_up_retries: int = Field(
        default=constants.MAX_FOLLOW_UP_RETRIES,
        alias="MAX_FOLLOW_UP_RETRIES",
        description="Caller-driven retries of the follow-up stage before progressing without it",
    )
    max_letter_revisions: int = Field(
        default=constants.MAX_LETTER_REVISIONS,
        alias="MAX_LETTER_REVISIONS",
        description="Corrective rewrites accepted from the quality check (0 or 1)",
    )

    # Sessions
    session_ttl_seconds: int = Field(
        default=3600,
        alias="SESSION_TTL_SECONDS",
        description="Idle time after which an in-memory case session is discarded",
    )

    # Production Mode
    production_mode: bool = Field(
        default=False,
        alias="PRODUCTION_MODE",
        description="Enable production mode (hides error details, enforces CORS origins)",
    )

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        alias="RATE_LIMIT_ENABLED",
        description="Enable rate limiting middleware",
    )
    rate_limit_per_minute: int = Field(
        default=30,
        alias="RATE_LIMIT_PER_MINUTE",
        description="Maximum AI-backed requests per minute per IP",
    )

    # Request Limits
    max_request_size_mb: int = Field(
        default=1,
        alias="MAX_REQUEST_SIZE_MB",
        description="Maximum request body size in megabytes",
    )

    # CORS (Production)
    cors_allowed_origins_raw: str = Field(
        default="",
        alias="CORS_ALLOWED_ORIGINS",
        description="Comma-separated list of allowed CORS origins (required in production)",
    )

    @property
    def cors_allowed_origins(self) -> list[str]:
        """Parse CORS allowed origins from comma-separated string."""
        if not self.cors_allowed_origins_raw:
            return self.cors_allow_origins
        return [
            origin.strip() for origin in self.cors_allowed_origins_raw.split(",") if origin.strip()
        ]

    @property
    def has_api_key(self) -> bool:
        return bool(self.anthropic_api_key.strip())

    @model_validator(mode="after")
    def validate_settings(self) -> AppSettings:
        """Validate production settings and numeric ranges after initialization."""
        if self.production_mode:
            if not self.cors_allowed_origins:
                raise ValueError("CORS_ALLOWED_ORIGINS must be set when PRODUCTION_MODE=true")
            if "*" in self.cors_allowed_origins:
                raise ValueError("CORS_ALLOWED_ORIGINS cannot contain '*' in production mode")
            if self.debug:
                raise ValueError("DEBUG must be false when PRODUCTION_MODE=true")

        for name in ("follow_up", "letter", "quality_check"):
            temperature = getattr(self, f"{name}_temperature")
            if not (0.0 <= temperature <= 1.0):
                raise ValueError(f"{name.upper()}_TEMPERATURE must be between 0 and 1")
            if getattr(self, f"{name}_max_tokens") <= 0:
                raise ValueError(f"{name.upper()}_MAX_TOKENS must be greater than 0")

        if min(
            self.ownership_detail_threshold,
            self.impact_detail_threshold,
            self.minimal_answer_threshold,
        ) < 0:
            raise ValueError("Gap detection thresholds must not be negative")
        if self.max_follow_up_retries < 0:
            raise ValueError("MAX_FOLLOW_UP_RETRIES must not be negative")
        if self.max_letter_revisions not in (0, 1):
            raise ValueError("MAX_LETTER_REVISIONS must be 0 or 1")

        if self.rate_limit_per_minute <= 0:
            raise ValueError("RATE_LIMIT_PER_MINUTE must be greater than 0")
        if not (1 <= self.max_request_size_mb <= 100):
            raise ValueError("MAX_REQUEST_SIZE_MB must be between 1 and 100")
        if self.session_ttl_seconds <= 0:
            raise ValueError("SESSION_TTL_SECONDS must be greater than 0")

        return self


@lru_cache
def get_settings() -> AppSettings:
    """Return cached settings instance (singleton for process)."""
    return AppSettings()  # type: ignore[arg-type]
