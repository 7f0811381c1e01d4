"""
PhotoVerse Backend — Application Configuration
================================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; provider keys are read exactly once.

Provider credentials:
    GEMINI_API_KEY     → primary provider (Google Gemini)
    ANTHROPIC_API_KEY  → secondary provider (Anthropic Claude, used for fallback)

    A missing key does not stop the server. A missing primary key makes every
    primary attempt fail fast with an auth error (which routes to the fallback);
    a missing secondary key makes the fallback fail, so the caller sees the
    unified "no service available" error.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

PLACEHOLDER_KEYS = {"", "your_gemini_api_key_here", "your_anthropic_api_key_here"}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Production deployments MUST set both provider API keys and CORS_ORIGINS.
    """

    # ── Google Gemini (primary) ───────────────────────────────────────────
    # How to obtain: https://aistudio.google.com/app/apikey
    gemini_api_key: str = Field(
        default="",
        description="Google Gemini API key for the primary poem provider"
    )
    gemini_model: str = Field(default="gemini-2.5-flash")

    # ── Anthropic Claude (fallback) ───────────────────────────────────────
    anthropic_api_key: str = Field(
        default="",
        description="Anthropic API key for the fallback poem provider"
    )
    anthropic_model: str = Field(default="claude-3-5-haiku-latest")
    anthropic_api_url: str = Field(default="https://api.anthropic.com/v1/messages")
    anthropic_version: str = Field(default="2023-06-01")
    anthropic_max_tokens: int = Field(default=1024, ge=256, le=8192)

    # What: Upper bound on a single provider round-trip, in seconds
    # Applied both as the SDK/HTTP timeout and as an asyncio deadline
    provider_timeout_seconds: float = Field(default=60.0, gt=0, le=300)

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # What: Minimum interval between accepted generation attempts per caller
    rate_limit_interval_ms: int = Field(default=2000, ge=0, le=600_000)

    # What: How callers are identified
    #   global → one shared "default" key (single-user deployments)
    #   client → one key per client IP
    rate_limit_scope: str = Field(default="global")

    @field_validator("rate_limit_scope")
    @classmethod
    def validate_rate_limit_scope(cls, v: str) -> str:
        lower = v.lower()
        if lower not in {"global", "client"}:
            raise ValueError(f"Invalid rate_limit_scope '{v}'. Must be 'global' or 'client'")
        return lower

    # ── Uploads ───────────────────────────────────────────────────────────
    # Default: 10MB. Photos are sent inline (base64) to the providers, so
    # the cap also bounds the request payload size.
    max_file_size: int = Field(default=10_485_760, ge=1_048_576, le=20_971_520)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    @property
    def gemini_configured(self) -> bool:
        return self.gemini_api_key.strip() not in PLACEHOLDER_KEYS

    @property
    def anthropic_configured(self) -> bool:
        return self.anthropic_api_key.strip() not in PLACEHOLDER_KEYS

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that provider credentials are configured.
        When:  Called during app startup (lifespan).
        How:   Collects every problem and raises one ValueError with guidance.

        The lifespan only logs this error; requests still run and fail at call
        time with the provider errors described in the module docstring.
        """
        errors = []
        if not self.gemini_configured:
            errors.append(
                "GEMINI_API_KEY is not set. "
                "Get a free key at https://aistudio.google.com/app/apikey"
            )
        if not self.anthropic_configured:
            errors.append(
                "ANTHROPIC_API_KEY is not set. Fallback generation will be unavailable."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


settings = Settings()
