"""
Voice Canvas configuration — all environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    # AI Providers
    ANTHROPIC_API_KEY: str = os.environ.get("ANTHROPIC_API_KEY", "")
    OPENAI_API_KEY: str = os.environ.get("OPENAI_API_KEY", "")

    # Which provider compiles transcripts: "anthropic" or "openai"
    COMPILER_PROVIDER: str = os.environ.get("COMPILER_PROVIDER", "anthropic").lower()
    COMPILER_MODEL: str = os.environ.get("COMPILER_MODEL", "claude-3-5-sonnet-20241022")
    OPENAI_MODEL: str = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")
    COMPILER_MAX_TOKENS: int = int(os.environ.get("COMPILER_MAX_TOKENS", "400"))

    # Transcript limits
    TRANSCRIPT_MAX_LENGTH: int = int(os.environ.get("TRANSCRIPT_MAX_LENGTH", "1000"))

    # Rate Limits (per client IP)
    RATE_LIMIT_PER_MINUTE: int = int(os.environ.get("RATE_LIMIT_PER_MINUTE", "10"))
    RATE_LIMIT_PER_DAY: int = int(os.environ.get("RATE_LIMIT_PER_DAY", "100"))

    # Command channel
    COMMAND_TTL_SECONDS: int = int(os.environ.get("COMMAND_TTL_SECONDS", "60"))
    PLUGIN_CONNECTION_TTL_SECONDS: int = int(os.environ.get("PLUGIN_CONNECTION_TTL_SECONDS", "5"))

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

    @property
    def compiler_api_key(self) -> str:
        return self.OPENAI_API_KEY if self.COMPILER_PROVIDER == "openai" else self.ANTHROPIC_API_KEY


# Singleton instance
settings = Settings()

# Validate required settings (skip in test mode)
_testing = os.environ.get("TESTING", "").lower() == "true"

if settings.COMPILER_PROVIDER not in ("anthropic", "openai"):
    raise RuntimeError(f"COMPILER_PROVIDER must be 'anthropic' or 'openai', got {settings.COMPILER_PROVIDER!r}")

if not _testing and settings.ENVIRONMENT == "production":
    if not settings.compiler_api_key:
        key_name = "OPENAI_API_KEY" if settings.COMPILER_PROVIDER == "openai" else "ANTHROPIC_API_KEY"
        raise RuntimeError(f"{key_name} environment variable is required")
