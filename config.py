"""
Configuration management using Pydantic Settings.
Validates all environment variables at startup for fail-fast behavior.
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator

from core.rsr.models import PolicyPack


class Settings(BaseSettings):
    """Application settings with validation."""

    # Server
    PORT: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="Port to listen on"
    )

    # GitHub API
    GITHUB_API_URL: str = Field(
        default="https://api.github.com",
        description="GitHub API base URL (override for GitHub Enterprise)"
    )
    GITHUB_TOKEN: Optional[str] = Field(
        default=None,
        description="Bearer token used for GitHub API calls"
    )
    GITHUB_TIMEOUT: int = Field(
        default=15,
        ge=1,
        le=120,
        description="GitHub API timeout in seconds (1-120, default: 15)"
    )

    # GitHub App
    GITHUB_APP_ID: Optional[int] = Field(
        default=None,
        description="GitHub App ID"
    )
    GITHUB_PRIVATE_KEY_PATH: Optional[str] = Field(
        default=None,
        description="Path to the GitHub App private key (PEM)"
    )
    GITHUB_PRIVATE_KEY: Optional[str] = Field(
        default=None,
        description="GitHub App private key (PEM), used when no path is given"
    )
    GITHUB_WEBHOOK_SECRET: Optional[str] = Field(
        default=None,
        description="Webhook secret for signature verification"
    )

    # Compliance engine
    DEFAULT_POLICY_PACK: PolicyPack = Field(
        default=PolicyPack.STANDARD,
        description="Policy pack for repositories without a .rsr.toml"
    )
    MAX_CHECK_WORKERS: int = Field(
        default=1,
        ge=1,
        le=16,
        description="Maximum parallel existence probes per evaluation (1-16)"
    )

    # Logging
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v_upper

    @field_validator("GITHUB_API_URL")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("GITHUB_API_URL must be an http(s) URL")
        return v

    @field_validator("DEFAULT_POLICY_PACK", mode="before")
    @classmethod
    def lowercase_policy_pack(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def github_app_configured(self) -> bool:
        """Check if GitHub App credentials are present."""
        return bool(
            self.GITHUB_APP_ID
            and (self.GITHUB_PRIVATE_KEY_PATH or self.GITHUB_PRIVATE_KEY)
        )

    @property
    def webhook_verification_enabled(self) -> bool:
        return bool(self.GITHUB_WEBHOOK_SECRET)


# Global settings instance
settings = Settings()
