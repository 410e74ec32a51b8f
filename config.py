"""
Application configuration loaded from environment variables.

The API token comes exclusively from the environment or .env.
No secrets are hardcoded anywhere in this file.

Environment variables expected (see .env.example):
  HAJJEFY_API_TOKEN   — Hajjefy API bearer token (required)
  HAJJEFY_BASE_URL    — API base URL (default: https://hajjefy.com)
"""
from __future__ import annotations

from functools import lru_cache
from urllib.parse import urlparse

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1"})


class Settings(BaseSettings):
    """Application settings. Loaded once at startup; never mutated at runtime."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Silently ignore unrecognised env vars
        case_sensitive=False,
    )

    # -------------------------------------------------------------------------
    # Hajjefy credentials (required — startup fails if missing)
    # -------------------------------------------------------------------------
    hajjefy_api_token: SecretStr = Field(..., description="Bearer token for the Hajjefy API")

    # -------------------------------------------------------------------------
    # API endpoint
    # -------------------------------------------------------------------------
    hajjefy_base_url: str = Field(
        default="https://hajjefy.com",
        description="Hajjefy base URL (no trailing slash)",
    )

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------
    http_timeout: float = Field(default=30.0, ge=1.0, le=120.0)
    worklog_fetch_limit: int = Field(default=1000, ge=1, le=5000)

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: str = Field(default="INFO")
    log_file: str = Field(default="logs/mcp_server.log")

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------

    @field_validator("hajjefy_api_token")
    @classmethod
    def _require_token(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("HAJJEFY_API_TOKEN must not be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return upper

    @field_validator("hajjefy_base_url")
    @classmethod
    def _require_https(cls, v: str) -> str:
        parsed = urlparse(v.strip())
        if parsed.scheme == "https":
            return v.strip().rstrip("/")
        # Plain HTTP is only tolerated against a local development server
        if parsed.scheme == "http" and parsed.hostname in _LOCAL_HOSTS:
            return v.strip().rstrip("/")
        raise ValueError("HAJJEFY_BASE_URL must use HTTPS")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the singleton Settings instance.

    Cached after first call. Raises ValidationError if HAJJEFY_API_TOKEN is
    missing or any value is invalid — fail fast at startup, not mid-request.
    """
    return Settings()
