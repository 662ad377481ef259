"""
Centralized configuration for the Forge backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings should be namespaced (e.g., JWT_*, SUPABASE_*).
"""

import re
from datetime import timedelta
from functools import lru_cache
from typing import Any, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Built-in fallbacks. Running with these is only acceptable in development.
DEFAULT_JWT_SECRET = "forge-church-secret"
DEFAULT_JWT_REFRESH_SECRET = "forge-refresh-secret"

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}


def parse_duration(value: Any) -> Any:
    """
    Parse a shorthand duration such as ``"7d"``, ``"24h"`` or ``"15m"``.

    Plain integers (or digit strings) are seconds. Anything else is passed
    through unchanged so pydantic can apply its own timedelta parsing.
    """
    if isinstance(value, int):
        return timedelta(seconds=value)
    if isinstance(value, str):
        match = _DURATION_PATTERN.match(value)
        if match:
            amount, unit = match.groups()
            return timedelta(**{_DURATION_UNITS[unit]: int(amount)})
    return value


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Forge API"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:19006"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Supabase
    supabase_url: str = ""
    supabase_service_role_key: str = ""

    # Tokens
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_expires_in: timedelta = timedelta(days=7)
    jwt_refresh_secret: str = DEFAULT_JWT_REFRESH_SECRET
    jwt_refresh_expires_in: timedelta = timedelta(days=30)
    admin_jwt_secret: Optional[str] = None  # falls back to jwt_secret
    admin_jwt_expires_in: timedelta = timedelta(hours=24)

    # Federated identity (Google sign-in)
    google_client_id: str = ""

    # Accounts
    min_password_length: int = 6

    @field_validator(
        "jwt_expires_in",
        "jwt_refresh_expires_in",
        "admin_jwt_expires_in",
        mode="before",
    )
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        return parse_duration(value)

    @property
    def effective_admin_jwt_secret(self) -> str:
        """Secret used for admin-scoped tokens."""
        return self.admin_jwt_secret or self.jwt_secret

    def uses_default_secrets(self) -> bool:
        """True when any token secret is still a built-in fallback."""
        return (
            self.jwt_secret == DEFAULT_JWT_SECRET
            or self.jwt_refresh_secret == DEFAULT_JWT_REFRESH_SECRET
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
