"""
Central configuration using Pydantic BaseSettings.

Validates all env vars at startup (fail-fast). The signing secret refuses
to start in production but gets a safe default in TESTING mode.

Usage:
    from config.settings import get_settings

    settings = get_settings()
    secret = settings.auth.jwt_secret.get_secret_value()

Lazy initialization: get_settings() creates the singleton on first call.
Tests can reset via get_settings.cache_clear().

The secret is only read by accounts.factory, which passes it to
TokenService explicitly. Nothing else should hold it at module level.
"""

import os
from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings


def _is_testing() -> bool:
    """Check if running in test mode."""
    return (
        os.getenv("TESTING", "").lower() in ("true", "1")
        or os.getenv("FLASK_ENV", "") == "testing"
    )


# =============================================================================
# Nested Settings Groups
# =============================================================================


class AuthSettings(BaseSettings):
    """JWT, password and username policy configuration."""

    model_config = {"env_prefix": "", "extra": "ignore"}

    jwt_secret: SecretStr = SecretStr("")
    jwt_algorithm: str = "HS256"
    jwt_expiration_hours: int = 24

    # Password policy
    password_min_length: int = 8
    # werkzeug method string: "<method>:<hash>:<iterations>" is the work factor
    password_hash_method: str = "pbkdf2:sha256:600000"
    password_salt_length: int = 16

    # Username policy
    username_min_length: int = 3
    username_max_length: int = 50


class DatabaseSettings(BaseSettings):
    """Storage adapter configuration."""

    model_config = {"env_prefix": "", "extra": "ignore"}

    # ":memory:" keeps everything in-process (tests, demos)
    auth_db_path: str = ":memory:"
    # "memory" or "sqlite"
    user_repository: str = "memory"


# =============================================================================
# Root Settings
# =============================================================================


class AppSettings(BaseSettings):
    """Root application settings composing all sub-settings."""

    model_config = {"env_prefix": "", "extra": "ignore", "env_file": ".env", "env_file_encoding": "utf-8"}

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: str = ""

    # Nested groups (initialized separately to support env_prefix)
    auth: AuthSettings = None  # type: ignore[assignment]
    database: DatabaseSettings = None  # type: ignore[assignment]

    @model_validator(mode="before")
    @classmethod
    def _init_nested(cls, values):
        """Initialize nested settings from environment."""
        if values.get("auth") is None:
            values["auth"] = AuthSettings()
        if values.get("database") is None:
            values["database"] = DatabaseSettings()
        return values

    @model_validator(mode="after")
    def _validate_required_secrets(self):
        """Require JWT_SECRET in production; bypass only in TESTING mode."""
        if _is_testing():
            if not self.auth.jwt_secret.get_secret_value():
                self.auth.jwt_secret = SecretStr("testing-only-secret-not-for-production")
            return self

        if not self.auth.jwt_secret.get_secret_value():
            raise ValueError(
                "JWT_SECRET env var is required. "
                "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
            )

        return self


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """
    Get the application settings singleton.

    Lazy-initialized on first call. Validates all env vars (fail-fast).
    Tests can reset via: get_settings.cache_clear()
    """
    return AppSettings()
