"""Application settings using Pydantic Settings.

Centralized configuration for the account administration panel.

SECURITY: Production requires the following environment variables:
- APP_JWT_SECRET: Token signing key (min 32 chars)
- APP_SEED_OWNER_PASSWORD: Password for the bootstrap owner account

Generate secrets with: python -c "import secrets; print(secrets.token_hex(32))"
"""

import logging
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "development-only-insecure-secret-key-32ch"
DEFAULT_OWNER_PASSWORD = "test"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application info
    name: str = Field(default="Account Admin Panel", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment name")

    # API settings
    api_host: str = Field(default="127.0.0.1", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5000"],
        description="Allowed CORS origins"
    )

    # Authentication
    jwt_secret: str = Field(
        default=DEFAULT_JWT_SECRET,
        description="Token signing key - MUST be set in production"
    )
    access_token_expire_minutes: int = Field(
        default=60 * 24,
        ge=1,
        description="Access token lifetime in minutes"
    )
    bcrypt_rounds: int = Field(default=12, ge=4, le=31, description="bcrypt work factor")
    min_password_length: int = Field(default=4, ge=1, description="Minimum password length")

    # Storage
    storage_backend: str = Field(
        default="memory",
        description="Storage backend: memory or database"
    )
    database_url: str = Field(
        default="sqlite:///data/admin_panel.db",
        description="SQLAlchemy URL used by the database backend"
    )
    database_echo: bool = Field(default=False, description="Log all SQL statements")

    # Bootstrap owner account
    seed_owner_username: str = Field(default="owner", description="Owner account created at startup")
    seed_owner_password: str = Field(
        default=DEFAULT_OWNER_PASSWORD,
        description="Owner password - MUST be changed in production"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Emit JSON formatted logs")

    # Realtime
    ws_max_idle_seconds: int = Field(
        default=300,
        ge=1,
        description="Idle seconds before a chat connection is considered stale"
    )

    @field_validator("storage_backend")
    @classmethod
    def _check_storage_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in ("memory", "database"):
            raise ValueError("storage_backend must be 'memory' or 'database'")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() in ("production", "prod", "staging")

    def validate_production_security(self) -> List[str]:
        """
        Validate all security requirements for production.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.is_production:
            return errors

        if self.jwt_secret == DEFAULT_JWT_SECRET:
            errors.append(
                "APP_JWT_SECRET: Must be set in production. "
                "Generate with: python -c \"import secrets; print(secrets.token_hex(32))\""
            )
        elif len(self.jwt_secret) < 32:
            errors.append("APP_JWT_SECRET: Must be at least 32 characters")

        if self.seed_owner_password == DEFAULT_OWNER_PASSWORD:
            errors.append("APP_SEED_OWNER_PASSWORD: Default owner password is not allowed in production")

        if self.debug:
            errors.append("APP_DEBUG: Must be False in production")

        return errors


# =============================================================================
# STARTUP VALIDATION
# =============================================================================

class StartupSecurityError(Exception):
    """Raised when security validation fails at startup."""
    pass


def validate_startup_security(settings: Settings) -> bool:
    """
    Validate security settings at application startup.

    In production this fails fast if critical security settings are missing.
    Outside production it only warns about insecure defaults.

    Raises:
        StartupSecurityError: If validation fails
    """
    errors = settings.validate_production_security()

    if not errors:
        if settings.is_production:
            logger.info("Production security validation PASSED")
        elif settings.jwt_secret == DEFAULT_JWT_SECRET:
            logger.warning(
                "APP_JWT_SECRET not set - using insecure development default. "
                "Set APP_JWT_SECRET for production."
            )
        return True

    error_msg = "Security configuration is invalid:\n" + "\n".join(
        f"  {i}. {err}" for i, err in enumerate(errors, 1)
    )
    logger.critical(error_msg)
    raise StartupSecurityError(error_msg)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Returns:
        Settings: Cached settings loaded from environment.
    """
    return Settings()
