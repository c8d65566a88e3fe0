"""
Web API Configuration Module

Centralized configuration management with Pydantic validation.
Environment variables are validated at startup to catch misconfigurations
early. Database settings live in docdb.common.config.
"""

import logging
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class ApiSettings(BaseSettings):
    """
    Web API configuration with validation.

    All settings can be overridden via environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )

    # === CORS ===
    cors_origins: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins"
    )

    # === Logging ===
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: str = Field(default="simple", description="simple or json")

    # === HTTP ===
    gzip_minimum_size: int = Field(
        default=1000,
        ge=0,
        description="Responses smaller than this (bytes) are not compressed"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is a known value."""
        allowed = {"development", "staging", "production"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of: {', '.join(sorted(allowed))}")
        return v_lower

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in {"simple", "json"}:
            raise ValueError("log_format must be 'simple' or 'json'")
        return v_lower

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if not self.cors_origins:
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def validate_production_config(self) -> List[str]:
        """
        Validate configuration is suitable for production.

        Returns list of warning messages.
        """
        issues = []
        if self.is_production and not self.cors_origins:
            issues.append("WARNING: CORS_ORIGINS not configured")
        return issues


@lru_cache()
def get_api_settings() -> ApiSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for performance.
    """
    return ApiSettings()


def validate_config_on_startup() -> ApiSettings:
    """
    Validate configuration at application startup.

    Raises ValueError with details if config is invalid.
    Logs warnings for non-critical issues.
    """
    try:
        settings = get_api_settings()
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}") from e

    for issue in settings.validate_production_config():
        logger.warning(issue)

    logger.info(f"Configuration loaded: environment={settings.environment}")
    return settings
