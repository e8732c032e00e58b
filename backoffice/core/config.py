"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports two modes:
    - DEVELOPMENT: Uses the in-memory mock remote store (no backend needed)
    - PRODUCTION: Talks to the real back-office API over HTTP

The ENV_MODE variable controls which remote store is instantiated by the
service factory, enabling seamless switching between local testing and
a live backend.

Usage:
    from backoffice.core.config import get_settings

    settings = get_settings()
    if settings.is_development:
        # Use the mock remote store
    else:
        # Use the HTTP remote store

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
import sys
from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing against the mock remote store
        PRODUCTION: Live back-office API
        STAGING: Pre-production API
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Back-office client settings loaded from environment variables.

    All settings can be overridden via BACKOFFICE_* environment variables
    or a .env file. Credentials are never part of the settings: the bearer
    token lives in the Session Context only.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging

        # Remote API
        api_base_url: Base URL of the back-office API
        request_timeout_seconds: Per-request timeout for HTTP calls

        # Notifications
        notification_ttl_seconds: Lifetime of a transient notification
        notification_history_size: How many past notifications are retained

        # Mock remote store
        mock_failure_rate: Probability of a simulated server failure
        mock_min_latency: Minimum simulated round-trip in seconds
        mock_max_latency: Maximum simulated round-trip in seconds
    """

    model_config = SettingsConfigDict(
        env_prefix="BACKOFFICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Food Ordering Back Office",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )

    # ==========================================================================
    # REMOTE API
    # ==========================================================================

    api_base_url: str = Field(
        default="http://localhost:5000",
        description="Base URL of the back-office REST API"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout applied to every outbound request"
    )

    # ==========================================================================
    # NOTIFICATIONS
    # ==========================================================================

    notification_ttl_seconds: float = Field(
        default=4.0,
        gt=0,
        description="Seconds a notification stays visible before expiring"
    )
    notification_history_size: int = Field(
        default=100,
        ge=1,
        description="Number of past notifications kept for inspection"
    )

    # ==========================================================================
    # MOCK REMOTE STORE
    # ==========================================================================

    mock_failure_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Probability that a mock request fails with a server error"
    )
    mock_min_latency: float = Field(
        default=0.0,
        ge=0.0,
        description="Minimum simulated latency in seconds"
    )
    mock_max_latency: float = Field(
        default=0.0,
        ge=0.0,
        description="Maximum simulated latency in seconds"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def use_real_services(self) -> bool:
        """Check if the real HTTP API should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once and stay
    consistent across the client lifecycle.

    Returns:
        Settings: Configured application settings

    Example:
        >>> settings = get_settings()
        >>> print(settings.api_base_url)
        http://localhost:5000
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured package logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return logging.getLogger("backoffice")
