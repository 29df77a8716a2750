"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports three modes:
    - DEVELOPMENT: Uses the mock payment service unless PAYMENT_SECRET is set
    - STAGING: Uses Stripe with test keys
    - PRODUCTION: Uses Stripe with live keys

Variable names follow the deployed server's .env file (DB_USER, DB_PASS,
SECRET_KEY, PAYMENT_SECRET, PORT) so an existing deployment keeps working.

Usage:
    from bistro.core.config import get_settings

    settings = get_settings()
    client = MongoClient(settings.mongodb_url)
"""

import logging
import sys
from enum import Enum
from functools import lru_cache
from typing import Optional
from urllib.parse import quote_plus

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SECRET_KEY = "change-me-bistro-boss-dev-secret"


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing with the mock payment service
        PRODUCTION: Live environment with real Stripe keys
        STAGING: Pre-production with Stripe test keys
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    Secrets (DB_PASS, SECRET_KEY, PAYMENT_SECRET) should never be committed.
    """

    model_config = SettingsConfigDict(
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
        default="Bistro Boss API",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    port: int = Field(
        default=5000,
        description="API server port"
    )
    cors_origins: str = Field(
        default="http://localhost:5173,https://bistrobosss.netlify.app",
        description="Comma-separated list of allowed CORS origins"
    )

    # ==========================================================================
    # MONGODB
    # ==========================================================================

    db_user: Optional[str] = Field(
        default=None,
        description="MongoDB Atlas user"
    )
    db_pass: Optional[str] = Field(
        default=None,
        description="MongoDB Atlas password"
    )
    db_cluster_host: str = Field(
        default="cluster0.mp2awoi.mongodb.net",
        description="MongoDB Atlas cluster host"
    )
    db_name: str = Field(
        default="BistroDB",
        description="Database holding the five collections"
    )
    mongodb_uri: Optional[str] = Field(
        default=None,
        description="Full connection string; overrides the Atlas URI built from DB_USER/DB_PASS"
    )

    # ==========================================================================
    # TOKENS
    # ==========================================================================

    secret_key: str = Field(
        default=DEFAULT_SECRET_KEY,
        description="Signing secret for identity tokens"
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="Token signing algorithm"
    )
    access_token_expire_minutes: int = Field(
        default=60,
        description="Token lifetime in minutes"
    )

    # ==========================================================================
    # STRIPE PAYMENT GATEWAY
    # ==========================================================================

    payment_secret: Optional[str] = Field(
        default=None,
        description="Stripe API secret key (sk_live_... or sk_test_...)"
    )
    stripe_currency: str = Field(
        default="usd",
        description="Default currency for payment intents"
    )
    mock_payment_failure_rate: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Probability that the mock payment service declines"
    )
    mock_payment_min_latency: float = Field(
        default=0.0,
        ge=0.0,
        description="Minimum simulated latency of the mock payment service (seconds)"
    )
    mock_payment_max_latency: float = Field(
        default=0.0,
        ge=0.0,
        description="Maximum simulated latency of the mock payment service (seconds)"
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

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def use_real_services(self) -> bool:
        """Check if the real Stripe service should be used."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def use_mock_payments(self) -> bool:
        """Mock payments only in development and only without a Stripe key."""
        return self.is_development and not self.payment_secret

    @property
    def cors_origins_list(self) -> list[str]:
        """Get allowed CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def mongodb_url(self) -> str:
        """
        MongoDB connection string.

        MONGODB_URI wins when set; otherwise the Atlas SRV URI is built from
        the escaped DB_USER/DB_PASS credentials.
        """
        if self.mongodb_uri:
            return self.mongodb_uri
        user = quote_plus(self.db_user or "")
        password = quote_plus(self.db_pass or "")
        return (
            f"mongodb+srv://{user}:{password}@{self.db_cluster_host}"
            "/?retryWrites=true&w=majority"
        )

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Validate that all required production settings are configured.

        Returns:
            List of missing configuration keys (empty if all present)
        """
        missing = []

        if self.use_real_services:
            if not self.payment_secret:
                missing.append("PAYMENT_SECRET")
            if not self.mongodb_uri and not (self.db_user and self.db_pass):
                missing.append("DB_USER/DB_PASS")
            if self.secret_key == DEFAULT_SECRET_KEY:
                missing.append("SECRET_KEY")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once per process; call ``get_settings.cache_clear()``
    after changing the environment (tests do this).
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
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)

    return logging.getLogger("bistro")
