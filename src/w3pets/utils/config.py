"""
Configuration management for the W3Pets marketplace API.

Settings are read from environment variables (and a ``.env`` file in the
project root) through a Pydantic settings model. ``get_settings()`` caches the
instance; tests call ``get_settings.cache_clear()`` after changing the
environment.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from w3pets.utils.logger import get_logger


logger = get_logger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent.parent


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    environment: str = Field(
        default="production",
        description="development, testing or production; error details are only exposed in development",
    )
    frontend_url: str = Field(default="http://localhost:3000", description="Base URL used in email links")
    cors_origins: str = Field(default="*", description="Comma separated list of allowed origins")
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)

    # Persistence
    database_url: str = Field(default="sqlite:///./w3pets.db")
    redis_url: str = Field(default="redis://localhost:6379/0")

    # JWT signing, one secret per token kind
    jwt_access_secret: Optional[str] = None
    jwt_refresh_secret: Optional[str] = None
    jwt_verification_secret: Optional[str] = None
    jwt_reset_secret: Optional[str] = None
    jwt_algorithm: str = Field(default="HS256")

    # Refresh cookie
    cookie_domain: Optional[str] = None

    # Email
    smtp_host: str = Field(default="localhost")
    smtp_port: int = Field(default=587)
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: str = Field(default="no-reply@w3pets.com")
    smtp_use_tls: bool = Field(default=True)

    # Uploaded files
    upload_dir: str = Field(default="./uploads")
    media_base_url: str = Field(default="http://localhost:8000/media")

    # Monitoring
    sentry_dsn: Optional[str] = None
    sentry_traces_sample_rate: float = Field(default=0.1)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        v = v.strip().lower()
        if v not in ("development", "testing", "production"):
            raise ValueError("ENVIRONMENT must be development, testing or production")
        return v

    @field_validator("smtp_port", "api_port")
    @classmethod
    def validate_port(cls, v):
        if v <= 0:
            raise ValueError("Port must be positive")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    settings = Settings()
    logger.debug(f"Loaded settings (environment={settings.environment})")
    return settings
