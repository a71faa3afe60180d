"""
Configuration settings for the Try-On Asset Layer.

All settings are loaded from environment variables with sensible defaults.
Use .env file for local development (see .env.example).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Application ===
    APP_NAME: str = "Try-On Asset Layer"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CONFIGURE_LOGGING: bool = True  # create_service installs the structlog handler

    # === Generation Service ===
    GENERATION_SERVICE_URL: str = "http://localhost:5001/api"
    GENERATION_API_TOKEN: Optional[str] = None
    HTTP_TIMEOUT: float = 60.0  # seconds

    # === Retry & Backoff ===
    SUBMIT_MAX_ATTEMPTS: int = 3
    POLL_MAX_ATTEMPTS: int = 3
    ASSET_FETCH_MAX_ATTEMPTS: int = 3
    RETRY_BASE_DELAY_MS: int = 1000
    RETRY_MAX_DELAY_MS: int = 30000
    RETRY_ATTEMPT_TIMEOUT_SECONDS: Optional[float] = None  # None = transport timeout only

    # === Task Polling ===
    POLL_INTERVAL_SECONDS: float = 3.0
    POLL_MAX_WAIT_SECONDS: Optional[float] = 600.0  # None = wait forever
    SUPERSEDE_SAME_KIND: bool = True

    # === Asset Loading ===
    ASSET_MAX_BYTES: int = 100 * 1024 * 1024
    ASSET_CACHE_ENABLED: bool = True
    ASSET_CACHE_MAX_BYTES: int = 50 * 1024 * 1024
    ASSET_CACHE_TTL_SECONDS: int = 7 * 24 * 60 * 60

    # === Telemetry ===
    PROMETHEUS_ENABLED: bool = True
    TELEMETRY_LOG_EVENTS: bool = True


# Global settings instance
settings = Settings()
