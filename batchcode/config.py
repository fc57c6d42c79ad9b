"""
Configuration management for the batch code service.

Uses pydantic-settings for environment variable management.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # App
    APP_NAME: str = "Batch Code Generator"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///data/batch_codes.db"

    # Monday.com
    MONDAY_API_KEY: str = ""
    MONDAY_API_URL: str = "https://api.monday.com/v2"
    MONDAY_API_VERSION: str = "2023-10"
    MONDAY_API_TIMEOUT_SECONDS: float = 20.0
    MONDAY_BATCH_CODE_COLUMN_ID: str = ""
    MONDAY_WEBHOOK_SECRET: str = ""
    # Throttle before the column write; 0 disables it
    MONDAY_UPDATE_DELAY_SECONDS: float = 0.0

    # Sentry
    SENTRY_DSN: Optional[str] = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1


# Global settings instance
settings = Settings()
