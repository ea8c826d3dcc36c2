"""
Application configuration using pydantic-settings.
Loads environment variables for logging and display options.
"""
from typing import List
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Lot Layout & Reservation API"
    api_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Display format for occupied_until labels (24-hour clock)
    occupied_until_format: str = "%H:%M"

    # CORS
    cors_allow_origins: List[str] = ["*"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
