"""
Application settings.

All values can be overridden through environment variables or a local
.env file. A single Settings instance is created at import time and shared
by the database, logging, and authentication modules.
"""

from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the Rollbook service."""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./rollbook.db"
    LOG_LEVEL: str = "INFO"

    # Session tokens
    SECRET_KEY: str = "rollbook-dev-secret-change-in-prod"
    ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "rollbook_session"
    SESSION_MAX_AGE_MINUTES: int = 1440  # 24 hours
    SESSION_COOKIE_SECURE: bool = False

    # Create demo teachers, sections and students on startup
    SEED_DEMO_DATA: bool = True

    CORS_ORIGINS: List[str] = ["*"]


settings = Settings()
