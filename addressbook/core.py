"""Application configuration and settings management.

This module defines the application settings loaded from environment
variables and provides a helper for accessing the cached settings.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Attributes:
        DATABASE_URL: Database connection string.
        API_PREFIX: Path prefix of every address book route.
        ALLOWED_ORIGINS: Allowed origins for CORS.
        UPSERT_ON_PUT: Whether a full update of a missing id inserts a new
            row with that id (``True``) or answers "not found" (``False``).
        CREATE_SCHEMA: Create missing tables on startup (development only).
        LOG_LEVEL: Root logger level name.
        LOG_FILE: Optional path of a log file.
        SQL_ECHO: Log every SQL statement emitted by the engine.
    """

    DATABASE_URL: str = "sqlite:///./addressbook.db"
    API_PREFIX: str = "/api/v1"
    ALLOWED_ORIGINS: List[str] = ["*"]
    UPSERT_ON_PUT: bool = True
    CREATE_SCHEMA: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None
    SQL_ECHO: bool = False

    class Config:
        """Pydantic configuration for loading environment variables."""

        env_file = ".env"
        extra = "allow"


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings.

    The settings object is cached to prevent reloading environment
    variables multiple times during application lifetime.
    """

    return Settings()
