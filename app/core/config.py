# app/core/config.py
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global application configuration.

    Values are loaded from environment variables (or a local `.env` file)
    at runtime and cover:
    - DB connection
    - API key protection for write endpoints
    - Logging
    - Safety bounds for recurrence expansion and conflict lookups
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    APP_NAME: str = "Family Calendar"
    APP_ENV: str = Field("local", description="Environment name: local/dev/stage/prod")

    DB_URL: str = Field(
        "sqlite+aiosqlite:///./family_calendar.db",
        description="SQLAlchemy-compatible async database URL",
    )

    API_KEY: str | None = Field(
        default=None,
        description="API key required for hitting /events and /members endpoints",
    )

    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root log level for the service (DEBUG/INFO/WARNING/ERROR).",
    )

    # --- Recurrence / conflict engine bounds ---
    RECURRENCE_MAX_OCCURRENCES: int = Field(
        default=365,
        ge=1,
        description="Hard cap on the number of occurrences generated per series.",
    )
    RECURRENCE_HORIZON_YEARS: int = Field(
        default=2,
        ge=1,
        description="How far past the anchor open-ended series are expanded.",
    )
    CONFLICT_WINDOW_DAYS: int = Field(
        default=1,
        ge=0,
        description=(
            "Number of days before and after the candidate's start date whose "
            "events are loaded for conflict checks."
        ),
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Using LRU cache ensures settings are read and validated only once,
    while still being easily importable across the app.
    """
    return Settings()
