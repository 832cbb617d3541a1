"""
Centralized configuration management for vocabcore.
"""
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import DEFAULT_SESSION_SIZE


def get_default_db_path() -> Path:
    """Returns the default path for the database file."""
    return Path.home() / ".vocabcore" / "vocab.db"


class Settings(BaseSettings):
    """
    Defines application settings, loaded from environment variables or .env files.
    """

    model_config = SettingsConfigDict(
        env_prefix="VOCABCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Overridden by VOCABCORE_DB_PATH.
    db_path: Path = Field(default_factory=get_default_db_path)

    # Learner whose cards the CLI works on. Overridden by VOCABCORE_OWNER_ID.
    owner_id: Optional[str] = None

    # Target number of cards per study session.
    session_size: int = Field(default=DEFAULT_SESSION_SIZE, ge=1)

    # When True, disables the data-loss guard on table recreation.
    # Should NEVER be enabled in production.
    testing_mode: bool = False


# Create a singleton instance of the settings
settings = Settings()
