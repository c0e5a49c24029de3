"""
Centralized configuration management for flipdeck.
"""
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_default_db_path() -> Path:
    """Returns the default path for the database file."""
    return Path.home() / ".flipdeck" / "flipdeck.db"


class Settings(BaseSettings):
    """
    Application settings, loaded from FLIPDECK_* environment variables or a
    .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLIPDECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Storage ---
    # Overridden by FLIPDECK_DB_PATH.
    db_path: Path = Field(default_factory=get_default_db_path)

    # --- Study defaults ---
    # Shuffle card order when a session starts without an explicit choice.
    shuffle: bool = False

    # Number of recently reviewed cards shown in the overview.
    recent_activity_limit: int = Field(default=5, ge=0)


settings = Settings()
