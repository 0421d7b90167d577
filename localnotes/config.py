"""Application configuration."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, overridable with ``LOCALNOTES_*`` variables."""

    model_config = SettingsConfigDict(
        env_prefix="LOCALNOTES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    db_path: str = "localnotes.db"

    # Autosave
    autosave_delay: float = 0.7  # seconds of quiet before a draft is written
    flush_on_switch: bool = True

    # Notes
    default_title: str = "Untitled"

    # HTTP view
    host: str = "127.0.0.1"
    port: int = 8000
    website_dir: Optional[Path] = None

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
