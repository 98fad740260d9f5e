"""Environment-driven settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process settings from ``BACKLOG_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="BACKLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = Field(
        default="sqlite+aiosqlite:///./runs/index.db",
        description="SQLAlchemy async URL of the run history and triage store",
    )
    log_level: str = Field(default="INFO")
    config_path: Path | None = Field(default=None, description="Override for configs/default.yaml")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
