from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATEGORIES = [
    "Restaurant",
    "Bar",
    "Pool Bar",
    "Spa",
    "Room Service",
    "Gift Shop",
    "Minibar",
    "Reception",
]


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    project_name: str = Field(default="Room Ledger API")
    version: str = Field(default="0.1.0")
    environment: str = Field(default="development")
    commit_sha: str = Field(default="local-dev")

    database_url: str = Field(default="sqlite:///./roomledger.db")
    log_level: str = Field(default="INFO")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    # Staleness bound for clients polling the transaction list.
    refresh_interval_seconds: int = Field(default=30, ge=1)
    default_categories: List[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""
    return Settings()


settings = get_settings()
