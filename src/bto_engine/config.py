"""Lightweight configuration for the allocation engine."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Minimal application settings."""

    model_config = SettingsConfigDict(
        env_prefix="BTO_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    data_dir: Path = Field(default=Path("data"), description="Where JSON snapshots live")
    store_backend: Literal["json", "sql"] = Field(
        default="json", description="Persistence adapter used by the service factory"
    )
    database_url: str = Field(
        default="sqlite:///bto.db", description="SQLAlchemy URL for the sql backend"
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")
    log_level: str = Field(default="INFO", description="Root logging level")
    default_password: str = Field(
        default="password",
        min_length=1,
        description="Credential assigned to users created without one",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    settings = Settings()
    if settings.store_backend == "json":
        settings.data_dir.mkdir(parents=True, exist_ok=True)
    return settings
