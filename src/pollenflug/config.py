"""Application settings loaded from the environment.

All fields can be overridden with ``POLLENFLUG_<FIELD>`` environment variables
or a ``.env`` file in the working directory. The language additionally falls
back to the system ``LANG`` variable.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_URL = "https://opendata.dwd.de/climate_environment/health/alerts/s31fg.json"


class Settings(BaseSettings):
    """Runtime configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POLLENFLUG_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = "pollenflug"
    app_env: str = "development"
    debug: bool = False

    url: str = Field(default=DEFAULT_URL, description="Upstream dataset endpoint")
    region: str = Field(default="*", description="Region selector, '*' for all regions")
    language: str = Field(
        default="",
        validation_alias=AliasChoices("POLLENFLUG_LANGUAGE", "LANG"),
        description="System language; 'de*' selects German texts, anything else English",
    )
    timezone: str = Field(default="Europe/Berlin", description="Zone of upstream timestamps")
    data_dir: Path = Path("data")
    request_timeout: float = 5.0


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
