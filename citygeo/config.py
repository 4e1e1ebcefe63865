"""Runtime configuration based on environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AnyHttpUrl, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = "Hearth/1.0 (https://github.com/morezhou/hearth)"


class NominatimSettings(BaseModel):
    base_url: AnyHttpUrl = Field(default="https://nominatim.openstreetmap.org")
    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        min_length=1,
        description="Nominatim's usage policy requires an identifying User-Agent.",
    )
    max_attempts: int = Field(default=3, ge=1, le=5)
    backoff_seconds: float = Field(default=1.0, ge=0)
    request_timeout_seconds: int = Field(default=10, ge=1, le=60)

    def search_url(self) -> str:
        return f"{str(self.base_url).rstrip('/')}/search"


class TimezoneSettings(BaseModel):
    enabled: bool = True
    base_url: AnyHttpUrl = Field(default="https://api.open-meteo.com/v1/forecast")
    user_agent: str = Field(default="Hearth/0.1", min_length=1)
    request_timeout_seconds: int = Field(default=10, ge=1, le=60)


class OpenMeteoGeocodingSettings(BaseModel):
    enabled: bool = True
    base_url: AnyHttpUrl = Field(default="https://geocoding-api.open-meteo.com/v1/search")
    user_agent: str = Field(default="Hearth/0.1", min_length=1)
    request_timeout_seconds: int = Field(default=10, ge=1, le=60)


class GeoSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CITYGEO_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    environment: Literal["dev", "staging", "prod"] = "dev"
    default_language: Literal["en", "zh"] = "en"
    default_count: int = Field(default=8, ge=1, le=20)
    log_level: str = "INFO"

    nominatim: NominatimSettings = Field(default_factory=NominatimSettings)
    timezone: TimezoneSettings = Field(default_factory=TimezoneSettings)
    open_meteo: OpenMeteoGeocodingSettings = Field(default_factory=OpenMeteoGeocodingSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        if isinstance(value, str):
            return value.strip().upper() or "INFO"
        return value


@lru_cache
def get_settings() -> GeoSettings:
    """Return cached settings instance."""

    return GeoSettings()


__all__ = [
    "DEFAULT_USER_AGENT",
    "GeoSettings",
    "NominatimSettings",
    "OpenMeteoGeocodingSettings",
    "TimezoneSettings",
    "get_settings",
]
