"""Pydantic models shared across the geocoding layers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    display_name: str
    timezone: str = ""


class RawAddress(BaseModel):
    """Sparse postal address as returned by Nominatim.

    Field population differs per country, so every field is optional and
    ``null`` collapses to an empty string.
    """

    city: str = ""
    town: str = ""
    village: str = ""
    county: str = ""
    state: str = ""
    province: str = ""
    country: str = ""
    country_code: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        if value is None:
            return ""
        return value


class RawProviderResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    place_id: int = 0
    lat: str = ""
    lon: str = ""
    name: str = ""
    display_name: str = ""
    class_: str = Field(default="", alias="class")
    type: str = ""
    importance: float = 0.0
    address_type: str = Field(default="", alias="addresstype")
    address: RawAddress = Field(default_factory=RawAddress)

    @field_validator("place_id", mode="before")
    @classmethod
    def _none_to_zero_id(cls, value):
        if value is None:
            return 0
        return value

    @field_validator("lat", "lon", mode="before")
    @classmethod
    def _coerce_coordinate(cls, value):
        if value is None:
            return ""
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("name", "display_name", "class_", "type", "address_type", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        if value is None:
            return ""
        return value

    @field_validator("importance", mode="before")
    @classmethod
    def _none_to_zero(cls, value):
        if value is None:
            return 0.0
        return value

    @field_validator("address", mode="before")
    @classmethod
    def _none_to_address(cls, value):
        if value is None:
            return {}
        return value


class OpenMeteoPlace(BaseModel):
    """One entry of an Open-Meteo geocoding ``results`` array."""

    id: int = 0
    name: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    timezone: str = ""
    country: str = ""
    admin1: str = ""
    population: int = 0

    @field_validator("name", "timezone", "country", "admin1", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        if value is None:
            return ""
        return value

    @field_validator("id", "latitude", "longitude", "population", mode="before")
    @classmethod
    def _none_to_zero(cls, value):
        if value is None:
            return 0
        return value


class OpenMeteoSearchPayload(BaseModel):
    # Open-Meteo omits ``results`` entirely when nothing matches.
    results: list[OpenMeteoPlace] = Field(default_factory=list)

    @field_validator("results", mode="before")
    @classmethod
    def _none_to_list(cls, value):
        if value is None:
            return []
        return value


__all__ = [
    "GeoPoint",
    "OpenMeteoPlace",
    "OpenMeteoSearchPayload",
    "RawAddress",
    "RawProviderResult",
]
