"""Shared pytest fixtures for the geocoding service tests."""

from __future__ import annotations

import pytest

from citygeo.config import NominatimSettings, OpenMeteoGeocodingSettings, TimezoneSettings


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records delays without waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def nominatim_settings() -> NominatimSettings:
    return NominatimSettings(
        base_url="https://nominatim.test",
        user_agent="citygeo-tests/1.0 (https://example.test/citygeo)",
    )


@pytest.fixture
def timezone_settings() -> TimezoneSettings:
    return TimezoneSettings(base_url="https://open-meteo.test/v1/forecast", user_agent="citygeo-tests/1.0")


@pytest.fixture
def open_meteo_settings() -> OpenMeteoGeocodingSettings:
    return OpenMeteoGeocodingSettings(
        base_url="https://geocoding.open-meteo.test/v1/search", user_agent="citygeo-tests/1.0"
    )


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
