"""Entry points used by the weather and world-clock widgets."""

from __future__ import annotations

from citygeo.domain.models import GeoPoint
from citygeo.logging import logger
from citygeo.services.exceptions import (
    GeocodingError,
    QueryValidationError,
    TimezoneLookupError,
)
from citygeo.services.geocoding import DEFAULT_COUNT, CityGeocoder, normalize_language
from citygeo.services.open_meteo import OpenMeteoGeocoder
from citygeo.services.timezones import TimezoneResolver


class WidgetGeoService:
    """Localized lookups for the widgets.

    Each lookup tries Nominatim first and Open-Meteo second. When both fail
    for a non-English request the whole chain is retried in English; if that
    fails too, the localized error is the one raised.
    """

    def __init__(
        self,
        geocoder: CityGeocoder,
        timezone_resolver: TimezoneResolver | None = None,
        fallback: OpenMeteoGeocoder | None = None,
    ) -> None:
        self._geocoder = geocoder
        self._timezones = timezone_resolver
        self._fallback = fallback

    async def search(
        self, query: str, language: str = "en", count: int = DEFAULT_COUNT
    ) -> list[GeoPoint]:
        try:
            return await self._search_once(query, count, language)
        except QueryValidationError:
            raise
        except GeocodingError as exc:
            if normalize_language(language) == "en":
                raise
            logger.info("city_search_fallback", query=query, language=language, error=str(exc))
            try:
                return await self._search_once(query, count, "en")
            except GeocodingError as english_exc:
                logger.warning("city_search_english_failed", query=query, error=str(english_exc))
                raise exc

    async def locate(self, city: str, language: str = "en") -> GeoPoint:
        try:
            return await self._locate_once(city, language)
        except QueryValidationError:
            raise
        except GeocodingError as exc:
            if normalize_language(language) == "en":
                raise
            logger.info("city_geocode_fallback", city=city, language=language, error=str(exc))
            try:
                return await self._locate_once(city, "en")
            except GeocodingError as english_exc:
                logger.warning("city_geocode_english_failed", city=city, error=str(english_exc))
                raise exc

    async def city_timezone(self, city: str, language: str = "en") -> dict[str, str]:
        point = await self.locate(city, language)
        timezone = point.timezone.strip()
        if not timezone:
            if self._timezones is None:
                raise TimezoneLookupError(f"timezone not found for {point.display_name}")
            timezone = await self._timezones.resolve(f"{point.latitude:f}", f"{point.longitude:f}")
        return {"timezone": timezone, "city": point.display_name}

    async def _search_once(self, query: str, count: int, language: str) -> list[GeoPoint]:
        try:
            return await self._geocoder.search_cities(query, count, language)
        except QueryValidationError:
            raise
        except GeocodingError as exc:
            if self._fallback is None:
                raise
            logger.info("nominatim_search_unavailable", query=query, language=language, error=str(exc))
            return await self._fallback.search_cities(query, count, language)

    async def _locate_once(self, city: str, language: str) -> GeoPoint:
        try:
            return await self._geocoder.geocode_city(city, language)
        except QueryValidationError:
            raise
        except GeocodingError as exc:
            if self._fallback is None:
                raise
            logger.info("nominatim_geocode_unavailable", city=city, language=language, error=str(exc))
            points = await self._fallback.search_cities(city, 1, language)
            return points[0]


__all__ = ["WidgetGeoService"]
