"""City search and single-city geocoding on top of Nominatim."""

from __future__ import annotations

import re

from citygeo.domain.models import GeoPoint, RawProviderResult
from citygeo.logging import logger
from citygeo.services.display_name import build_display_name
from citygeo.services.exceptions import CityNotFound, QueryValidationError
from citygeo.services.nominatim import NominatimClient
from citygeo.services.timezones import TimezoneResolver
from citygeo.services.translation import contains_cjk, translate_query

DEFAULT_COUNT = 8
MAX_COUNT = 20

# "City, State, Country" with an ASCII or full-width comma.
_QUALIFIER_SEPARATOR = re.compile("[,，]")


def normalize_language(language: str | None) -> str:
    lang = (language or "").strip().lower()
    if lang.startswith("zh"):
        return "zh"
    return "en"


def accept_language_tag(language: str | None) -> str:
    if normalize_language(language) == "zh":
        return "zh-CN,zh"
    return "en"


def clamp_count(count: int | None) -> int:
    if count is None or count <= 0:
        return DEFAULT_COUNT
    return min(count, MAX_COUNT)


def extract_city_name(query: str | None) -> str:
    """Trim the query and drop any qualifier after the first comma."""

    name = (query or "").strip()
    if not name:
        raise QueryValidationError("city required")
    name = _QUALIFIER_SEPARATOR.split(name, maxsplit=1)[0].strip()
    if not name:
        raise QueryValidationError("city required")
    return name


def parse_coordinate(value: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


class CityGeocoder:
    """Resolve free-form city queries into :class:`GeoPoint` values.

    Stateless apart from its collaborators, so one instance can serve
    concurrent callers.
    """

    def __init__(
        self,
        client: NominatimClient,
        timezone_resolver: TimezoneResolver | None = None,
    ) -> None:
        self._client = client
        self._timezones = timezone_resolver

    async def search_cities(
        self,
        query: str,
        count: int = DEFAULT_COUNT,
        language: str = "en",
    ) -> list[GeoPoint]:
        name = extract_city_name(query)
        count = clamp_count(count)
        lang = normalize_language(language)
        tag = accept_language_tag(lang)

        search_term = name
        if contains_cjk(name):
            # Unknown names stay as typed; they may still be valid foreign
            # names written in Chinese.
            search_term = translate_query(name)

        results = await self._client.fetch(search_term, count * 2, tag)
        if not results and search_term != name:
            logger.info("city_search_untranslated_retry", query=name, translated=search_term)
            results = await self._client.fetch(name, count * 2, tag)

        if not results:
            raise CityNotFound("city not found")

        points = self._to_points(results, count, lang)
        if not points:
            raise CityNotFound("city not found")
        return points

    async def geocode_city(self, city: str, language: str = "en") -> GeoPoint:
        points = await self.search_cities(city, 1, language)
        point = points[0]

        if point.timezone or self._timezones is None:
            return point

        try:
            timezone = await self._timezones.resolve(
                f"{point.latitude:f}", f"{point.longitude:f}"
            )
        except Exception as exc:
            logger.warning(
                "timezone_enrichment_failed",
                city=point.display_name,
                error=str(exc),
            )
            return point
        return point.model_copy(update={"timezone": timezone})

    @staticmethod
    def _to_points(results: list[RawProviderResult], count: int, lang: str) -> list[GeoPoint]:
        seen: set[int] = set()
        points: list[GeoPoint] = []
        for result in results:
            if len(points) >= count:
                break
            if result.place_id in seen:
                continue
            seen.add(result.place_id)
            points.append(
                GeoPoint(
                    latitude=parse_coordinate(result.lat),
                    longitude=parse_coordinate(result.lon),
                    display_name=build_display_name(result, lang),
                )
            )
        return points


__all__ = [
    "DEFAULT_COUNT",
    "MAX_COUNT",
    "CityGeocoder",
    "accept_language_tag",
    "clamp_count",
    "extract_city_name",
    "normalize_language",
    "parse_coordinate",
]
