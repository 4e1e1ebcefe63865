"""City search through the Open-Meteo geocoding API, used when Nominatim cannot answer."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from citygeo.config import OpenMeteoGeocodingSettings
from citygeo.domain.models import GeoPoint, OpenMeteoPlace, OpenMeteoSearchPayload
from citygeo.logging import logger
from citygeo.services.exceptions import (
    CityNotFound,
    ProviderError,
    TerminalProviderError,
    TransientProviderError,
)
from citygeo.services.geocoding import (
    DEFAULT_COUNT,
    clamp_count,
    extract_city_name,
    normalize_language,
)
from citygeo.services.nominatim import is_retryable_status
from citygeo.services.timezones import upstream_error_reason
from citygeo.services.translation import contains_cjk, translate_query

CHINA_ZH = "中国"


@dataclass(slots=True)
class _Candidate:
    place: OpenMeteoPlace
    country: str
    name_en: str = ""
    name_zh: str = ""
    admin1_en: str = ""
    admin1_zh: str = ""


class OpenMeteoGeocoder:
    """Search cities on Open-Meteo, merging English and Chinese name variants.

    One search issues several small requests (original term, pinyin term,
    each in ``en`` and ``zh``) and merges the results by Open-Meteo id.
    Failed requests are logged and skipped; only a search that yields nothing
    at all raises :class:`CityNotFound`, chained to the last request failure.
    Points carry Open-Meteo's own timezone.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: OpenMeteoGeocodingSettings | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings or OpenMeteoGeocodingSettings()

    async def search_cities(
        self,
        query: str,
        count: int = DEFAULT_COUNT,
        language: str = "en",
    ) -> list[GeoPoint]:
        name = extract_city_name(query)
        count = clamp_count(count)
        lang = normalize_language(language)
        limit = count * 2

        pinyin = ""
        if contains_cjk(name):
            translated = translate_query(name)
            if translated != name:
                pinyin = translated

        candidates: dict[int, _Candidate] = {}
        last_error: ProviderError | None = None

        async def collect(term: str, language_tag: str) -> list[OpenMeteoPlace]:
            nonlocal last_error
            try:
                return await self.fetch(term, limit, language_tag)
            except ProviderError as exc:
                last_error = exc
                logger.warning(
                    "open_meteo_search_failed",
                    query=term,
                    language=language_tag,
                    error=str(exc),
                )
                return []

        self._merge(candidates, await collect(name, "en"), chinese=False)
        if pinyin:
            self._merge(candidates, await collect(pinyin, "en"), chinese=False)
        self._merge(candidates, await collect(name, "zh"), chinese=True)

        if lang == "zh":
            # zh-CN returns Simplified names where plain zh may not.
            for place in await collect(name, "zh-CN"):
                candidate = candidates.get(place.id)
                if candidate and place.name.strip():
                    candidate.name_zh = place.name.strip()
            if pinyin:
                for place in await collect(pinyin, "zh-CN"):
                    candidate = candidates.get(place.id)
                    if candidate and place.name.strip() and not candidate.name_zh:
                        candidate.name_zh = place.name.strip()
                for place in await collect(pinyin, "zh"):
                    candidate = candidates.get(place.id)
                    if candidate is None:
                        continue
                    if place.admin1.strip() and not candidate.admin1_zh:
                        candidate.admin1_zh = place.admin1.strip()
                    if contains_cjk(place.country):
                        candidate.country = place.country.strip()

        if not candidates:
            raise CityNotFound("city not found") from last_error

        ranked = sorted(candidates.values(), key=lambda c: c.place.population, reverse=True)
        points: list[GeoPoint] = []
        seen: set[tuple[int, int]] = set()
        for candidate in ranked:
            place = candidate.place
            key = (round(place.latitude * 100), round(place.longitude * 100))
            if key in seen:
                continue
            seen.add(key)
            points.append(
                GeoPoint(
                    latitude=place.latitude,
                    longitude=place.longitude,
                    display_name=self._display_name(candidate, lang),
                    timezone=place.timezone.strip(),
                )
            )
            if len(points) >= count:
                break

        logger.debug("open_meteo_search_completed", query=name, language=lang, results=len(points))
        return points

    async def fetch(self, term: str, limit: int, language_tag: str) -> list[OpenMeteoPlace]:
        params = {
            "name": term,
            "count": str(limit),
            "language": language_tag,
            "format": "json",
        }
        try:
            response = await self._client.get(
                str(self._settings.base_url),
                params=params,
                headers={"User-Agent": self._settings.user_agent},
                timeout=self._settings.request_timeout_seconds,
            )
        except httpx.RequestError as exc:
            raise TransientProviderError(f"open-meteo geocoding: request failed: {exc}") from exc

        status_code = response.status_code
        if not response.is_success:
            reason = upstream_error_reason(response)
            error_cls = TransientProviderError if is_retryable_status(status_code) else TerminalProviderError
            raise error_cls(
                f"open-meteo geocoding: status={status_code} reason={reason}",
                status_code=status_code,
                body=reason,
            )

        try:
            payload = OpenMeteoSearchPayload.model_validate_json(response.content)
        except ValidationError as exc:
            raise TerminalProviderError(
                f"open-meteo geocoding: undecodable payload: {exc.error_count()} errors",
                status_code=status_code,
            ) from exc
        return payload.results

    @staticmethod
    def _merge(
        candidates: dict[int, _Candidate], places: list[OpenMeteoPlace], *, chinese: bool
    ) -> None:
        for place in places:
            if place.id == 0:
                continue
            name = place.name.strip()
            admin1 = place.admin1.strip()
            candidate = candidates.get(place.id)
            if candidate is None:
                candidate = _Candidate(place=place, country=place.country.strip())
                candidates[place.id] = candidate
            elif place.population > candidate.place.population:
                candidate.place = candidate.place.model_copy(update={"population": place.population})
            if chinese:
                candidate.name_zh = candidate.name_zh or name
                candidate.admin1_zh = candidate.admin1_zh or admin1
            else:
                candidate.name_en = candidate.name_en or name
                candidate.admin1_en = candidate.admin1_en or admin1

    @staticmethod
    def _display_name(candidate: _Candidate, lang: str) -> str:
        country = candidate.country.strip()
        if lang == "zh":
            name = candidate.name_zh or candidate.name_en
            admin1 = candidate.admin1_zh or candidate.admin1_en
            if not country or country == "China":
                country = CHINA_ZH
        else:
            name = candidate.name_en or candidate.name_zh
            admin1 = candidate.admin1_en or candidate.admin1_zh
        name = name or candidate.place.name.strip()

        if admin1 and country:
            return f"{name}, {admin1}, {country}"
        if country:
            return f"{name}, {country}"
        return name


__all__ = ["OpenMeteoGeocoder"]
