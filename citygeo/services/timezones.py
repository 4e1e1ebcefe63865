"""Timezone resolution for geocoded points."""

from __future__ import annotations

import json
from typing import Protocol

import httpx

from citygeo.config import TimezoneSettings
from citygeo.services.exceptions import TimezoneLookupError

ERROR_BODY_LIMIT = 4096


def upstream_error_reason(response: httpx.Response) -> str:
    """Best human-readable reason from an Open-Meteo error response."""

    body = response.content[:ERROR_BODY_LIMIT].decode("utf-8", errors="replace")
    reason = ""
    try:
        payload = json.loads(body)
    except ValueError:
        payload = None
    if isinstance(payload, dict) and isinstance(payload.get("reason"), str):
        reason = payload["reason"].strip()
    if not reason:
        reason = body.strip()
    if not reason:
        reason = response.reason_phrase or str(response.status_code)
    return reason


class TimezoneResolver(Protocol):
    async def resolve(self, lat: str, lon: str) -> str: ...


class OpenMeteoTimezoneResolver:
    """Resolve an IANA zone name through Open-Meteo's ``timezone=auto``."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: TimezoneSettings | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings or TimezoneSettings()

    async def resolve(self, lat: str, lon: str) -> str:
        if not lat or not lon:
            raise TimezoneLookupError("lat/lon required")

        params = {
            "latitude": lat,
            "longitude": lon,
            # Smallest payload that still carries the timezone.
            "current": "temperature_2m",
            "timezone": "auto",
        }
        try:
            response = await self._client.get(
                str(self._settings.base_url),
                params=params,
                headers={"User-Agent": self._settings.user_agent},
                timeout=self._settings.request_timeout_seconds,
            )
        except httpx.RequestError as exc:
            raise TimezoneLookupError(f"open-meteo forecast: request failed: {exc}") from exc

        if not response.is_success:
            reason = upstream_error_reason(response)
            raise TimezoneLookupError(
                f"open-meteo forecast: status={response.status_code} reason={reason}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise TimezoneLookupError(f"open-meteo forecast: invalid payload: {exc}") from exc

        timezone = payload.get("timezone") if isinstance(payload, dict) else None
        if not isinstance(timezone, str) or not timezone.strip():
            raise TimezoneLookupError("timezone not found")
        return timezone.strip()


__all__ = ["OpenMeteoTimezoneResolver", "TimezoneResolver", "upstream_error_reason"]
