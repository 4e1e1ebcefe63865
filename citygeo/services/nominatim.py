"""Nominatim search client with rate-limit aware retries."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import httpx
from pydantic import TypeAdapter, ValidationError

from citygeo.config import NominatimSettings
from citygeo.domain.models import RawProviderResult
from citygeo.logging import logger
from citygeo.services.exceptions import TerminalProviderError, TransientProviderError

ERROR_BODY_LIMIT = 4096

Sleep = Callable[[float], Awaitable[object]]

_RESULTS = TypeAdapter(list[RawProviderResult])


def is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


async def _read_capped(response: httpx.Response, limit: int = ERROR_BODY_LIMIT) -> str:
    buffer = bytearray()
    async for chunk in response.aiter_bytes():
        buffer.extend(chunk)
        if len(buffer) >= limit:
            break
    return bytes(buffer[:limit]).decode("utf-8", errors="replace")


class NominatimClient:
    """Fetch raw search results from a Nominatim-compatible endpoint.

    One call makes at most ``max_attempts`` requests. Rate limiting (429),
    server errors and transport failures are retried after waiting
    ``attempt * backoff_seconds``; any other non-2xx status or an undecodable
    body fails immediately. Task cancellation, whether during a request or
    during the backoff wait, propagates unchanged.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        settings: NominatimSettings | None = None,
        *,
        sleep: Sleep | None = None,
    ) -> None:
        self._client = http_client
        self._settings = settings or NominatimSettings()
        self._sleep = sleep or asyncio.sleep

    async def fetch(
        self, query: str, limit: int, language_tag: str = ""
    ) -> list[RawProviderResult]:
        params = {
            "q": query,
            "format": "json",
            "addressdetails": "1",
            "limit": str(limit),
        }
        if language_tag:
            params["accept-language"] = language_tag
        headers = {"User-Agent": self._settings.user_agent}
        url = self._settings.search_url()
        max_attempts = self._settings.max_attempts

        last_error: TransientProviderError | None = None
        for attempt in range(max_attempts):
            if attempt > 0:
                delay = self._settings.backoff_seconds * attempt
                logger.warning(
                    "nominatim_retry",
                    attempt=attempt,
                    max_attempts=max_attempts,
                    delay=delay,
                    error=str(last_error),
                )
                await self._sleep(delay)

            try:
                async with self._client.stream(
                    "GET",
                    url,
                    params=params,
                    headers=headers,
                    timeout=self._settings.request_timeout_seconds,
                ) as response:
                    status_code = response.status_code
                    if is_retryable_status(status_code):
                        last_error = TransientProviderError(
                            f"nominatim: status={status_code}", status_code=status_code
                        )
                        continue
                    if not response.is_success:
                        try:
                            body = await _read_capped(response)
                        except httpx.RequestError as exc:
                            raise TerminalProviderError(
                                f"nominatim: status={status_code} body unreadable: {exc}",
                                status_code=status_code,
                            ) from exc
                        logger.error(
                            "nominatim_request_rejected",
                            status_code=status_code,
                            query=query,
                        )
                        raise TerminalProviderError(
                            f"nominatim: status={status_code} body={body}",
                            status_code=status_code,
                            body=body,
                        )
                    content = await response.aread()
            except httpx.RequestError as exc:
                last_error = TransientProviderError(f"nominatim: request failed: {exc}")
                last_error.__cause__ = exc
                continue

            results = self._decode(content)
            logger.debug(
                "nominatim_search_completed",
                query=query,
                attempts=attempt + 1,
                results=len(results),
            )
            return results

        logger.error(
            "nominatim_retries_exhausted",
            query=query,
            max_attempts=max_attempts,
            error=str(last_error),
        )
        if last_error is not None:
            raise last_error
        raise TransientProviderError("nominatim: max retries exceeded")

    @staticmethod
    def _decode(content: bytes) -> list[RawProviderResult]:
        try:
            return _RESULTS.validate_json(content)
        except ValidationError as exc:
            raise TerminalProviderError(f"nominatim: invalid response payload: {exc}") from exc


__all__ = ["ERROR_BODY_LIMIT", "NominatimClient", "is_retryable_status"]
