"""Domain-specific exceptions."""

from __future__ import annotations


class GeocodingError(Exception):
    pass


class QueryValidationError(GeocodingError):
    pass


class CityNotFound(GeocodingError):
    pass


class ProviderError(GeocodingError):
    """Raised when the geocoding provider could not deliver a result set."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TransientProviderError(ProviderError):
    """Rate limiting, 5xx or network failures that outlived the retry budget."""


class TerminalProviderError(ProviderError):
    """Non-retryable HTTP status or an undecodable response."""


class TimezoneLookupError(GeocodingError):
    pass


__all__ = [
    "CityNotFound",
    "GeocodingError",
    "ProviderError",
    "QueryValidationError",
    "TerminalProviderError",
    "TimezoneLookupError",
    "TransientProviderError",
]
