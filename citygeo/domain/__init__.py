from citygeo.domain.models import (
    GeoPoint,
    OpenMeteoPlace,
    OpenMeteoSearchPayload,
    RawAddress,
    RawProviderResult,
)

__all__ = [
    "GeoPoint",
    "OpenMeteoPlace",
    "OpenMeteoSearchPayload",
    "RawAddress",
    "RawProviderResult",
]
