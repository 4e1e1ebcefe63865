"""Compose a "City, Region, Country" label from a Nominatim address."""

from __future__ import annotations

from citygeo.domain.models import RawProviderResult
from citygeo.services.script_variants import select_preferred_variant


def _settlement(result: RawProviderResult) -> str:
    address = result.address
    for candidate in (result.name, address.city, address.town, address.village, address.county):
        if candidate:
            return select_preferred_variant(candidate)
    return ""


def build_display_name(result: RawProviderResult, language_tag: str = "") -> str:
    """Return the hierarchical label, or the raw provider label when empty.

    The region is dropped when it repeats the settlement ("北京, 北京, 中国"
    becomes "北京, 中国"); a repeated country is kept. Every component goes
    through :func:`select_preferred_variant`, so ``language_tag`` does not
    change the composition.
    """

    address = result.address
    settlement = _settlement(result)
    region = select_preferred_variant(address.state or address.province)
    country = select_preferred_variant(address.country)

    parts: list[str] = []
    if settlement:
        parts.append(settlement)
    if region and region != settlement:
        parts.append(region)
    if country:
        parts.append(country)

    if not parts:
        return result.display_name
    return ", ".join(parts)


__all__ = ["build_display_name"]
