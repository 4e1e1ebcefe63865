"""Command-line entrypoint."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator, Sequence

import httpx

from citygeo.config import GeoSettings, get_settings
from citygeo.logging import configure_logging, logger
from citygeo.services import (
    CityGeocoder,
    NominatimClient,
    OpenMeteoGeocoder,
    OpenMeteoTimezoneResolver,
    WidgetGeoService,
)
from citygeo.services.exceptions import GeocodingError


@asynccontextmanager
async def build_service(settings: GeoSettings) -> AsyncIterator[WidgetGeoService]:
    """Wire the services around one shared HTTP client."""

    async with httpx.AsyncClient() as http_client:
        resolver = None
        if settings.timezone.enabled:
            resolver = OpenMeteoTimezoneResolver(http_client, settings=settings.timezone)
        geocoder = CityGeocoder(
            NominatimClient(http_client, settings=settings.nominatim),
            timezone_resolver=resolver,
        )
        fallback = None
        if settings.open_meteo.enabled:
            fallback = OpenMeteoGeocoder(http_client, settings=settings.open_meteo)
        yield WidgetGeoService(geocoder, timezone_resolver=resolver, fallback=fallback)


def build_parser(settings: GeoSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="citygeo", description="Resolve city names to coordinates.")
    subcommands = parser.add_subparsers(dest="command", required=True)

    search = subcommands.add_parser("search", help="List matching cities")
    search.add_argument("query")
    search.add_argument("--count", type=int, default=settings.default_count)
    search.add_argument("--language", default=settings.default_language)

    geocode = subcommands.add_parser("geocode", help="Resolve the best match with its timezone")
    geocode.add_argument("city")
    geocode.add_argument("--language", default=settings.default_language)
    return parser


async def run(args: argparse.Namespace, settings: GeoSettings) -> object:
    async with build_service(settings) as service:
        if args.command == "search":
            points = await service.search(args.query, args.language, args.count)
            return [point.model_dump() for point in points]
        point = await service.locate(args.city, args.language)
        return point.model_dump()


def main(argv: Sequence[str] | None = None) -> int:
    settings = get_settings()
    configure_logging(settings.log_level)
    args = build_parser(settings).parse_args(argv)

    try:
        payload = asyncio.run(run(args, settings))
    except GeocodingError as exc:
        logger.error("citygeo_command_failed", command=args.command, error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
