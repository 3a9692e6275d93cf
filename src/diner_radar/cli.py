"""Command line interface for querying nearby restaurants."""

from __future__ import annotations

import argparse
import asyncio
import csv
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, TextIO

from .errors import DinerRadarError
from .geocode import GeocodingAdapter
from .models import Coordinate, PlaceEntity, place_row_fields
from .pipeline import DiscoveryPipeline
from .places import PlacesAdapter
from .session import SessionManager
from .settings import ProviderSettings

logger = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Discover nearby restaurants through Google Maps")
    parser.add_argument("--config", type=Path, help="Optional JSON file overriding provider settings")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of CSV rows")
    parser.add_argument("--language", default=None, help="Language code passed to the provider")
    parser.add_argument("--legacy-only", action="store_true", help="Skip Places API (New) and use the legacy service")

    commands = parser.add_subparsers(dest="command", required=True)

    nearby = commands.add_parser("nearby", help="Restaurants around a coordinate")
    nearby.add_argument("lat", type=float)
    nearby.add_argument("lng", type=float)
    nearby.add_argument("--radius", type=int, default=None, help="Search radius in meters")
    nearby.add_argument("--category", default="restaurant", help="Place type to search for")
    nearby.add_argument("--no-enrich", action="store_true", help="Print phase-1 results without photo enrichment")

    search = commands.add_parser("search", help="Restaurants matching free text")
    search.add_argument("query")
    search.add_argument("--lat", type=float, default=None)
    search.add_argument("--lng", type=float, default=None)
    search.add_argument("--radius", type=int, default=None, help="Location bias radius in meters")
    search.add_argument("--no-enrich", action="store_true", help="Print phase-1 results without photo enrichment")

    details = commands.add_parser("details", help="Details for a single place id")
    details.add_argument("place_id")

    locate = commands.add_parser("locate", help="Geocode a free-text location")
    locate.add_argument("query")

    reverse = commands.add_parser("reverse", help="Address for a coordinate")
    reverse.add_argument("lat", type=float)
    reverse.add_argument("lng", type=float)

    args = parser.parse_args(argv)
    if args.command == "search" and (args.lat is None) != (args.lng is None):
        search.error("--lat and --lng must be given together")
    return args


def load_config(path: Path | None) -> Dict[str, Any]:
    if not path:
        return {}
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def build_settings(args: argparse.Namespace, config: Dict[str, Any]) -> ProviderSettings:
    provider_config = dict(config.get("provider", {}))
    if args.language is not None:
        provider_config["language"] = args.language
    if args.legacy_only:
        provider_config["use_new_api"] = False
    return ProviderSettings.from_env(**provider_config)


def write_places(places: Iterable[PlaceEntity], as_json: bool, stream: TextIO) -> None:
    places = list(places)
    if as_json:
        json.dump([asdict(place) for place in places], stream, indent=2)
        stream.write("\n")
        return
    writer = csv.writer(stream)
    writer.writerow(place_row_fields())
    for place in places:
        writer.writerow(place.as_row())


async def _run(args: argparse.Namespace, settings: ProviderSettings, stream: TextIO) -> None:
    async with SessionManager(settings) as session:
        places_adapter = PlacesAdapter(session)
        geocoder = GeocodingAdapter(session)
        pipeline = DiscoveryPipeline(places_adapter)

        if args.command in ("nearby", "search"):
            if args.command == "nearby":
                batch = await pipeline.discover_and_enrich(Coordinate(args.lat, args.lng), args.radius)
            else:
                center = Coordinate(args.lat, args.lng) if args.lat is not None and args.lng is not None else None
                batch = await pipeline.search_and_enrich(args.query, center, args.radius)
            logger.info("Found %d places", len(batch.initial))
            if args.no_enrich:
                batch.enriched.cancel()
                write_places(batch.initial, args.json, stream)
            else:
                write_places(await batch.enriched, args.json, stream)

        elif args.command == "details":
            details = await places_adapter.get_details(args.place_id)
            json.dump(asdict(details), stream, indent=2)
            stream.write("\n")

        elif args.command == "locate":
            results = await geocoder.search_locations(args.query)
            if args.json:
                json.dump([asdict(result) for result in results], stream, indent=2)
                stream.write("\n")
            else:
                writer = csv.writer(stream)
                writer.writerow(["place_id", "name", "formatted_address", "latitude", "longitude"])
                for result in results:
                    writer.writerow(
                        [
                            result.place_id,
                            result.name,
                            result.formatted_address,
                            f"{result.location.latitude:.6f}",
                            f"{result.location.longitude:.6f}",
                        ]
                    )

        elif args.command == "reverse":
            stream.write(await geocoder.reverse_geocode(Coordinate(args.lat, args.lng)) + "\n")


def main(argv: list[str] | None = None, stream: Optional[TextIO] = None) -> int:
    args = parse_args(argv)
    _configure_logging(args.verbose)

    try:
        settings = build_settings(args, load_config(args.config))
    except (OSError, TypeError, ValueError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    try:
        asyncio.run(_run(args, settings, stream or sys.stdout))
    except (DinerRadarError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
