"""Forward and reverse geocoding through geopy's Google geocoder."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from geopy.exc import GeopyError

from .errors import QueryFailed
from .models import Coordinate, LocationSearchResult
from .session import SessionManager

logger = logging.getLogger(__name__)


def format_coordinate(coord: Coordinate) -> str:
    """Return the fixed-precision fallback label for a coordinate."""

    return f"{coord.latitude:.4f}, {coord.longitude:.4f}"


def _to_search_result(location: Any) -> Optional[LocationSearchResult]:
    raw = getattr(location, "raw", None) or {}
    formatted = raw.get("formatted_address") or getattr(location, "address", "") or ""
    components = raw.get("address_components") or []
    name = ""
    if components and isinstance(components[0], dict):
        name = components[0].get("long_name") or ""
    try:
        coordinate = Coordinate(float(location.latitude), float(location.longitude))
    except (AttributeError, TypeError, ValueError):
        logger.debug("Skipping geocode result without usable coordinates: %s", formatted)
        return None
    return LocationSearchResult(
        place_id=str(raw.get("place_id", "")),
        name=name or formatted,
        formatted_address=formatted,
        location=coordinate,
        types=tuple(raw.get("types") or ()),
    )


class GeocodingAdapter:
    """Turn free text into search anchors and coordinates into addresses."""

    def __init__(self, session: SessionManager) -> None:
        self.session = session

    async def search_locations(self, query: str) -> List[LocationSearchResult]:
        if not query or not query.strip():
            return []

        handle = await self.session.ensure_ready()
        language = self.session.settings.language
        try:
            locations = await handle.geocoder.geocode(query.strip(), exactly_one=False, language=language)
        except GeopyError as exc:
            raise QueryFailed(f"Geocoding API error: {exc}") from exc

        if not locations:
            logger.debug("No geocoding results for %r", query)
            return []
        results = [result for result in (_to_search_result(item) for item in locations) if result]
        logger.debug("Geocoded %r -> %d locations", query, len(results))
        return results

    async def reverse_geocode(self, coord: Coordinate) -> str:
        """Return the best address for ``coord``, or ``"lat, lng"`` on any failure."""

        try:
            handle = await self.session.ensure_ready()
            location = await handle.geocoder.reverse(
                coord.as_tuple(),
                exactly_one=True,
                language=self.session.settings.language,
            )
        except Exception:
            logger.warning("Reverse geocoding failed for %s", format_coordinate(coord), exc_info=True)
            return format_coordinate(coord)

        address = getattr(location, "address", None) if location else None
        if not address:
            return format_coordinate(coord)
        return address
