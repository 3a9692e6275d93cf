"""Great-circle distance helpers."""

from __future__ import annotations

from typing import Optional

from geopy.distance import great_circle

from .models import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(origin: Coordinate, destination: Coordinate) -> float:
    """Return the spherical distance in kilometers between two coordinates."""

    return great_circle(origin.as_tuple(), destination.as_tuple(), radius=EARTH_RADIUS_KM).km


def distance_from(reference: Optional[Coordinate], location: Coordinate) -> float:
    """Distance from ``reference`` to ``location``, or 0 without a reference."""

    if reference is None:
        return 0.0
    return haversine_km(reference, location)


def format_distance(distance_km: float) -> str:
    if distance_km < 1:
        return f"{distance_km * 1000:.0f} m"
    return f"{distance_km:.1f} km"
