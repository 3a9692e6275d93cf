"""Google Maps deep links and static map images."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple
from urllib.parse import urlencode

from .models import Coordinate
from .settings import DIRECTIONS_BASE_URL, PLACEHOLDER_IMAGE, STATIC_MAP_URL

Marker = Tuple[Coordinate, Optional[str]]


def directions_url(destination: Coordinate, origin: Optional[Coordinate] = None) -> str:
    """Return a directions link, starting at the device location without ``origin``."""

    start = origin.as_query() if origin is not None else "Current+Location"
    return f"{DIRECTIONS_BASE_URL}{start}/{destination.as_query()}"


def static_map_url(
    center: Coordinate,
    zoom: int = 15,
    width: int = 400,
    height: int = 300,
    markers: Optional[Sequence[Marker]] = None,
    *,
    api_key: Optional[str],
) -> str:
    """Build a Static Maps URL.

    Markers without a label are lettered A, B, C... in order.  With no
    markers a single marker is placed on ``center``.
    """

    if not api_key:
        return PLACEHOLDER_IMAGE

    params = [
        ("center", center.as_query()),
        ("zoom", str(zoom)),
        ("size", f"{width}x{height}"),
        ("key", api_key),
    ]
    if markers:
        for index, (position, label) in enumerate(markers):
            params.append(("markers", f"label:{label or chr(65 + index)}|{position.as_query()}"))
    else:
        params.append(("markers", center.as_query()))
    return f"{STATIC_MAP_URL}?{urlencode(params)}"
