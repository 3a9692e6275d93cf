"""Data models shared by the query adapters and the enrichment pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .settings import PLACEHOLDER_IMAGE

UNKNOWN_NAME = "Unknown Restaurant"
DEFAULT_PRICE_LEVEL = 2


@dataclass(frozen=True, slots=True)
class Coordinate:
    """A WGS84 latitude/longitude pair."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")

    def as_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)

    def as_query(self) -> str:
        """Return the ``lat,lng`` form used in query strings."""

        return f"{self.latitude},{self.longitude}"


@dataclass(frozen=True, slots=True)
class UserLocation:
    """A search anchor, optionally labelled with a human readable address."""

    coordinate: Coordinate
    address: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PhotoAttribution:
    display_name: Optional[str] = None
    uri: Optional[str] = None
    photo_uri: Optional[str] = None


@dataclass(frozen=True, slots=True)
class PhotoDescriptor:
    """A provider photo reference with its pixel dimensions."""

    reference: str
    width: int = 0
    height: int = 0
    attributions: Tuple[PhotoAttribution, ...] = ()

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True, slots=True)
class PlaceEntity:
    """Normalized representation of a restaurant returned by a search."""

    id: str
    name: str
    location: Coordinate
    address: str = ""
    cuisine_label: str = "Restaurant"
    price_level: int = DEFAULT_PRICE_LEVEL
    distance_km: float = 0.0
    image_url: str = PLACEHOLDER_IMAGE
    photo_attributions: Tuple[PhotoAttribution, ...] = ()
    rating: float = 0.0
    types: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("place id must not be empty")
        if not self.name:
            raise ValueError("place name must not be empty")
        if not 1 <= self.price_level <= 4:
            raise ValueError(f"price level out of range: {self.price_level}")
        if self.distance_km < 0:
            raise ValueError(f"distance must not be negative: {self.distance_km}")

    @property
    def has_image(self) -> bool:
        return self.image_url != PLACEHOLDER_IMAGE

    def as_row(self) -> List[str]:
        """Return the place as a CSV row using primitive types."""

        return [
            self.id,
            self.name,
            self.address,
            self.cuisine_label,
            str(self.price_level),
            f"{self.rating:.1f}",
            f"{self.distance_km:.1f}",
            f"{self.location.latitude:.6f}",
            f"{self.location.longitude:.6f}",
            self.image_url,
        ]


@dataclass(frozen=True, slots=True)
class OpeningHours:
    is_open_now: Optional[bool] = None
    weekday_text: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class PlaceDetails:
    """Detail record for a single place, fetched on demand."""

    place_id: str
    name: str
    location: Coordinate
    address: str = ""
    phone: Optional[str] = None
    website: Optional[str] = None
    rating: float = 0.0
    photos: Tuple[PhotoDescriptor, ...] = ()
    opening_hours: Optional[OpeningHours] = None
    types: Tuple[str, ...] = ()
    price_level: int = DEFAULT_PRICE_LEVEL


@dataclass(frozen=True, slots=True)
class LocationSearchResult:
    """A geocoded search anchor the user can pick from."""

    place_id: str
    name: str
    formatted_address: str
    location: Coordinate
    types: Tuple[str, ...] = ()


def place_row_fields() -> List[str]:
    """Return the column names matching :meth:`PlaceEntity.as_row`."""

    return [
        "id",
        "name",
        "address",
        "cuisine",
        "price_level",
        "rating",
        "distance_km",
        "latitude",
        "longitude",
        "image_url",
    ]
