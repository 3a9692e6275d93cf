"""Classify provider payloads and normalize them into the internal models.

Google serves two incompatible response shapes.  Places API (New) returns
camelCase objects (``displayName.text``, ``location.latitude``,
``priceLevel: "PRICE_LEVEL_MODERATE"``) with no status envelope, while the
legacy web service wraps snake_case results in ``{"status": ..., "results":
[...]}``.  Payloads are tagged once at the adapter boundary and each tag has
its own normalizer; the helpers below coalesce the first usable value across
field names and across plain values versus zero-argument accessors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from bs4 import BeautifulSoup

from .cuisine import classify_cuisine
from .geo import distance_from
from .models import (
    DEFAULT_PRICE_LEVEL,
    UNKNOWN_NAME,
    Coordinate,
    OpeningHours,
    PhotoAttribution,
    PhotoDescriptor,
    PlaceDetails,
    PlaceEntity,
)
from .photos import best_image_url, select_best_photo

logger = logging.getLogger(__name__)

STATUS_OK = "OK"
STATUS_ZERO_RESULTS = "ZERO_RESULTS"

PRICE_LEVELS = {
    "PRICE_LEVEL_FREE": 0,
    "PRICE_LEVEL_INEXPENSIVE": 1,
    "PRICE_LEVEL_MODERATE": 2,
    "PRICE_LEVEL_EXPENSIVE": 3,
    "PRICE_LEVEL_VERY_EXPENSIVE": 4,
}

_RESOURCE_PREFIX = "places/"


@dataclass(frozen=True, slots=True)
class NewShapeResponse:
    """A Places API (New) payload: a ``places`` list or a single place object."""

    places: Tuple[Mapping[str, Any], ...]


@dataclass(frozen=True, slots=True)
class LegacyShapeResponse:
    """A legacy web service payload with its status envelope."""

    status: str
    places: Tuple[Mapping[str, Any], ...]
    error_message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK

    @property
    def zero_results(self) -> bool:
        return self.status == STATUS_ZERO_RESULTS


ProviderResponse = Union[NewShapeResponse, LegacyShapeResponse]


def classify_payload(payload: Any) -> ProviderResponse:
    """Tag a decoded JSON payload with the response shape it belongs to."""

    if not isinstance(payload, Mapping):
        raise ValueError(f"Unexpected payload type {type(payload).__name__}")

    if "status" in payload:
        if "result" in payload:
            result = payload.get("result")
            places = (result,) if isinstance(result, Mapping) else ()
        else:
            places = tuple(_mappings(payload.get("results")))
        return LegacyShapeResponse(
            status=str(payload.get("status")),
            places=places,
            error_message=payload.get("error_message"),
        )

    error = payload.get("error")
    if isinstance(error, Mapping):
        raise ValueError(f"Provider error {error.get('status') or error.get('code')}: {error.get('message', '')}")

    if "places" in payload:
        return NewShapeResponse(places=tuple(_mappings(payload.get("places"))))
    if not payload:
        return NewShapeResponse(places=())
    return NewShapeResponse(places=(payload,))


def _mappings(value: Any) -> Iterable[Mapping[str, Any]]:
    if isinstance(value, (list, tuple)):
        for item in value:
            if isinstance(item, Mapping):
                yield item


# ---------------------------------------------------------------------------
# Field probing
# ---------------------------------------------------------------------------


def _probe(container: Any, *names: str) -> Any:
    """Return the first non-``None`` field, calling accessors when needed."""

    if container is None:
        return None
    for name in names:
        if isinstance(container, Mapping):
            value = container.get(name)
        else:
            value = getattr(container, name, None)
        if callable(value):
            value = value()
        if value is not None:
            return value
    return None


def _first_text(*candidates: Any) -> Optional[str]:
    for candidate in candidates:
        if callable(candidate):
            candidate = candidate()
        if isinstance(candidate, Mapping):
            candidate = candidate.get("text")
        if isinstance(candidate, str) and candidate.strip():
            return candidate.strip()
    return None


def _safe_float(value: object) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _safe_int(value: object) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _coerce_coordinate(place: Mapping[str, Any]) -> Optional[Coordinate]:
    containers = (
        _probe(place, "location"),
        _probe(_probe(place, "geometry"), "location"),
        _probe(place, "coordinates"),
    )
    for container in containers:
        latitude = _safe_float(_probe(container, "latitude", "lat"))
        longitude = _safe_float(_probe(container, "longitude", "lng", "lon"))
        if latitude is None or longitude is None:
            continue
        try:
            return Coordinate(latitude, longitude)
        except ValueError:
            logger.debug("Discarding out-of-range coordinate %s,%s", latitude, longitude)
    return None


def _coerce_price_level(value: object) -> int:
    if isinstance(value, str):
        level = PRICE_LEVELS.get(value.strip().upper(), _safe_int(value))
    else:
        level = _safe_int(value)
    if not level or not 1 <= level <= 4:
        return DEFAULT_PRICE_LEVEL
    return level


def _coerce_types(value: object) -> Tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value if item)
    return ()


def _place_id(place: Mapping[str, Any]) -> Optional[str]:
    identifier = _first_text(_probe(place, "place_id"), _probe(place, "id"))
    if identifier:
        return identifier
    resource = _first_text(_probe(place, "name"))
    if resource and resource.startswith(_RESOURCE_PREFIX):
        return resource[len(_RESOURCE_PREFIX):].split("/", 1)[0] or None
    return None


# ---------------------------------------------------------------------------
# Photos and attributions
# ---------------------------------------------------------------------------


def parse_html_attributions(fragments: Iterable[Any]) -> Tuple[PhotoAttribution, ...]:
    """Turn legacy ``html_attributions`` anchors into attribution records."""

    attributions: List[PhotoAttribution] = []
    for fragment in fragments or ():
        if not isinstance(fragment, str) or not fragment.strip():
            continue
        soup = BeautifulSoup(fragment, "html.parser")
        anchor = soup.find("a")
        if anchor is not None:
            attributions.append(
                PhotoAttribution(
                    display_name=anchor.get_text(" ", strip=True) or None,
                    uri=anchor.get("href") or None,
                )
            )
            continue
        text = soup.get_text(" ", strip=True)
        if text:
            attributions.append(PhotoAttribution(display_name=text))
    return tuple(attributions)


def _author_attributions(items: Any) -> Tuple[PhotoAttribution, ...]:
    return tuple(
        PhotoAttribution(
            display_name=_first_text(_probe(item, "displayName")),
            uri=_first_text(_probe(item, "uri")),
            photo_uri=_first_text(_probe(item, "photoUri")),
        )
        for item in _mappings(items)
    )


def _photo_descriptors(items: Any) -> Tuple[PhotoDescriptor, ...]:
    """Build descriptors from either photo shape, skipping reference-less entries."""

    photos: List[PhotoDescriptor] = []
    for item in _mappings(items):
        reference = _first_text(_probe(item, "name"), _probe(item, "photo_reference"))
        if not reference:
            continue
        if "html_attributions" in item:
            attributions = parse_html_attributions(item.get("html_attributions") or ())
        else:
            attributions = _author_attributions(item.get("authorAttributions"))
        photos.append(
            PhotoDescriptor(
                reference=reference,
                width=_safe_int(_probe(item, "widthPx", "width")) or 0,
                height=_safe_int(_probe(item, "heightPx", "height")) or 0,
                attributions=attributions,
            )
        )
    return tuple(photos)


def best_photo_fields(
    photos: Sequence[PhotoDescriptor],
    api_key: Optional[str],
) -> Tuple[str, Tuple[PhotoAttribution, ...]]:
    """Return the image URL and attributions of the best photo."""

    best = select_best_photo(photos)
    return best_image_url(photos, api_key), (best.attributions if best else ())


def _opening_hours(block: Any) -> Optional[OpeningHours]:
    if not isinstance(block, Mapping):
        return None
    open_now = _probe(block, "openNow", "open_now")
    weekday_text = _probe(block, "weekdayDescriptions", "weekday_text") or ()
    return OpeningHours(
        is_open_now=bool(open_now) if open_now is not None else None,
        weekday_text=tuple(str(line) for line in weekday_text),
    )


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


def _entity(
    place: Mapping[str, Any],
    *,
    name: Optional[str],
    address: Optional[str],
    price: object,
    reference: Optional[Coordinate],
    api_key: Optional[str],
) -> Optional[PlaceEntity]:
    place_id = _place_id(place)
    location = _coerce_coordinate(place)
    if not place_id or location is None:
        logger.debug("Skipping place without id or coordinates: %s", place_id or place)
        return None

    image_url, attributions = best_photo_fields(_photo_descriptors(_probe(place, "photos")), api_key)
    types = _coerce_types(_probe(place, "types"))
    return PlaceEntity(
        id=place_id,
        name=name or UNKNOWN_NAME,
        address=address or "",
        location=location,
        cuisine_label=classify_cuisine(types),
        price_level=_coerce_price_level(price),
        distance_km=distance_from(reference, location),
        image_url=image_url,
        photo_attributions=attributions,
        rating=_safe_float(_probe(place, "rating")) or 0.0,
        types=types,
    )


def _new_display_name(place: Mapping[str, Any]) -> Optional[str]:
    resource = _first_text(_probe(place, "name"))
    if resource and resource.startswith(_RESOURCE_PREFIX):
        resource = None
    return _first_text(_probe(place, "displayName"), resource, _probe(place, "title"))


def normalize_new_place(
    place: Mapping[str, Any],
    reference: Optional[Coordinate],
    api_key: Optional[str],
) -> Optional[PlaceEntity]:
    return _entity(
        place,
        name=_new_display_name(place),
        address=_first_text(
            _probe(place, "formattedAddress"),
            _probe(place, "shortFormattedAddress"),
            _probe(place, "vicinity"),
        ),
        price=_probe(place, "priceLevel", "price_level"),
        reference=reference,
        api_key=api_key,
    )


def normalize_legacy_place(
    place: Mapping[str, Any],
    reference: Optional[Coordinate],
    api_key: Optional[str],
) -> Optional[PlaceEntity]:
    return _entity(
        place,
        name=_first_text(_probe(place, "name"), _probe(place, "title")),
        address=_first_text(_probe(place, "vicinity"), _probe(place, "formatted_address")),
        price=_probe(place, "price_level", "priceLevel"),
        reference=reference,
        api_key=api_key,
    )


def normalize_places(
    response: ProviderResponse,
    reference: Optional[Coordinate] = None,
    api_key: Optional[str] = None,
) -> List[PlaceEntity]:
    """Normalize every place of a classified response, preserving order."""

    if isinstance(response, NewShapeResponse):
        normalizer = normalize_new_place
    else:
        normalizer = normalize_legacy_place
    entities = (normalizer(place, reference, api_key) for place in response.places)
    return [entity for entity in entities if entity is not None]


def _details(
    place: Mapping[str, Any],
    requested_id: str,
    *,
    name: Optional[str],
    address: Optional[str],
    phone: Optional[str],
    website: Optional[str],
    hours: Any,
    price: object,
) -> PlaceDetails:
    return PlaceDetails(
        place_id=_place_id(place) or requested_id,
        name=name or UNKNOWN_NAME,
        address=address or "",
        phone=phone,
        website=website,
        rating=_safe_float(_probe(place, "rating")) or 0.0,
        photos=_photo_descriptors(_probe(place, "photos")),
        opening_hours=_opening_hours(hours),
        location=_coerce_coordinate(place) or Coordinate(0.0, 0.0),
        types=_coerce_types(_probe(place, "types")),
        price_level=_coerce_price_level(price),
    )


def normalize_details(response: ProviderResponse, requested_id: str) -> PlaceDetails:
    """Normalize a single-place details response."""

    if not response.places:
        raise ValueError(f"No details returned for {requested_id}")
    place = response.places[0]

    if isinstance(response, NewShapeResponse):
        return _details(
            place,
            requested_id,
            name=_new_display_name(place),
            address=_first_text(_probe(place, "formattedAddress"), _probe(place, "shortFormattedAddress")),
            phone=_first_text(_probe(place, "nationalPhoneNumber"), _probe(place, "internationalPhoneNumber")),
            website=_first_text(_probe(place, "websiteUri"), _probe(place, "websiteURI")),
            hours=_probe(place, "currentOpeningHours", "regularOpeningHours"),
            price=_probe(place, "priceLevel"),
        )
    return _details(
        place,
        requested_id,
        name=_first_text(_probe(place, "name")),
        address=_first_text(_probe(place, "formatted_address"), _probe(place, "vicinity")),
        phone=_first_text(_probe(place, "formatted_phone_number"), _probe(place, "international_phone_number")),
        website=_first_text(_probe(place, "website")),
        hours=_probe(place, "opening_hours"),
        price=_probe(place, "price_level"),
    )

