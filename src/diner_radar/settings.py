"""Configuration objects for the Google Maps provider."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional

PLACES_NEW_BASE_URL = "https://places.googleapis.com/v1"
PLACES_LEGACY_BASE_URL = "https://maps.googleapis.com/maps/api/place"
STATIC_MAP_URL = "https://maps.googleapis.com/maps/api/staticmap"
DIRECTIONS_BASE_URL = "https://www.google.com/maps/dir/"
PLACEHOLDER_IMAGE = "/placeholder.svg"

API_KEY_ENV = "GOOGLE_MAPS_API_KEY"
USE_NEW_API_ENV = "DINER_RADAR_USE_NEW_API"

# Places API (New) only returns the fields named in the mask.
SEARCH_FIELD_MASK = (
    "places.id",
    "places.displayName",
    "places.formattedAddress",
    "places.shortFormattedAddress",
    "places.location",
    "places.rating",
    "places.priceLevel",
    "places.types",
    "places.photos",
)
DETAILS_FIELD_MASK = (
    "id",
    "displayName",
    "formattedAddress",
    "nationalPhoneNumber",
    "websiteUri",
    "rating",
    "photos",
    "location",
    "types",
    "priceLevel",
    "currentOpeningHours",
    "regularOpeningHours",
)
LEGACY_DETAILS_FIELDS = (
    "place_id",
    "name",
    "formatted_address",
    "formatted_phone_number",
    "website",
    "rating",
    "photos",
    "opening_hours",
    "geometry",
    "types",
    "price_level",
)


def _as_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(slots=True)
class ProviderSettings:
    """Settings shared by every provider call."""

    api_key: Optional[str] = None
    use_new_api: bool = True
    places_new_base_url: str = PLACES_NEW_BASE_URL
    places_legacy_base_url: str = PLACES_LEGACY_BASE_URL
    geocoding_domain: str = "maps.googleapis.com"
    request_timeout: float = 10.0
    language: Optional[str] = None
    max_result_count: int = 20
    default_radius_m: int = 2000
    default_text_radius_m: int = 50000
    extra_headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "ProviderSettings":
        """Build settings from the process environment, then apply ``overrides``."""

        env = os.environ if environ is None else environ
        values = {
            "api_key": env.get(API_KEY_ENV) or None,
            "use_new_api": _as_bool(env.get(USE_NEW_API_ENV), True),
        }
        values.update(overrides)
        return cls(**values)

    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def new_api_headers(self, field_mask: Iterable[str]) -> Dict[str, str]:
        headers = {
            "X-Goog-Api-Key": self.api_key or "",
            "X-Goog-FieldMask": ",".join(field_mask),
        }
        headers.update(self.extra_headers)
        return headers

    def legacy_params(self, **params: object) -> Dict[str, str]:
        """Return legacy query parameters with the key and language applied."""

        query = {key: str(value) for key, value in params.items() if value is not None}
        query["key"] = self.api_key or ""
        if self.language:
            query["language"] = self.language
        return query
