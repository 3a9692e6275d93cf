"""Places queries with Places API (New) first and the legacy service as fallback."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from .errors import QueryFailed
from .models import Coordinate, PlaceDetails, PlaceEntity
from .normalize import (
    LegacyShapeResponse,
    NewShapeResponse,
    classify_payload,
    normalize_details,
    normalize_places,
)
from .session import ProviderHandle, SessionManager
from .settings import (
    DETAILS_FIELD_MASK,
    LEGACY_DETAILS_FIELDS,
    SEARCH_FIELD_MASK,
    ProviderSettings,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_NEW_API_RADIUS_M = 50000.0
RESTAURANT_TYPE = "restaurant"


class PlacesAdapter:
    """Issue nearby, text and details queries against either response shape.

    Every operation first asks the session manager for the provider handle,
    then tries the new entry point.  When that entry point is disabled or the
    call fails for any reason, a warning is logged and the same request is sent
    to the legacy service.  A legacy failure raises :class:`QueryFailed`;
    there is no further retry.
    """

    def __init__(self, session: SessionManager, settings: Optional[ProviderSettings] = None) -> None:
        self.session = session
        self.settings = settings or session.settings

    async def search_nearby(
        self,
        center: Coordinate,
        radius_meters: Optional[int] = None,
        category: str = RESTAURANT_TYPE,
    ) -> List[PlaceEntity]:
        """Return places of ``category`` within ``radius_meters`` of ``center``."""

        radius = radius_meters or self.settings.default_radius_m
        handle = await self.session.ensure_ready()

        async def new_shape() -> List[PlaceEntity]:
            body = {
                "includedTypes": [category],
                "maxResultCount": self.settings.max_result_count,
                "locationRestriction": {"circle": _circle(center, radius)},
            }
            response = await self._post_new(handle, "places:searchNearby", body, SEARCH_FIELD_MASK)
            return normalize_places(response, center, handle.api_key)

        async def legacy_shape() -> List[PlaceEntity]:
            response = await self._get_legacy(
                handle,
                "nearbysearch/json",
                location=center.as_query(),
                radius=radius,
                type=category,
            )
            return normalize_places(response, center, handle.api_key)

        places = await self._with_fallback("nearby search", handle, new_shape, legacy_shape)
        logger.info("Nearby search at %s (r=%sm, %s) returned %d places", center.as_query(), radius, category, len(places))
        return places

    async def search_by_text(
        self,
        query: str,
        center: Optional[Coordinate] = None,
        radius_meters: Optional[int] = None,
    ) -> List[PlaceEntity]:
        """Return restaurants matching ``query``, biased towards ``center`` when given.

        Distances are only computed when ``center`` is supplied; otherwise
        every entity reports 0.  A blank query returns an empty list without
        contacting the provider.
        """

        if not query or not query.strip():
            return []
        query = query.strip()
        handle = await self.session.ensure_ready()

        async def new_shape() -> List[PlaceEntity]:
            body: Dict[str, Any] = {
                "textQuery": query,
                "includedType": RESTAURANT_TYPE,
                "pageSize": self.settings.max_result_count,
            }
            if center is not None:
                radius = radius_meters or self.settings.default_text_radius_m
                body["locationBias"] = {"circle": _circle(center, radius)}
            response = await self._post_new(handle, "places:searchText", body, SEARCH_FIELD_MASK)
            return normalize_places(response, center, handle.api_key)

        async def legacy_shape() -> List[PlaceEntity]:
            params: Dict[str, Any] = {"query": query}
            if center is not None:
                params["location"] = center.as_query()
                params["radius"] = radius_meters
            response = await self._get_legacy(handle, "textsearch/json", **params)
            return normalize_places(response, center, handle.api_key)

        places = await self._with_fallback("text search", handle, new_shape, legacy_shape)
        logger.info("Text search %r returned %d places", query, len(places))
        return places

    async def get_details(self, place_id: str) -> PlaceDetails:
        if not place_id:
            raise QueryFailed("place id is required")
        handle = await self.session.ensure_ready()

        async def new_shape() -> PlaceDetails:
            url = f"{self.settings.places_new_base_url}/places/{place_id}"
            logger.debug("GET %s", url)
            params = {"languageCode": self.settings.language} if self.settings.language else None
            response = await handle.http.get(
                url,
                params=params,
                headers=self.settings.new_api_headers(DETAILS_FIELD_MASK),
            )
            response.raise_for_status()
            return normalize_details(_expect_new(response.json()), place_id)

        async def legacy_shape() -> PlaceDetails:
            response = await self._get_legacy(
                handle,
                "details/json",
                place_id=place_id,
                fields=",".join(LEGACY_DETAILS_FIELDS),
            )
            if not response.places:
                raise QueryFailed(f"Place Details API error: {response.status}")
            return normalize_details(response, place_id)

        return await self._with_fallback("place details", handle, new_shape, legacy_shape)

    async def _with_fallback(
        self,
        operation: str,
        handle: ProviderHandle,
        new_shape: Callable[[], Awaitable[T]],
        legacy_shape: Callable[[], Awaitable[T]],
    ) -> T:
        if handle.new_api_enabled:
            try:
                return await new_shape()
            except Exception as exc:
                logger.warning("Places API (New) %s failed, falling back to legacy service: %s", operation, exc)
                logger.debug("New API failure detail", exc_info=True)
        else:
            logger.warning("Places API (New) unavailable, using legacy service for %s", operation)

        try:
            return await legacy_shape()
        except QueryFailed:
            raise
        except Exception as exc:
            raise QueryFailed(f"{operation} failed: {exc}") from exc

    async def _post_new(
        self,
        handle: ProviderHandle,
        path: str,
        body: Dict[str, Any],
        field_mask: tuple[str, ...],
    ) -> NewShapeResponse:
        url = f"{self.settings.places_new_base_url}/{path}"
        if self.settings.language:
            body = {**body, "languageCode": self.settings.language}
        logger.debug("POST %s", url)
        response = await handle.http.post(url, json=body, headers=self.settings.new_api_headers(field_mask))
        response.raise_for_status()
        return _expect_new(response.json())

    async def _get_legacy(self, handle: ProviderHandle, path: str, **params: Any) -> LegacyShapeResponse:
        url = f"{self.settings.places_legacy_base_url}/{path}"
        logger.debug("GET %s", url)
        response = await handle.http.get(url, params=self.settings.legacy_params(**params))
        response.raise_for_status()

        classified = classify_payload(response.json())
        if not isinstance(classified, LegacyShapeResponse):
            raise ValueError("Legacy endpoint returned a payload without a status envelope")
        if classified.zero_results:
            return LegacyShapeResponse(status=classified.status, places=())
        if not classified.ok:
            reason = f"Places API error: {classified.status}"
            if classified.error_message:
                reason = f"{reason} ({classified.error_message})"
            raise QueryFailed(reason)
        return classified


def _circle(center: Coordinate, radius: float) -> Dict[str, Any]:
    return {
        "center": {"latitude": center.latitude, "longitude": center.longitude},
        "radius": min(float(radius), MAX_NEW_API_RADIUS_M),
    }


def _expect_new(payload: Any) -> NewShapeResponse:
    classified = classify_payload(payload)
    if not isinstance(classified, NewShapeResponse):
        raise ValueError(f"Expected a Places API (New) payload, got status {classified.status}")
    return classified
