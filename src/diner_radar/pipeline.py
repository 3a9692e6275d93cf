"""Two-phase discovery: fast search results first, photo-enriched results later."""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Set, Tuple

from .models import Coordinate, PlaceEntity, UserLocation
from .normalize import best_photo_fields
from .places import PlacesAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DiscoveryBatch:
    """Phase-1 results plus the task that will resolve to phase-2 results.

    ``generation`` increases with every batch started by the same pipeline;
    a caller keeps only the results of the newest generation.
    """

    generation: int
    initial: Tuple[PlaceEntity, ...]
    enriched: "asyncio.Task[Tuple[PlaceEntity, ...]]"


async def enrich_place(adapter: PlacesAdapter, place: PlaceEntity) -> PlaceEntity:
    """Return ``place`` with a real photo, fetching details only when needed."""

    if place.has_image:
        return place

    try:
        details = await adapter.get_details(place.id)
    except Exception:
        logger.warning("Failed to enrich %s (%s) with photos", place.name, place.id, exc_info=True)
        return place

    if not details.photos:
        return place
    image_url, attributions = best_photo_fields(details.photos, adapter.settings.api_key)
    return replace(place, image_url=image_url, photo_attributions=attributions)


async def enrich_places(adapter: PlacesAdapter, places: Iterable[PlaceEntity]) -> List[PlaceEntity]:
    """Enrich every place concurrently; output order and length match the input."""

    places = list(places)
    if not places:
        return []
    enriched = await asyncio.gather(*(enrich_place(adapter, place) for place in places))
    upgraded = sum(1 for before, after in zip(places, enriched) if after is not before)
    logger.info("Enriched %d of %d places with photos", upgraded, len(places))
    return list(enriched)


class DiscoveryPipeline:
    """Run searches and schedule their photo enrichment in the background."""

    def __init__(self, adapter: PlacesAdapter) -> None:
        self.adapter = adapter
        self._generations = itertools.count(1)
        self._current = 0
        self._tasks: Set[asyncio.Task] = set()

    def is_current(self, batch: DiscoveryBatch) -> bool:
        """Whether ``batch`` belongs to the most recently started search."""

        return batch.generation == self._current

    async def discover_and_enrich(
        self,
        location: UserLocation | Coordinate,
        radius: Optional[int] = None,
        category: str = "restaurant",
    ) -> DiscoveryBatch:
        center = location.coordinate if isinstance(location, UserLocation) else location
        generation = self._next_generation()
        initial = await self.adapter.search_nearby(center, radius, category)
        return self._start_enrichment(generation, initial)

    async def search_and_enrich(
        self,
        query: str,
        center: Optional[Coordinate] = None,
        radius: Optional[int] = None,
    ) -> DiscoveryBatch:
        generation = self._next_generation()
        initial = await self.adapter.search_by_text(query, center, radius)
        return self._start_enrichment(generation, initial)

    def _next_generation(self) -> int:
        self._current = next(self._generations)
        return self._current

    def _start_enrichment(self, generation: int, initial: List[PlaceEntity]) -> DiscoveryBatch:
        snapshot = tuple(initial)

        async def phase_two() -> Tuple[PlaceEntity, ...]:
            return tuple(await enrich_places(self.adapter, snapshot))

        task = asyncio.create_task(phase_two(), name=f"diner-radar-enrich-{generation}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug("Started enrichment for generation %d (%d places)", generation, len(snapshot))
        return DiscoveryBatch(generation=generation, initial=snapshot, enriched=task)
