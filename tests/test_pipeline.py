import asyncio
import gc
from dataclasses import replace

import pytest
from conftest import json_response

from diner_radar.models import Coordinate, PlaceEntity, UserLocation
from diner_radar.photos import build_photo_url
from diner_radar.pipeline import DiscoveryPipeline, enrich_places
from diner_radar.places import PlacesAdapter
from diner_radar.settings import PLACEHOLDER_IMAGE, ProviderSettings

CENTER = Coordinate(43.6532, -79.3832)


def _place(place_id, name, photos=None):
    place = {
        "id": place_id,
        "displayName": {"text": name},
        "location": {"latitude": 43.65, "longitude": -79.38},
        "types": ["restaurant"],
    }
    if photos:
        place["photos"] = photos
    return place


WIDE = {
    "name": "places/B/photos/wide",
    "widthPx": 1600,
    "heightPx": 1000,
    "authorAttributions": [{"displayName": "Ana", "uri": "https://maps.google.com/contrib/1"}],
}


class Provider:
    def __init__(self):
        self.paths = []

    def __call__(self, request):
        path = request.url.path
        self.paths.append(path)
        if path == "/v1/places:searchNearby":
            return json_response(
                {
                    "places": [
                        _place("A", "Has Photo", photos=[{"name": "places/A/photos/1", "widthPx": 800, "heightPx": 600}]),
                        _place("B", "Needs Photo"),
                        _place("C", "Broken Details"),
                        _place("D", "No Photos Anywhere"),
                    ]
                }
            )
        if path == "/v1/places/B":
            return json_response({**_place("B", "Needs Photo"), "photos": [WIDE]})
        if path == "/v1/places/D":
            return json_response(_place("D", "No Photos Anywhere"))
        if path == "/v1/places/C" or path == "/maps/api/place/details/json":
            return json_response({}, status_code=500)
        raise AssertionError(f"unexpected request {request.url}")


def test_discover_returns_initial_then_enriched(make_session):
    provider = Provider()
    pipeline = DiscoveryPipeline(PlacesAdapter(make_session(provider)))

    async def scenario():
        batch = await pipeline.discover_and_enrich(UserLocation(CENTER, "Toronto"), 2000)
        assert not batch.enriched.done()
        return batch, await batch.enriched

    batch, enriched = asyncio.run(scenario())

    assert [place.id for place in batch.initial] == ["A", "B", "C", "D"]
    assert [place.has_image for place in batch.initial] == [True, False, False, False]
    assert [place.id for place in enriched] == ["A", "B", "C", "D"]

    a, b, c, d = enriched
    assert a is batch.initial[0]
    assert b.image_url == build_photo_url("places/B/photos/wide", 800, 600, api_key="test-key")
    assert b.photo_attributions[0].display_name == "Ana"
    assert b == replace(batch.initial[1], image_url=b.image_url, photo_attributions=b.photo_attributions)
    assert c == batch.initial[2]
    assert d.image_url == PLACEHOLDER_IMAGE
    assert "/v1/places/A" not in provider.paths


def test_enrichment_failure_is_logged_not_raised(make_session, caplog):
    provider = Provider()
    pipeline = DiscoveryPipeline(PlacesAdapter(make_session(provider)))

    async def scenario():
        batch = await pipeline.discover_and_enrich(CENTER)
        return await batch.enriched

    with caplog.at_level("WARNING"):
        enriched = asyncio.run(scenario())

    assert len(enriched) == 4
    assert "Failed to enrich Broken Details" in caplog.text


def test_enrichment_is_idempotent(make_session):
    provider = Provider()
    adapter = PlacesAdapter(make_session(provider))
    pipeline = DiscoveryPipeline(adapter)

    async def scenario():
        batch = await pipeline.discover_and_enrich(CENTER)
        first = await batch.enriched
        second = tuple(await enrich_places(adapter, batch.initial))
        return first, second

    first, second = asyncio.run(scenario())
    assert first == second


def test_enriching_already_enriched_places_fetches_nothing(make_session):
    provider = Provider()
    adapter = PlacesAdapter(make_session(provider))
    pipeline = DiscoveryPipeline(adapter)

    async def scenario():
        batch = await pipeline.discover_and_enrich(CENTER)
        enriched = await batch.enriched
        provider.paths.clear()
        again = await enrich_places(adapter, [place for place in enriched if place.has_image])
        return again

    again = asyncio.run(scenario())
    assert [place.id for place in again] == ["A", "B"]
    assert provider.paths == []


def test_newer_batch_supersedes_older(make_session):
    pipeline = DiscoveryPipeline(PlacesAdapter(make_session(Provider())))

    async def scenario():
        old = await pipeline.discover_and_enrich(CENTER)
        new = await pipeline.discover_and_enrich(CENTER, 500)
        await asyncio.gather(old.enriched, new.enriched)
        return old, new

    old, new = asyncio.run(scenario())
    assert new.generation == old.generation + 1
    assert not pipeline.is_current(old)
    assert pipeline.is_current(new)


def test_search_and_enrich_with_no_results(make_session):
    def handler(request):
        return json_response({})

    pipeline = DiscoveryPipeline(PlacesAdapter(make_session(handler)))

    async def scenario():
        batch = await pipeline.search_and_enrich("nothing matches", CENTER)
        return batch, await batch.enriched

    batch, enriched = asyncio.run(scenario())
    assert batch.initial == ()
    assert enriched == ()


def test_enrich_empty_list():
    assert asyncio.run(enrich_places(None, [])) == []


class SlowDetailsAdapter:
    """Nearby search answers at once; details wait until released."""

    def __init__(self):
        self.settings = ProviderSettings(api_key="test-key")
        self.release = asyncio.Event()
        self.started = asyncio.Event()

    async def search_nearby(self, center, radius_meters=None, category="restaurant"):
        return [PlaceEntity(id="slow", name="Slow Details", location=center)]

    async def get_details(self, place_id):
        self.started.set()
        await self.release.wait()
        raise RuntimeError("details unavailable")


def test_dropped_batch_keeps_enriching():
    async def scenario():
        adapter = SlowDetailsAdapter()
        pipeline = DiscoveryPipeline(adapter)

        batch = await pipeline.discover_and_enrich(CENTER)
        generation = batch.generation
        del batch
        gc.collect()
        await adapter.started.wait()
        gc.collect()

        pending = [task for task in asyncio.all_tasks() if task.get_name() == f"diner-radar-enrich-{generation}"]
        assert len(pending) == 1
        assert not pending[0].done()

        adapter.release.set()
        enriched = await pending[0]
        assert [place.id for place in enriched] == ["slow"]
        assert pipeline._tasks == set()

    asyncio.run(scenario())


def test_discovery_batch_is_a_frozen_slots_value(make_session):
    pipeline = DiscoveryPipeline(PlacesAdapter(make_session(Provider())))

    async def scenario():
        batch = await pipeline.discover_and_enrich(CENTER)
        await batch.enriched
        return batch

    batch = asyncio.run(scenario())
    assert not hasattr(batch, "__dict__")
    with pytest.raises(AttributeError):
        batch.generation = 99
