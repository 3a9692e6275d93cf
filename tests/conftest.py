import json

import httpx
import pytest

from diner_radar.session import ProviderHandle, SessionManager
from diner_radar.settings import ProviderSettings

API_KEY = "test-key"


class FakeGeocoder:
    """Stands in for geopy's GoogleV3 in async mode."""

    def __init__(self, geocode_result=None, reverse_result=None, error=None):
        self.geocode_result = geocode_result
        self.reverse_result = reverse_result
        self.error = error
        self.calls = []

    async def geocode(self, query, exactly_one=True, language=None):
        self.calls.append(("geocode", query))
        if self.error:
            raise self.error
        return self.geocode_result

    async def reverse(self, query, exactly_one=True, language=None):
        self.calls.append(("reverse", query))
        if self.error:
            raise self.error
        return self.reverse_result


class FakeLocation:
    def __init__(self, address, latitude, longitude, raw):
        self.address = address
        self.latitude = latitude
        self.longitude = longitude
        self.raw = raw


def json_response(payload, status_code=200):
    return httpx.Response(status_code, content=json.dumps(payload), headers={"Content-Type": "application/json"})


def _unexpected(request):
    raise AssertionError(f"unexpected request {request.method} {request.url}")


@pytest.fixture
def make_session():
    def factory(handler=None, *, geocoder=None, use_new_api=True, api_key=API_KEY):
        settings = ProviderSettings(api_key=api_key, use_new_api=use_new_api)

        async def build(settings, stack):
            http = httpx.AsyncClient(transport=httpx.MockTransport(handler or _unexpected))
            stack.push_async_callback(http.aclose)
            return ProviderHandle(
                api_key=settings.api_key or "",
                http=http,
                geocoder=geocoder if geocoder is not None else FakeGeocoder(),
                new_api_enabled=settings.use_new_api,
            )

        return SessionManager(settings, handle_factory=build)

    return factory


NEW_PLACE = {
    "id": "ChIJnew1",
    "displayName": {"text": "Sukiyabashi", "languageCode": "en"},
    "formattedAddress": "1 King St W, Toronto",
    "location": {"latitude": 43.6540, "longitude": -79.3800},
    "rating": 4.6,
    "priceLevel": "PRICE_LEVEL_EXPENSIVE",
    "types": ["japanese_restaurant", "restaurant", "food"],
    "photos": [
        {
            "name": "places/ChIJnew1/photos/portrait",
            "widthPx": 600,
            "heightPx": 900,
            "authorAttributions": [{"displayName": "Sam", "uri": "https://maps.google.com/contrib/2"}],
        },
        {
            "name": "places/ChIJnew1/photos/wide",
            "widthPx": 1600,
            "heightPx": 1000,
            "authorAttributions": [
                {
                    "displayName": "Ana",
                    "uri": "https://maps.google.com/contrib/1",
                    "photoUri": "https://lh3.googleusercontent.com/a/ana",
                }
            ],
        },
    ],
}

LEGACY_PLACE = {
    "place_id": "ChIJold1",
    "name": "Pho Hung",
    "vicinity": "350 Spadina Ave, Toronto",
    "geometry": {"location": {"lat": 43.6555, "lng": -79.3985}},
    "rating": 4.2,
    "price_level": 1,
    "types": ["vietnamese_restaurant", "restaurant", "food"],
    "photos": [
        {
            "photo_reference": "AWU5eFh",
            "width": 1200,
            "height": 800,
            "html_attributions": ['<a href="https://maps.google.com/maps/contrib/123">Jo Lee</a>'],
        }
    ],
}


@pytest.fixture
def new_place():
    return json.loads(json.dumps(NEW_PLACE))


@pytest.fixture
def legacy_place():
    return json.loads(json.dumps(LEGACY_PLACE))
