"""Best-photo selection and photo URL construction."""

from __future__ import annotations

from typing import Dict, Optional, Sequence
from urllib.parse import urlencode

from .models import PhotoDescriptor
from .settings import PLACEHOLDER_IMAGE, PLACES_LEGACY_BASE_URL, PLACES_NEW_BASE_URL


MIN_LANDSCAPE_RATIO = 1.2
MAX_LANDSCAPE_RATIO = 2.0
NEW_PHOTO_PREFIX = "places/"

IMAGE_SIZES: Dict[str, tuple[int, int]] = {
    "thumbnail": (200, 150),
    "medium": (400, 300),
    "large": (800, 600),
    "hero": (1200, 800),
}


def select_best_photo(candidates: Sequence[PhotoDescriptor]) -> Optional[PhotoDescriptor]:
    """Pick the photo best suited for a card or hero image.

    The first candidate is the starting point.  A later candidate replaces it
    only when it is landscape oriented (aspect ratio within 1.2 and 2.0) and
    strictly larger in area; candidates with a zero dimension never win.  When
    nothing qualifies the first candidate is kept, even if it is portrait.
    """

    if not candidates:
        return None

    best = candidates[0]
    for photo in candidates[1:]:
        if photo.width <= 0 or photo.height <= 0:
            continue
        ratio = photo.width / photo.height
        if MIN_LANDSCAPE_RATIO <= ratio <= MAX_LANDSCAPE_RATIO and photo.area > best.area:
            best = photo
    return best


def build_photo_url(
    reference: str,
    max_width: int = 800,
    max_height: int = 600,
    *,
    api_key: Optional[str],
) -> str:
    """Build the media URL for either photo reference format.

    Places API (New) returns resource names such as
    ``places/<place id>/photos/<token>``; the legacy service hands out bare
    opaque tokens.  Without an API key the placeholder is returned.
    """

    if not api_key or not reference:
        return PLACEHOLDER_IMAGE

    if reference.startswith(NEW_PHOTO_PREFIX):
        query = urlencode({"maxWidthPx": max_width, "maxHeightPx": max_height, "key": api_key})
        return f"{PLACES_NEW_BASE_URL}/{reference}/media?{query}"

    query = urlencode(
        {
            "photoreference": reference,
            "maxwidth": max_width,
            "maxheight": max_height,
            "key": api_key,
        }
    )
    return f"{PLACES_LEGACY_BASE_URL}/photo?{query}"


def best_image_url(photos: Sequence[PhotoDescriptor], api_key: Optional[str]) -> str:
    best = select_best_photo(photos)
    if best is None or not best.reference:
        return PLACEHOLDER_IMAGE
    return build_photo_url(best.reference, *IMAGE_SIZES["large"], api_key=api_key)


def image_url_for_size(photos: Sequence[PhotoDescriptor], size: str, api_key: Optional[str]) -> str:
    """Return the URL of the first photo at one of the named sizes."""

    try:
        width, height = IMAGE_SIZES[size]
    except KeyError:
        raise ValueError(f"unknown image size {size!r}; expected one of {sorted(IMAGE_SIZES)}") from None
    if not photos or not photos[0].reference:
        return PLACEHOLDER_IMAGE
    return build_photo_url(photos[0].reference, width, height, api_key=api_key)


def image_variants(photos: Sequence[PhotoDescriptor], api_key: Optional[str]) -> Dict[str, str]:
    """Return URLs for every named size, all placeholders when nothing is usable."""

    return {size: image_url_for_size(photos, size, api_key) for size in IMAGE_SIZES}
