"""Map provider category tags onto the app's cuisine labels."""

from __future__ import annotations

from typing import Dict, Iterable

DEFAULT_CUISINE = "Restaurant"

CUISINE_LABELS: Dict[str, str] = {
    "chinese_restaurant": "Chinese",
    "japanese_restaurant": "Japanese",
    "thai_restaurant": "Thai",
    "italian_restaurant": "Italian",
    "mexican_restaurant": "Mexican",
    "indian_restaurant": "Indian",
    "french_restaurant": "French",
    "american_restaurant": "American",
    "steak_house": "Steakhouse",
    "steakhouse": "Steakhouse",
    "restaurant": "Restaurant",
    "food": "Food",
    "meal_takeaway": "Takeaway",
    "meal_delivery": "Delivery",
    "cafe": "Cafe",
    "bar": "Bar",
    "bakery": "Bakery",
}


def classify_cuisine(tags: Iterable[str]) -> str:
    """Return the label of the first known tag, in the provider's tag order."""

    for tag in tags:
        label = CUISINE_LABELS.get(tag)
        if label:
            return label
    return DEFAULT_CUISINE


def cuisine_vocabulary() -> list[str]:
    """Return the closed set of labels :func:`classify_cuisine` can produce."""

    seen: list[str] = []
    for label in CUISINE_LABELS.values():
        if label not in seen:
            seen.append(label)
    return seen
