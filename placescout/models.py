"""Place entities and conversion from catalog/media records."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional

from . import config
from .geo import LatLng, ViewportBounds


@dataclass
class Place:
    id: str
    name: str
    address: str
    interests: List[str]
    hidden_gem: bool
    location: LatLng
    images: List[str] = field(default_factory=list)
    distance_miles_from_user: Optional[float] = None

    def copy(self, **changes) -> "Place":
        changes.setdefault("interests", list(self.interests))
        changes.setdefault("images", list(self.images))
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "interests": list(self.interests),
            "hidden_gem": self.hidden_gem,
            "location": {"lat": self.location.lat, "lng": self.location.lng},
            "images": list(self.images),
            "distance_miles_from_user": self.distance_miles_from_user,
        }


@dataclass(frozen=True)
class PlaceDetails:
    id: str
    name: str
    address: str
    category: str
    verified: bool
    location: LatLng


@dataclass(frozen=True)
class ViewportSummary:
    id: str
    name: str
    category: str
    location: LatLng


@dataclass(frozen=True)
class InterestTag:
    tag: str
    description: str = ""


@dataclass
class FilterState:
    search_query: str = ""
    distance_miles: Optional[float] = config.DEFAULT_DISTANCE_MILES
    selected_interests: List[str] = field(default_factory=list)
    show_hidden_gems: bool = False
    viewport_bounds: Optional[ViewportBounds] = None


def category_interests(category: Optional[str]) -> List[str]:
    # Categories map one-to-one onto interest tags; the tag vocabulary is owned
    # by the tag catalog, not by this client.
    category = (category or "").strip()
    return [category] if category else []


def merge_images(existing: Iterable[str], fetched: Iterable[str]) -> List[str]:
    """Existing images (the preview) stay first; duplicates are dropped."""
    merged: List[str] = []
    seen = set()
    for url in list(existing) + list(fetched):
        if not url or url in seen:
            continue
        seen.add(url)
        merged.append(url)
    return merged


def place_from_details(details: PlaceDetails, images: Iterable[str] = ()) -> Place:
    return Place(
        id=details.id,
        name=details.name,
        address=details.address,
        interests=category_interests(details.category),
        hidden_gem=not details.verified,
        location=details.location,
        images=merge_images([], images),
    )


def place_from_summary(summary: ViewportSummary, preview_image: Optional[str] = None) -> Place:
    # Verification is unknown until the detail record arrives.
    return Place(
        id=summary.id,
        name=summary.name,
        address="",
        interests=category_interests(summary.category),
        hidden_gem=False,
        location=summary.location,
        images=[preview_image] if preview_image else [],
    )


def enrich_place(place: Place, details: PlaceDetails) -> None:
    """Fill in detail-only fields; images are left alone."""
    place.name = details.name or place.name
    place.address = details.address or place.address
    place.hidden_gem = not details.verified
    if details.category:
        place.interests = category_interests(details.category)


def needs_enrichment(place: Place) -> bool:
    return not place.address
