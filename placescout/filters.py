"""Place filter pipeline.

``filter_places`` applies, in order: distance (with annotation), free-text
search, interest tags, hidden gems. The predicates are independent, so the
resulting set does not depend on that order; it only decides when
``distance_miles_from_user`` is filled in. Input places are never mutated.

The viewport is a separate derived view over the filtered list, see
``apply_viewport``.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from . import config
from .geo import LatLng, ViewportBounds, distance_between
from .models import FilterState, Place


def search_text(place: Place) -> str:
    return f"{place.name} {place.address} {' '.join(place.interests)}".lower()


def matches_query(place: Place, query: str) -> bool:
    query = (query or "").strip().lower()
    if not query:
        return True
    return query in search_text(place)


def matches_interests(place: Place, selected: Iterable[str]) -> bool:
    wanted = {tag.lower() for tag in selected if tag}
    if not wanted:
        return True
    return any(tag.lower() in wanted for tag in place.interests)


def within_distance(place: Place, distance_miles: Optional[float]) -> bool:
    if distance_miles is None or place.distance_miles_from_user is None:
        return True
    return place.distance_miles_from_user <= distance_miles


def filter_places(
    places: Sequence[Place],
    filters: FilterState,
    user_location: Optional[LatLng],
) -> List[Place]:
    items = [p.copy() for p in places]

    if user_location is not None:
        for p in items:
            p.distance_miles_from_user = distance_between(user_location, p.location)
        if filters.distance_miles is not None:
            items = [p for p in items if within_distance(p, filters.distance_miles)]

    if (filters.search_query or "").strip():
        items = [p for p in items if matches_query(p, filters.search_query)]

    if filters.selected_interests:
        items = [p for p in items if matches_interests(p, filters.selected_interests)]

    if filters.show_hidden_gems:
        items = [p for p in items if p.hidden_gem]

    return items


def apply_viewport(
    places: Sequence[Place],
    bounds: Optional[ViewportBounds],
    buffer: float = config.VIEWPORT_BUFFER_DEG,
) -> List[Place]:
    if bounds is None:
        return list(places)
    return [p for p in places if bounds.contains(p.location, buffer=buffer)]
