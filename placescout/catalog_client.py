"""Place catalog client with response normalization."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from . import config
from .geo import LatLng, ViewportBounds
from .http import HttpClient, ServiceError
from .models import PlaceDetails, ViewportSummary


class CatalogClient:
    def __init__(self, http_client: HttpClient) -> None:
        self.http = http_client

    def get_places_in_area(self, center: LatLng, radius_km: float) -> List[str]:
        body = {"centerLat": center.lat, "centerLng": center.lng, "radius": radius_km}
        # A failed area query ends the cycle; it is not retried here.
        response = self.http.post_json(
            config.PLACES_IN_AREA_PATH, body, kind="catalog", retry_max=1
        )
        return parse_place_ids(response)

    def get_place_details(self, place_id: str) -> PlaceDetails:
        response = self.http.post_json(config.PLACE_DETAILS_PATH, {"placeId": place_id}, kind="catalog")
        details = parse_place_details(response)
        if details is None:
            raise ServiceError(f"No details returned for place {place_id}")
        return details

    def get_places_in_viewport(self, bounds: ViewportBounds) -> List[ViewportSummary]:
        response = self.http.post_json(config.PLACES_IN_VIEWPORT_PATH, bounds.to_request(), kind="catalog")
        return parse_viewport_response(response)


# Adapters for the catalog's query-style responses. Query endpoints may wrap a
# single object in a list, so everything goes through _first/_as_list.

def _first(response: Any) -> Any:
    if isinstance(response, list):
        return response[0] if response else None
    return response


def _as_list(response: Any) -> List[Any]:
    if response is None:
        return []
    if isinstance(response, list):
        return response
    return [response]


def _check_error(payload: Any) -> None:
    if isinstance(payload, dict) and payload.get("error"):
        raise ServiceError(str(payload["error"]))


def parse_location(raw: Any) -> Optional[LatLng]:
    if not isinstance(raw, dict):
        return None
    coords = raw.get("coordinates")
    if isinstance(coords, (list, tuple)) and len(coords) >= 2:
        # GeoJSON point: [lng, lat]
        lng, lat = coords[0], coords[1]
    else:
        lat = raw.get("lat", raw.get("latitude"))
        lng = raw.get("lng", raw.get("lon", raw.get("longitude")))
    if lat is None or lng is None:
        return None
    try:
        return LatLng(float(lat), float(lng))
    except (TypeError, ValueError):
        return None


def parse_place_ids(response: Any) -> List[str]:
    ids: List[str] = []
    for item in _as_list(response):
        _check_error(item)
        if isinstance(item, str):
            ids.append(item)
            continue
        if not isinstance(item, dict):
            continue
        places = item.get("places")
        if places is None:
            places = item.get("place")
        for place_id in _as_list(places):
            if isinstance(place_id, dict):
                place_id = place_id.get("id") or place_id.get("_id")
            if place_id:
                ids.append(str(place_id))
    # Keep first occurrence order.
    return list(dict.fromkeys(ids))


def parse_place_details(response: Any) -> Optional[PlaceDetails]:
    payload = _first(response)
    _check_error(payload)
    if not isinstance(payload, dict):
        return None
    raw = payload.get("place", payload)
    if not isinstance(raw, dict):
        return None
    place_id = raw.get("id") or raw.get("_id")
    location = parse_location(raw.get("location") or raw)
    if not place_id or location is None:
        return None
    return PlaceDetails(
        id=str(place_id),
        name=raw.get("name") or "",
        address=raw.get("address") or "",
        category=raw.get("category") or "",
        verified=bool(raw.get("verified", False)),
        location=location,
    )


def parse_viewport_response(response: Any) -> List[ViewportSummary]:
    items = response
    if isinstance(response, dict):
        _check_error(response)
        items = response.get("places", [])
    summaries: List[ViewportSummary] = []
    for raw in _as_list(items):
        if not isinstance(raw, dict):
            continue
        place_id = raw.get("id") or raw.get("_id")
        location = parse_location(raw.get("location") or raw)
        if not place_id or location is None:
            continue
        summaries.append(
            ViewportSummary(
                id=str(place_id),
                name=raw.get("name") or "",
                category=raw.get("category") or "",
                location=location,
            )
        )
    return summaries


def summaries_by_id(summaries: List[ViewportSummary]) -> Dict[str, ViewportSummary]:
    out: Dict[str, ViewportSummary] = {}
    for s in summaries:
        out.setdefault(s.id, s)
    return out
