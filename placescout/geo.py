"""Geospatial helpers."""
from __future__ import annotations

import math
from dataclasses import dataclass

from . import config


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float

    def __post_init__(self) -> None:
        if not (-90.0 <= self.lat <= 90.0) or not (-180.0 <= self.lng <= 180.0):
            raise ValueError(f"Invalid coordinate: ({self.lat}, {self.lng})")


@dataclass(frozen=True)
class ViewportBounds:
    """Visible map rectangle in degrees.

    ``east < west`` means the rectangle crosses the antimeridian; longitudes
    then wrap from ``west`` through 180 to ``east``.
    """

    north: float
    south: float
    east: float
    west: float

    def __post_init__(self) -> None:
        if self.north < self.south:
            raise ValueError(f"Viewport north ({self.north}) is below south ({self.south})")

    @property
    def crosses_antimeridian(self) -> bool:
        return self.east < self.west

    def contains(self, location: LatLng, buffer: float = config.VIEWPORT_BUFFER_DEG) -> bool:
        if not (self.south - buffer <= location.lat <= self.north + buffer):
            return False
        if self.crosses_antimeridian:
            return location.lng >= self.west - buffer or location.lng <= self.east + buffer
        return self.west - buffer <= location.lng <= self.east + buffer

    def to_request(self) -> dict:
        return {
            "southLat": self.south,
            "westLng": self.west,
            "northLat": self.north,
            "eastLng": self.east,
        }


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    r = config.EARTH_RADIUS_MILES
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lng2 - lng1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return r * c


def distance_between(a: LatLng, b: LatLng) -> float:
    """Great-circle distance in miles."""
    if a == b:
        return 0.0
    return haversine_miles(a.lat, a.lng, b.lat, b.lng)


def miles_to_km(miles: float) -> float:
    return miles * config.KM_PER_MILE


def km_to_miles(km: float) -> float:
    return km / config.KM_PER_MILE
