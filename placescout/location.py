"""User location resolution with a fixed fallback."""
from __future__ import annotations

import logging
import os
from typing import Optional, Protocol

from . import config
from .geo import LatLng

logger = logging.getLogger(__name__)


class LocationProvider(Protocol):
    def current_location(self) -> Optional[LatLng]:
        ...


class StaticLocationProvider:
    def __init__(self, location: Optional[LatLng]) -> None:
        self.location = location

    def current_location(self) -> Optional[LatLng]:
        return self.location


class EnvLocationProvider:
    """Reads PLACESCOUT_USER_LAT / PLACESCOUT_USER_LNG."""

    def __init__(self, lat_var: str = "PLACESCOUT_USER_LAT", lng_var: str = "PLACESCOUT_USER_LNG") -> None:
        self.lat_var = lat_var
        self.lng_var = lng_var

    def current_location(self) -> Optional[LatLng]:
        lat = (os.environ.get(self.lat_var) or "").strip()
        lng = (os.environ.get(self.lng_var) or "").strip()
        if not lat or not lng:
            return None
        return LatLng(float(lat), float(lng))


def default_location() -> LatLng:
    lat, lng = config.DEFAULT_LOCATION
    return LatLng(lat, lng)


def resolve_user_location(provider: Optional[LocationProvider]) -> LatLng:
    """Best-effort location; never raises."""
    if provider is None:
        return default_location()
    try:
        location = provider.current_location()
    except Exception as exc:
        logger.warning("Location unavailable, using default: %s", exc)
        return default_location()
    if location is None:
        logger.info("Location unavailable, using default")
        return default_location()
    return location
