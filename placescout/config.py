"""Project configuration.

Loads optional overrides from placescout_config.json when available,
falling back to sensible defaults. Keep backend request shapes centralized here.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

_REPO_ROOT = Path(__file__).resolve().parent.parent

# --- Backend ---

API_BASE_URL = os.environ.get("PLACESCOUT_API_BASE_URL", "http://localhost:8000")

PLACES_IN_AREA_PATH = "/api/PlaceCatalog/_getPlacesInArea"
PLACE_DETAILS_PATH = "/api/PlaceCatalog/_getPlaceDetails"
PLACES_IN_VIEWPORT_PATH = "/api/PlaceCatalog/getPlacesInViewport"
MEDIA_ITEMS_BY_PLACE_PATH = "/api/MediaLibrary/getMediaItemsByPlace"
PREVIEW_IMAGES_PATH = "/api/MediaLibrary/getPreviewImagesForPlaces"
MATCHING_PLACES_PATH = "/api/InterestFilter/getMatchingPlaces"
AVAILABLE_TAGS_PATH = "/api/InterestFilter/getAvailableTags"
BOOKMARK_PLACE_PATH = "/api/Bookmark/bookmarkPlace"
UNBOOKMARK_PLACE_PATH = "/api/Bookmark/unbookmarkPlace"
BOOKMARKED_PLACES_PATH = "/api/Bookmark/getBookmarkedPlaces"
IS_BOOKMARKED_PATH = "/api/Bookmark/isBookmarked"
RECORD_INTERACTION_PATH = "/api/MediaAnalytics/recordInteraction"

# --- Location ---

DEFAULT_LOCATION: Tuple[float, float] = (37.7749, -122.4194)  # San Francisco
EARTH_RADIUS_MILES = 3958.8
KM_PER_MILE = 1.609344

# --- Loading ---

CANDIDATE_RADIUS_KM = 100.0
DETAIL_BATCH_SIZE = 10
MEDIA_BATCH_SIZE = 5
MEDIA_BATCH_PAUSE_SECONDS = 0.1
CACHE_TTL_SECONDS = 5 * 60
BACKGROUND_WORKERS = 2

# Progress checkpoints (0..100) for a full load cycle.
PROGRESS_IDS_RESOLVED = 10
PROGRESS_POOL_READY = 20
PROGRESS_BATCH_START = 30
PROGRESS_BATCH_END = 95
PROGRESS_DONE = 100

# --- Filters ---

VIEWPORT_BUFFER_DEG = 0.01
DEFAULT_DISTANCE_MILES: Optional[float] = 10.0
DISTANCE_OPTIONS: List[int] = [5, 10, 25, 50]
PAGE_SIZE = 6

# Used when the tag catalog cannot be reached.
FALLBACK_TAGS: List[Dict[str, str]] = [
    {"tag": "library", "description": "Libraries and reading spaces"},
    {"tag": "restaurant", "description": "Restaurants and dining establishments"},
    {"tag": "park", "description": "Parks and gardens"},
    {"tag": "fast_food", "description": "Fast food restaurants"},
    {"tag": "theatre", "description": "Theaters and performance venues"},
    {"tag": "cafe", "description": "Coffee shops and cafés"},
    {"tag": "ice_rink", "description": "Ice rinks and skating facilities"},
    {"tag": "arts_centre", "description": "Arts centers and cultural facilities"},
    {"tag": "cinema", "description": "Movie theaters and cinemas"},
    {"tag": "golf_course", "description": "Golf courses and driving ranges"},
    {"tag": "attraction", "description": "Attractions and points of interest"},
    {"tag": "bowling_alley", "description": "Bowling alleys"},
    {"tag": "marina", "description": "Marinas and boat docks"},
    {"tag": "swimming_pool", "description": "Swimming pools and aquatic centers"},
    {"tag": "hackerspace", "description": "Hackerspaces and maker spaces"},
    {"tag": "escape_game", "description": "Escape rooms and puzzle games"},
    {"tag": "nature_reserve", "description": "Nature reserves and protected areas"},
]

# --- HTTP ---

HTTP_TIMEOUT_SECONDS = 10
HTTP_RETRY_MAX = 3
HTTP_BACKOFF_BASE = 0.5
HTTP_BACKOFF_MAX = 8.0

# --- Outputs ---

OUTPUT_PATH = "out/places.json"


def load_settings(path: Optional[str] = None) -> bool:
    """Load configuration overrides from a JSON file.

    Updates module-level globals with values from the config file.
    Returns True if config was loaded, False if file not found.
    """
    if path is None:
        path = str(_REPO_ROOT / "placescout_config.json")

    config_path = Path(path)
    if not config_path.exists():
        return False

    with open(config_path, "r", encoding="utf-8") as f:
        data: Dict[str, Any] = json.load(f)

    globals_ref = globals()

    base_url = data.get("api_base_url")
    if base_url:
        globals_ref["API_BASE_URL"] = str(base_url).rstrip("/")

    location = data.get("default_location", {})
    lat = location.get("lat")
    lng = location.get("lng")
    if lat is not None and lng is not None:
        globals_ref["DEFAULT_LOCATION"] = (float(lat), float(lng))

    radius = data.get("candidate_radius_km")
    if radius is not None:
        globals_ref["CANDIDATE_RADIUS_KM"] = float(radius)

    for key, name in (
        ("detail_batch_size", "DETAIL_BATCH_SIZE"),
        ("media_batch_size", "MEDIA_BATCH_SIZE"),
        ("page_size", "PAGE_SIZE"),
    ):
        value = data.get(key)
        if value is not None:
            globals_ref[name] = max(1, int(value))

    ttl = data.get("cache_ttl_seconds")
    if ttl is not None:
        globals_ref["CACHE_TTL_SECONDS"] = float(ttl)

    return True
