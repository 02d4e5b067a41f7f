"""Interest preference client."""
from __future__ import annotations

import logging
from typing import Any, List, Sequence

from . import config
from .http import HttpClient, ServiceError
from .models import InterestTag

logger = logging.getLogger(__name__)


class PreferenceClient:
    def __init__(self, http_client: HttpClient) -> None:
        self.http = http_client

    def get_matching_places(self, user_id: str, place_ids: Sequence[str]) -> List[str]:
        response = self.http.post_json(
            config.MATCHING_PLACES_PATH,
            {"userId": user_id, "places": list(place_ids)},
            kind="preferences",
        )
        if isinstance(response, list):
            response = response[0] if response else {}
        if not isinstance(response, dict):
            return []
        if response.get("error"):
            raise ServiceError(str(response["error"]))
        return [str(m) for m in response.get("matches") or []]

    def get_available_tags(self) -> List[InterestTag]:
        try:
            response = self.http.get_json(config.AVAILABLE_TAGS_PATH, kind="preferences")
        except ServiceError as exc:
            logger.warning("Tag catalog unavailable, using built-in tags: %s", exc)
            return fallback_tags()
        tags = parse_tags(response)
        if not tags:
            logger.info("Tag catalog returned no tags, using built-in tags")
            return fallback_tags()
        return tags


def parse_tags(response: Any) -> List[InterestTag]:
    if isinstance(response, dict):
        response = response.get("tags") or []
    tags: List[InterestTag] = []
    for item in response or []:
        if isinstance(item, str):
            tags.append(InterestTag(tag=item))
        elif isinstance(item, dict) and item.get("tag"):
            tags.append(InterestTag(tag=str(item["tag"]), description=item.get("description") or ""))
    return tags


def fallback_tags() -> List[InterestTag]:
    return [InterestTag(tag=t["tag"], description=t["description"]) for t in config.FALLBACK_TAGS]
