"""Media library client."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from . import config
from .http import HttpClient, ServiceError


class MediaClient:
    def __init__(self, http_client: HttpClient) -> None:
        self.http = http_client

    def get_media_urls(self, place_id: str) -> List[str]:
        response = self.http.post_json(config.MEDIA_ITEMS_BY_PLACE_PATH, {"placeId": place_id}, kind="media")
        return parse_media_urls(response)

    def get_preview_images(self, place_ids: Sequence[str]) -> Dict[str, Optional[str]]:
        if not place_ids:
            return {}
        response = self.http.post_json(
            config.PREVIEW_IMAGES_PATH, {"placeIds": list(place_ids)}, kind="media"
        )
        return parse_preview_images(response)


def parse_media_urls(response: Any) -> List[str]:
    if isinstance(response, dict):
        if response.get("error"):
            raise ServiceError(str(response["error"]))
        response = response.get("items", response.get("mediaItems", []))
    urls: List[str] = []
    for item in response or []:
        if isinstance(item, str):
            url = item
        elif isinstance(item, dict):
            url = item.get("imageUrl") or item.get("url")
        else:
            url = None
        if url and url not in urls:
            urls.append(url)
    return urls


def parse_preview_images(response: Any) -> Dict[str, Optional[str]]:
    if isinstance(response, dict):
        if response.get("error"):
            raise ServiceError(str(response["error"]))
        response = response.get("previews", [])
    previews: Dict[str, Optional[str]] = {}
    for item in response or []:
        if not isinstance(item, dict):
            continue
        place_id = item.get("placeId")
        if not place_id:
            continue
        # At most one preview per place; first one wins.
        if previews.get(place_id):
            continue
        previews[str(place_id)] = item.get("previewImage") or None
    return previews
