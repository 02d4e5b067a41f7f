"""Bookmark and engagement clients.

Bookmark calls are authenticated with a session token. The backend answers
either with a single object or with a one-element list of objects; both are
accepted.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from . import config
from .http import HttpClient, ServiceError


class BookmarkClient:
    def __init__(self, http_client: HttpClient, session_token: Optional[str] = None) -> None:
        self.http = http_client
        self.session_token = session_token

    def _body(self, **extra: Any) -> Dict[str, Any]:
        if not self.session_token:
            raise ServiceError("No active session")
        return {"sessionToken": self.session_token, **extra}

    def bookmark_place(self, place_id: str) -> None:
        response = self.http.post_json(config.BOOKMARK_PLACE_PATH, self._body(placeId=place_id), kind="bookmark")
        _single_record(response)

    def unbookmark_place(self, place_id: str) -> None:
        response = self.http.post_json(config.UNBOOKMARK_PLACE_PATH, self._body(placeId=place_id), kind="bookmark")
        _single_record(response)

    def get_bookmarked_places(self) -> List[str]:
        response = self.http.post_json(config.BOOKMARKED_PLACES_PATH, self._body(), kind="bookmark")
        return parse_bookmarked_place_ids(response)

    def is_bookmarked(self, place_id: str) -> bool:
        response = self.http.post_json(config.IS_BOOKMARKED_PATH, self._body(placeId=place_id), kind="bookmark")
        return parse_is_bookmarked(response)


class EngagementClient:
    def __init__(self, http_client: HttpClient) -> None:
        self.http = http_client

    def record_interaction(self, user_id: str, item_id: str, interaction_type: str) -> None:
        body = {"userId": user_id, "mediaItemId": item_id, "interactionType": interaction_type}
        response = self.http.post_json(config.RECORD_INTERACTION_PATH, body, kind="engagement")
        _single_record(response)

    def record_view(self, user_id: str, place_id: str) -> None:
        self.record_interaction(user_id, place_id, "view")


def _single_record(response: Any) -> Dict[str, Any]:
    if isinstance(response, list):
        response = response[0] if response else {}
    if not isinstance(response, dict):
        return {}
    if response.get("error"):
        raise ServiceError(str(response["error"]))
    return response


def parse_bookmarked_place_ids(response: Any) -> List[str]:
    record = _single_record(response)
    ids: List[str] = []
    for place_id in record.get("placeIds") or []:
        if place_id and str(place_id) not in ids:
            ids.append(str(place_id))
    return ids


def parse_is_bookmarked(response: Any) -> bool:
    return bool(_single_record(response).get("isBookmarked", False))
