"""Place data orchestration.

``PlaceStore`` owns the published place list, the filter state and the
snapshot cache. It runs three kinds of loads against the catalog and media
services:

* ``load_places``: the full cycle. Candidate ids within a broad radius, then
  details and media in sequential batches of concurrent requests. Results are
  committed in one step, and only if no newer cycle has started since.
* ``load_viewport``: summaries for the visible map rectangle, merged by id,
  with background enrichment of records that lack details.
* ``load_place_media``: full photo list for one place, on selection.

All mutation of ``places`` happens under ``_lock`` and by identifier, so a
viewport load and a full cycle may overlap without losing each other's work.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from . import config
from .batching import run_batches
from .cache import SnapshotCache
from .catalog_client import CatalogClient, summaries_by_id
from .filters import apply_viewport, filter_places
from .bookmark_client import BookmarkClient, EngagementClient
from .geo import LatLng, ViewportBounds, km_to_miles, miles_to_km
from .http import BackendUnreachableError, ServiceError
from .location import LocationProvider, resolve_user_location
from .media_client import MediaClient
from .models import (
    FilterState,
    InterestTag,
    Place,
    PlaceDetails,
    enrich_place,
    merge_images,
    needs_enrichment,
    place_from_details,
    place_from_summary,
)
from .preference_client import PreferenceClient, fallback_tags
from .reporting import ProgressTracker

logger = logging.getLogger(__name__)

NO_PLACES_NOTICE = "No places found nearby"


class LoadState(str, Enum):
    IDLE = "idle"
    RESOLVING_IDS = "resolving_ids"
    FETCHING_DETAILS = "fetching_details"
    FETCHING_MEDIA = "fetching_media"
    READY = "ready"
    ERROR = "error"


def describe_error(exc: Exception) -> str:
    if isinstance(exc, BackendUnreachableError):
        url = exc.url or config.API_BASE_URL
        return f"Cannot reach the places backend at {url}. Check that it is running and try again."
    return f"Failed to load places: {exc}"


class PlaceStore:
    def __init__(
        self,
        catalog: CatalogClient,
        media: MediaClient,
        preferences: Optional[PreferenceClient] = None,
        location_provider: Optional[LocationProvider] = None,
        cache: Optional[SnapshotCache] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        detail_batch_size: Optional[int] = None,
        media_batch_size: Optional[int] = None,
        media_pause_seconds: Optional[float] = None,
        candidate_radius_km: Optional[float] = None,
        background_workers: Optional[int] = None,
        bookmarks: Optional[BookmarkClient] = None,
        engagement: Optional[EngagementClient] = None,
        user_id: Optional[str] = None,
    ) -> None:
        self.catalog = catalog
        self.media = media
        self.preferences = preferences
        self.location_provider = location_provider
        self.bookmarks = bookmarks
        self.engagement = engagement
        self.user_id = user_id
        self.cache = cache if cache is not None else SnapshotCache(clock=clock)
        self.sleep = sleep
        self.detail_batch_size = detail_batch_size or config.DETAIL_BATCH_SIZE
        self.media_batch_size = media_batch_size or config.MEDIA_BATCH_SIZE
        self.media_pause_seconds = (
            config.MEDIA_BATCH_PAUSE_SECONDS if media_pause_seconds is None else media_pause_seconds
        )
        self.candidate_radius_km = candidate_radius_km or config.CANDIDATE_RADIUS_KM

        self.places: List[Place] = []
        self.filters = FilterState()
        self.user_location: Optional[LatLng] = None
        self.state = LoadState.IDLE
        self.error: Optional[str] = None
        self.notice: Optional[str] = None
        self.all_loaded = False
        self.progress = ProgressTracker(logger)
        self.selected_place_id: Optional[str] = None
        self.page = 1
        self.page_size = config.PAGE_SIZE
        self.bookmarked_ids: Set[str] = set()

        self._lock = threading.RLock()
        self._generation = 0
        self._loading_generation: Optional[int] = None
        self._viewport_ids: Set[str] = set()
        self._background = ThreadPoolExecutor(
            max_workers=background_workers or config.BACKGROUND_WORKERS,
            thread_name_prefix="placescout-enrich",
        )
        self._pending: List[Future] = []

    def __enter__(self) -> "PlaceStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._background.shutdown(wait=True)

    # --- Derived views ---

    @property
    def is_loading(self) -> bool:
        return self._loading_generation is not None

    @property
    def loading_progress(self) -> int:
        return self.progress.value

    @property
    def filtered_places(self) -> List[Place]:
        return filter_places(self.places, self.filters, self.user_location)

    @property
    def visible_places(self) -> List[Place]:
        return apply_viewport(self.filtered_places, self.filters.viewport_bounds)

    @property
    def page_count(self) -> int:
        total = len(self.visible_places)
        return max(1, -(-total // self.page_size))

    @property
    def paginated_places(self) -> List[Place]:
        start = (self.page - 1) * self.page_size
        return self.visible_places[start : start + self.page_size]

    @property
    def selected_place(self) -> Optional[Place]:
        if self.selected_place_id is None:
            return None
        return self._find(self.selected_place_id)

    # --- Filter state ---

    def set_query(self, query: str) -> None:
        self.filters.search_query = query
        self.page = 1

    def set_distance(self, miles: Optional[float]) -> None:
        self.filters.distance_miles = miles
        self.page = 1

    def toggle_interest(self, tag: str) -> None:
        selected = self.filters.selected_interests
        if tag in selected:
            self.filters.selected_interests = [t for t in selected if t != tag]
        else:
            self.filters.selected_interests = selected + [tag]
        self.page = 1

    def set_hidden_gems(self, enabled: bool) -> None:
        self.filters.show_hidden_gems = enabled
        self.page = 1

    def set_viewport_bounds(self, bounds: Optional[ViewportBounds]) -> None:
        self.filters.viewport_bounds = bounds
        self.page = 1

    def set_user_location(self, location: Optional[LatLng]) -> None:
        self.user_location = location

    def set_page(self, page: int) -> None:
        self.page = max(1, min(int(page), self.page_count))

    def resolve_location(self) -> LatLng:
        self.user_location = resolve_user_location(self.location_provider)
        return self.user_location

    # --- Full load cycle ---

    def retry(self, include_media: bool = True) -> bool:
        return self.load_places(force=True, include_media=include_media)

    def load_places(self, force: bool = False, include_media: bool = True) -> bool:
        """Run one full load cycle; returns True if its result was published.

        A call made while another cycle is in flight supersedes it: the older
        cycle stops between batches and its results are never committed.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            if not force:
                cached = self.cache.load()
                if cached is not None:
                    age = self.cache.age_seconds() or 0.0
                    logger.info("Cache hit: %s places (%.0fs old)", len(cached), age)
                    self._commit(cached)
                    self.progress.reset("ready")
                    self.progress.advance_to(config.PROGRESS_DONE)
                    self.state = LoadState.READY
                    self.error = None
                    self.notice = None
                    self.all_loaded = True
                    self._loading_generation = None
                    return True
            self._loading_generation = generation
            self.progress.reset(LoadState.RESOLVING_IDS.value)
            self.state = LoadState.RESOLVING_IDS
            self.error = None
            self.notice = None
            self.all_loaded = False

        try:
            return self._run_cycle(generation, include_media)
        finally:
            with self._lock:
                if self._loading_generation == generation:
                    self._loading_generation = None

    def _is_current(self, generation: int) -> bool:
        return self._generation == generation

    def _run_cycle(self, generation: int, include_media: bool) -> bool:
        center = self.user_location or self.resolve_location()
        radius_km = self.candidate_pool_radius_km()
        logger.info(
            "Resolving candidate ids within %.1f km (%.1f mi) of (%s, %s)",
            radius_km,
            km_to_miles(radius_km),
            center.lat,
            center.lng,
        )
        try:
            ids = self.catalog.get_places_in_area(center, radius_km)
        except ServiceError as exc:
            logger.error("Candidate id lookup failed: %s", exc)
            return self._fail(generation, describe_error(exc))

        with self._lock:
            if not self._is_current(generation):
                return self._discard(generation)
            self.progress.advance_to(config.PROGRESS_IDS_RESOLVED)
            if not ids:
                logger.info("No candidate places returned")
                # Viewport-merged places are dropped too.
                self.places = []
                self._viewport_ids.clear()
                self.cache.clear()
                self.notice = NO_PLACES_NOTICE
                self._finish()
                return True
            self.progress.advance_to(config.PROGRESS_POOL_READY)
            self.state = LoadState.FETCHING_DETAILS
            self.progress.set_stage(self.state.value)

        media_end = config.PROGRESS_BATCH_END
        details_end = (config.PROGRESS_BATCH_START + media_end) // 2 if include_media else media_end

        details: List[PlaceDetails] = run_batches(
            ids,
            self.catalog.get_place_details,
            batch_size=self.detail_batch_size,
            on_batch_done=lambda done, total: self._report(
                generation, config.PROGRESS_BATCH_START, details_end, done, total
            ),
            should_continue=lambda: self._is_current(generation),
        )
        if not self._is_current(generation):
            return self._discard(generation)
        if not details:
            logger.error("All %s detail fetches failed", len(ids))
            return self._fail(generation, "Failed to load place details. Please try again.")
        logger.info("Fetched details for %s/%s places", len(details), len(ids))

        if include_media:
            with self._lock:
                if not self._is_current(generation):
                    return self._discard(generation)
                self.state = LoadState.FETCHING_MEDIA
                self.progress.set_stage(self.state.value)
            fetched = run_batches(
                details,
                self._fetch_place_with_media,
                batch_size=self.media_batch_size,
                on_batch_done=lambda done, total: self._report(
                    generation, details_end, media_end, done, total
                ),
                should_continue=lambda: self._is_current(generation),
                pause_seconds=self.media_pause_seconds,
                sleep=self.sleep,
            )
        else:
            fetched = [place_from_details(d) for d in details]

        with self._lock:
            if not self._is_current(generation):
                return self._discard(generation)
            self._commit(fetched)
            self.cache.store(fetched)
            self._finish()
            logger.info("Loaded %s places", len(fetched))
        return True

    def _fetch_place_with_media(self, details: PlaceDetails) -> Place:
        return place_from_details(details, self.media.get_media_urls(details.id))

    def _report(self, generation: int, start: int, end: int, done: int, total: int) -> None:
        with self._lock:
            if self._is_current(generation):
                self.progress.span(start, end, done, total)

    def _finish(self) -> None:
        self.progress.advance_to(config.PROGRESS_DONE)
        self.state = LoadState.READY
        self.error = None
        self.all_loaded = True

    def _fail(self, generation: int, message: str) -> bool:
        with self._lock:
            if not self._is_current(generation):
                return self._discard(generation)
            # Prior places stay published.
            self.state = LoadState.ERROR
            self.error = message
        return False

    def _discard(self, generation: int) -> bool:
        logger.info("Discarding results of superseded load cycle %s", generation)
        return False

    def _commit(self, fetched: Sequence[Place]) -> None:
        """Replace the published list in one assignment, merging by id.

        Images already resolved for a place are kept, and places merged by the
        viewport loader that the new set does not contain are carried over.
        """
        current = {p.id: p for p in self.places}
        merged: List[Place] = []
        seen: Set[str] = set()
        for place in fetched:
            if place.id in seen:
                continue
            seen.add(place.id)
            existing = current.get(place.id)
            if existing is not None and existing.images:
                place.images = merge_images(place.images, existing.images)
            merged.append(place)
        for place_id in self._viewport_ids:
            if place_id not in seen and place_id in current:
                merged.append(current[place_id])
                seen.add(place_id)
        self.places = merged

    def candidate_pool_radius_km(self) -> float:
        # The pool must cover the active distance filter.
        radius = self.candidate_radius_km
        if self.filters.distance_miles is not None:
            radius = max(radius, miles_to_km(self.filters.distance_miles))
        return radius

    # --- Viewport loading ---

    def load_viewport(self, bounds: ViewportBounds) -> List[str]:
        """Merge places inside ``bounds``; returns ids that were newly added."""
        self.set_viewport_bounds(bounds)
        try:
            summaries = self.catalog.get_places_in_viewport(bounds)
        except ServiceError as exc:
            logger.warning("Viewport load failed: %s", exc)
            return []

        with self._lock:
            known = {p.id for p in self.places}
        candidates = [s for s in summaries_by_id(summaries).values() if s.id not in known]
        if not candidates:
            return []

        try:
            previews = self.media.get_preview_images([s.id for s in candidates])
        except ServiceError as exc:
            logger.warning("Preview image lookup failed: %s", exc)
            previews = {}

        added: List[Place] = []
        with self._lock:
            # Re-check: a full cycle may have committed meanwhile.
            known = {p.id for p in self.places}
            for summary in candidates:
                if summary.id in known:
                    continue
                added.append(place_from_summary(summary, previews.get(summary.id)))
            if added:
                self.places = self.places + added
                self._viewport_ids.update(p.id for p in added)
        logger.info("Viewport merge added %s places", len(added))

        to_enrich = [p.id for p in added if needs_enrichment(p)]
        if to_enrich:
            future = self._background.submit(self.enrich_places, to_enrich)
            with self._lock:
                self._pending = [f for f in self._pending if not f.done()]
                self._pending.append(future)
        return [p.id for p in added]

    def enrich_places(self, place_ids: Sequence[str]) -> int:
        """Fill in details for partial records; failed ids stay as they are."""
        details = run_batches(place_ids, self.catalog.get_place_details, batch_size=self.detail_batch_size)
        enriched = 0
        with self._lock:
            by_id: Dict[str, Place] = {p.id: p for p in self.places}
            for d in details:
                place = by_id.get(d.id)
                if place is None:
                    continue
                enrich_place(place, d)
                enriched += 1
        logger.info("Enriched %s/%s places", enriched, len(place_ids))
        return enriched

    def wait_for_background(self, timeout: Optional[float] = None) -> None:
        """Join enrichment tasks; tasks still running at the timeout stay pending."""
        with self._lock:
            pending = list(self._pending)
        done, _ = wait(pending, timeout=timeout)
        with self._lock:
            self._pending = [f for f in self._pending if f not in done]
        for future in done:
            future.result()

    # --- Lazy media ---

    def select_place(self, place_id: Optional[str]) -> None:
        self.selected_place_id = place_id
        if place_id is not None:
            self.record_view(place_id)
            self.load_place_media(place_id)

    def record_view(self, place_id: str) -> bool:
        """Best-effort view tracking; never raises."""
        if self.engagement is None or not self.user_id:
            return False
        try:
            self.engagement.record_view(self.user_id, place_id)
        except ServiceError as exc:
            logger.warning("Recording view of %s failed: %s", place_id, exc)
            return False
        return True

    def load_place_media(self, place_id: str) -> List[str]:
        place = self._find(place_id)
        if place is None:
            return []
        if len(place.images) > 1:
            return list(place.images)
        try:
            urls = self.media.get_media_urls(place_id)
        except ServiceError as exc:
            logger.warning("Media load failed for %s: %s", place_id, exc)
            return list(place.images)
        with self._lock:
            # The published list may have been replaced while fetching.
            place = self._find(place_id)
            if place is None:
                return []
            place.images = merge_images(place.images, urls)
            return list(place.images)

    # --- Bookmarks ---

    def _require_bookmarks(self) -> BookmarkClient:
        if self.bookmarks is None:
            raise ServiceError("Bookmarks are not available")
        return self.bookmarks

    def load_bookmarks(self) -> Set[str]:
        ids = self._require_bookmarks().get_bookmarked_places()
        with self._lock:
            self.bookmarked_ids = set(ids)
            return set(self.bookmarked_ids)

    def is_bookmarked(self, place_id: str) -> bool:
        return place_id in self.bookmarked_ids

    def bookmark_place(self, place_id: str) -> None:
        self._require_bookmarks().bookmark_place(place_id)
        with self._lock:
            self.bookmarked_ids.add(place_id)
        logger.info("Bookmarked %s", place_id)

    def unbookmark_place(self, place_id: str) -> None:
        self._require_bookmarks().unbookmark_place(place_id)
        with self._lock:
            self.bookmarked_ids.discard(place_id)
        logger.info("Removed bookmark %s", place_id)

    def toggle_bookmark(self, place_id: str) -> bool:
        if self.is_bookmarked(place_id):
            self.unbookmark_place(place_id)
            return False
        self.bookmark_place(place_id)
        return True

    @property
    def bookmarked_places(self) -> List[Place]:
        with self._lock:
            return [p.copy() for p in self.places if p.id in self.bookmarked_ids]

    # --- Preferences ---

    def matching_places(self, user_id: str) -> List[Place]:
        visible = self.visible_places
        if self.preferences is None or not visible:
            return visible
        try:
            matches = set(self.preferences.get_matching_places(user_id, [p.id for p in visible]))
        except ServiceError as exc:
            logger.warning("Preference matching failed for %s: %s", user_id, exc)
            return visible
        return [p for p in visible if p.id in matches]

    def available_tags(self) -> List[InterestTag]:
        if self.preferences is None:
            return fallback_tags()
        return self.preferences.get_available_tags()

    # --- Helpers ---

    def _find(self, place_id: str) -> Optional[Place]:
        with self._lock:
            for place in self.places:
                if place.id == place_id:
                    return place
        return None

    def summary(self) -> Dict[str, Any]:
        filtered = self.filtered_places
        return {
            "state": self.state.value,
            "total_places": len(self.places),
            "filtered_places": len(filtered),
            "visible_places": len(apply_viewport(filtered, self.filters.viewport_bounds)),
            "progress": self.loading_progress,
            "error": self.error,
            "notice": self.notice,
            "all_loaded": self.all_loaded,
        }
