import pytest

from placescout.cache import SnapshotCache
from placescout.geo import LatLng, ViewportBounds
from placescout.http import BackendUnreachableError, ServiceError
from placescout.location import StaticLocationProvider
from placescout.models import ViewportSummary
from placescout.store import PlaceStore

BOUNDS = ViewportBounds(north=42.40, south=42.30, east=-71.00, west=-71.10)


class FakeCatalog:
    def __init__(self, ids):
        self.ids = list(ids)

    def get_places_in_viewport(self, bounds):
        return [
            ViewportSummary(id=pid, name=f"Summary {pid}", category="park", location=LatLng(42.35, -71.05))
            for pid in self.ids
        ]

    def get_place_details(self, place_id):
        raise ServiceError("not needed")


class FakeMedia:
    def get_media_urls(self, place_id):
        return [f"{place_id}-1.jpg", f"{place_id}-2.jpg"]

    def get_preview_images(self, place_ids):
        return {}


class FakeBookmarks:
    def __init__(self, saved=(), error=None):
        self.saved = list(saved)
        self.error = error
        self.calls = []

    def bookmark_place(self, place_id):
        self.calls.append(("bookmark", place_id))
        if self.error is not None:
            raise self.error
        self.saved.append(place_id)

    def unbookmark_place(self, place_id):
        self.calls.append(("unbookmark", place_id))
        if self.error is not None:
            raise self.error
        self.saved.remove(place_id)

    def get_bookmarked_places(self):
        if self.error is not None:
            raise self.error
        return list(self.saved)


class FakeEngagement:
    def __init__(self, error=None):
        self.error = error
        self.views = []

    def record_view(self, user_id, place_id):
        self.views.append((user_id, place_id))
        if self.error is not None:
            raise self.error


def make_store(bookmarks=None, engagement=None, user_id=None):
    return PlaceStore(
        FakeCatalog(["a", "b", "c"]),
        FakeMedia(),
        location_provider=StaticLocationProvider(LatLng(42.36, -71.06)),
        cache=SnapshotCache(ttl_seconds=300, clock=lambda: 0.0),
        sleep=lambda _s: None,
        bookmarks=bookmarks,
        engagement=engagement,
        user_id=user_id,
    )


def test_bookmark_and_unbookmark_update_local_set():
    bookmarks = FakeBookmarks()
    with make_store(bookmarks=bookmarks) as store:
        store.load_viewport(BOUNDS)
        store.bookmark_place("a")
        assert store.is_bookmarked("a")
        assert [p.id for p in store.bookmarked_places] == ["a"]

        assert store.toggle_bookmark("a") is False
        assert store.bookmarked_places == []
        assert bookmarks.calls == [("bookmark", "a"), ("unbookmark", "a")]


def test_load_bookmarks_lists_only_known_places():
    with make_store(bookmarks=FakeBookmarks(saved=["b", "zzz"])) as store:
        store.load_viewport(BOUNDS)
        assert store.load_bookmarks() == {"b", "zzz"}
        assert [p.id for p in store.bookmarked_places] == ["b"]


def test_failed_bookmark_leaves_state_unchanged():
    bookmarks = FakeBookmarks(error=ServiceError("No active session"))
    with make_store(bookmarks=bookmarks) as store:
        store.load_viewport(BOUNDS)
        with pytest.raises(ServiceError):
            store.bookmark_place("a")
        assert not store.is_bookmarked("a")


def test_bookmarks_unavailable_without_client():
    with make_store() as store:
        with pytest.raises(ServiceError):
            store.load_bookmarks()


def test_select_place_records_view():
    engagement = FakeEngagement()
    with make_store(engagement=engagement, user_id="u1") as store:
        store.load_viewport(BOUNDS)
        store.select_place("a")
        assert engagement.views == [("u1", "a")]
        assert store.selected_place.images == ["a-1.jpg", "a-2.jpg"]


def test_view_tracking_failure_does_not_block_selection(caplog):
    engagement = FakeEngagement(error=BackendUnreachableError("refused"))
    with make_store(engagement=engagement, user_id="u1") as store:
        store.load_viewport(BOUNDS)
        store.select_place("b")
        assert store.selected_place_id == "b"
        assert store.selected_place.images == ["b-1.jpg", "b-2.jpg"]
        assert "Recording view of b failed" in caplog.text


def test_view_not_recorded_without_user():
    engagement = FakeEngagement()
    with make_store(engagement=engagement) as store:
        store.load_viewport(BOUNDS)
        store.select_place("a")
        assert engagement.views == []
