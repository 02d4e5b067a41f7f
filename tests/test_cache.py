from placescout.cache import SnapshotCache
from placescout.geo import LatLng
from placescout.models import Place


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def make_place(place_id="p1"):
    return Place(
        id=place_id, name="Place", address="", interests=[], hidden_gem=True, location=LatLng(0, 0)
    )


def test_empty_cache_misses():
    cache = SnapshotCache(ttl_seconds=300, clock=FakeClock())
    assert not cache.is_valid()
    assert cache.load() is None


def test_ttl_boundaries():
    clock = FakeClock()
    cache = SnapshotCache(ttl_seconds=300, clock=clock)
    cache.store([make_place()])

    clock.now += 4 * 60 + 59
    assert cache.is_valid()
    assert [p.id for p in cache.load()] == ["p1"]

    clock.now += 2
    assert not cache.is_valid()
    assert cache.load() is None


def test_empty_snapshot_is_never_valid():
    cache = SnapshotCache(ttl_seconds=300, clock=FakeClock())
    cache.store([])
    assert not cache.is_valid()


def test_load_returns_copies():
    cache = SnapshotCache(ttl_seconds=300, clock=FakeClock())
    cache.store([make_place()])
    first = cache.load()
    first[0].images.append("x.jpg")
    assert cache.load()[0].images == []


def test_clear():
    cache = SnapshotCache(ttl_seconds=300, clock=FakeClock())
    cache.store([make_place()])
    cache.clear()
    assert cache.load() is None
    assert cache.age_seconds() is None
