from placescout import config
from placescout.geo import LatLng
from placescout.location import (
    EnvLocationProvider,
    StaticLocationProvider,
    default_location,
    resolve_user_location,
)


class BrokenProvider:
    def current_location(self):
        raise PermissionError("denied")


def test_known_location_is_used():
    loc = LatLng(42.36, -71.06)
    assert resolve_user_location(StaticLocationProvider(loc)) == loc


def test_unavailable_or_denied_falls_back_to_default():
    expected = LatLng(*config.DEFAULT_LOCATION)
    assert resolve_user_location(None) == expected
    assert resolve_user_location(StaticLocationProvider(None)) == expected
    assert resolve_user_location(BrokenProvider()) == expected
    assert default_location() == expected


def test_env_provider(monkeypatch):
    monkeypatch.setenv("PLACESCOUT_USER_LAT", "40.7")
    monkeypatch.setenv("PLACESCOUT_USER_LNG", "-74.0")
    assert EnvLocationProvider().current_location() == LatLng(40.7, -74.0)

    monkeypatch.delenv("PLACESCOUT_USER_LNG")
    assert EnvLocationProvider().current_location() is None


def test_env_provider_garbage_falls_back(monkeypatch):
    monkeypatch.setenv("PLACESCOUT_USER_LAT", "north")
    monkeypatch.setenv("PLACESCOUT_USER_LNG", "-74.0")
    assert resolve_user_location(EnvLocationProvider()) == LatLng(*config.DEFAULT_LOCATION)
