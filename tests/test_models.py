from placescout.geo import LatLng
from placescout.models import (
    Place,
    PlaceDetails,
    ViewportSummary,
    enrich_place,
    merge_images,
    needs_enrichment,
    place_from_details,
    place_from_summary,
)


def make_details(**overrides):
    data = {
        "id": "p1",
        "name": "Blue Bottle",
        "address": "1 Main St",
        "category": "cafe",
        "verified": False,
        "location": LatLng(42.36, -71.06),
    }
    data.update(overrides)
    return PlaceDetails(**data)


def test_hidden_gem_is_negation_of_verified():
    assert place_from_details(make_details(verified=False)).hidden_gem is True
    assert place_from_details(make_details(verified=True)).hidden_gem is False


def test_category_maps_to_single_interest():
    place = place_from_details(make_details(category="Nature_Reserve"))
    assert place.interests == ["Nature_Reserve"]
    assert place_from_details(make_details(category="")).interests == []


def test_place_from_details_keeps_image_order_and_dedups():
    place = place_from_details(make_details(), ["a.jpg", "b.jpg", "a.jpg"])
    assert place.images == ["a.jpg", "b.jpg"]
    assert place.distance_miles_from_user is None


def test_place_from_summary_is_partial():
    summary = ViewportSummary(id="v1", name="Park", category="park", location=LatLng(1, 2))
    place = place_from_summary(summary, "preview.jpg")
    assert place.address == ""
    assert place.images == ["preview.jpg"]
    assert needs_enrichment(place)
    assert place_from_summary(summary).images == []


def test_enrich_place_fills_details_and_keeps_images():
    summary = ViewportSummary(id="p1", name="Park", category="park", location=LatLng(1, 2))
    place = place_from_summary(summary, "preview.jpg")
    enrich_place(place, make_details(address="2 Elm St", verified=True))
    assert place.address == "2 Elm St"
    assert place.hidden_gem is False
    assert place.images == ["preview.jpg"]
    assert not needs_enrichment(place)


def test_merge_images_keeps_preview_first():
    assert merge_images(["p.jpg"], ["a.jpg", "p.jpg", "b.jpg"]) == ["p.jpg", "a.jpg", "b.jpg"]
    assert merge_images([], []) == []


def test_copy_does_not_share_lists():
    place = Place(
        id="x", name="X", address="", interests=["a"], hidden_gem=False, location=LatLng(0, 0)
    )
    clone = place.copy()
    clone.images.append("new.jpg")
    clone.interests.append("b")
    assert place.images == []
    assert place.interests == ["a"]
