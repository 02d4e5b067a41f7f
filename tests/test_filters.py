from placescout.filters import apply_viewport, filter_places, matches_interests, matches_query
from placescout.geo import LatLng, ViewportBounds
from placescout.models import FilterState, Place


def make_place(place_id, lat=0.0, lng=0.0, name="Place", address="", interests=None, hidden_gem=False):
    return Place(
        id=place_id,
        name=name,
        address=address,
        interests=list(interests or []),
        hidden_gem=hidden_gem,
        location=LatLng(lat, lng),
    )


def sample_places():
    return [
        make_place("near-cafe", 0.0, 0.01, name="Corner Cafe", interests=["Cafe"], hidden_gem=True),
        make_place("near-park", 0.01, 0.0, name="Green Park", address="Elm St", interests=["park"]),
        make_place("far-cafe", 0.0, 0.09, name="Far Cafe", interests=["cafe"]),
        make_place("museum", 0.02, 0.02, name="History Museum", interests=["museum"], hidden_gem=True),
    ]


def test_distance_filter_excludes_far_place_but_keeps_source():
    places = sample_places()
    filters = FilterState(distance_miles=5)
    result = filter_places(places, filters, LatLng(0, 0))
    assert "far-cafe" not in [p.id for p in result]
    assert "far-cafe" in [p.id for p in places]
    assert all(p.distance_miles_from_user is not None for p in result)
    assert all(p.distance_miles_from_user is None for p in places)


def test_distance_annotation_without_limit():
    result = filter_places(sample_places(), FilterState(distance_miles=None), LatLng(0, 0))
    assert len(result) == 4
    far = next(p for p in result if p.id == "far-cafe")
    assert 6.1 < far.distance_miles_from_user < 6.3


def test_no_user_location_skips_distance():
    result = filter_places(sample_places(), FilterState(distance_miles=1), None)
    assert len(result) == 4
    assert all(p.distance_miles_from_user is None for p in result)


def test_text_search_matches_name_address_and_interests():
    places = sample_places()
    assert [p.id for p in filter_places(places, FilterState(search_query="ELM", distance_miles=None), None)] == ["near-park"]
    assert [p.id for p in filter_places(places, FilterState(search_query="museum", distance_miles=None), None)] == ["museum"]
    assert len(filter_places(places, FilterState(search_query="   ", distance_miles=None), None)) == 4


def test_interest_match_is_case_insensitive():
    result = filter_places(sample_places(), FilterState(selected_interests=["cafe"], distance_miles=None), None)
    assert [p.id for p in result] == ["near-cafe", "far-cafe"]
    place = make_place("x", interests=["Cafe"])
    assert matches_interests(place, ["cafe"])
    assert matches_interests(place, [])
    assert not matches_interests(place, ["park"])


def test_hidden_gem_filter():
    result = filter_places(sample_places(), FilterState(show_hidden_gems=True, distance_miles=None), None)
    assert [p.id for p in result] == ["near-cafe", "museum"]


def test_filter_is_idempotent_and_order_stable():
    filters = FilterState(
        search_query="cafe", distance_miles=5, selected_interests=["CAFE"], show_hidden_gems=True
    )
    user = LatLng(0, 0)
    once = filter_places(sample_places(), filters, user)
    twice = filter_places(once, filters, user)
    assert [p.id for p in once] == ["near-cafe"]
    assert [p.to_dict() for p in twice] == [p.to_dict() for p in once]


def test_predicates_are_order_independent():
    places = sample_places()
    user = LatLng(0, 0)
    full = FilterState(search_query="a", distance_miles=5, selected_interests=["cafe", "park"], show_hidden_gems=False)
    combined = {p.id for p in filter_places(places, full, user)}

    step = filter_places(places, FilterState(selected_interests=["cafe", "park"], distance_miles=None), None)
    step = filter_places(step, FilterState(search_query="a", distance_miles=None), None)
    step = filter_places(step, FilterState(distance_miles=5), user)
    assert {p.id for p in step} == combined == {"near-cafe", "near-park"}


def test_viewport_view_is_separate_stage():
    places = sample_places()
    assert apply_viewport(places, None) == places
    bounds = ViewportBounds(north=0.015, south=-0.005, east=0.015, west=-0.005)
    ids = [p.id for p in apply_viewport(places, bounds)]
    assert ids == ["near-cafe", "near-park", "museum"]
    assert [p.id for p in apply_viewport(places, bounds, buffer=0.0)] == ["near-cafe", "near-park"]


def test_matches_query_empty():
    assert matches_query(make_place("x"), "")
