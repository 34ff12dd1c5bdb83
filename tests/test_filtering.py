"""
Unit tests for the list text filter
"""
from places_map.filtering import filter_pois

from conftest import make_poi


def test_blank_query_returns_input_unchanged(three_places):
    assert filter_pois(three_places, "") == three_places
    assert filter_pois(three_places, "   ") == three_places


def test_matches_category_only_pizza(three_places):
    """Scenario B: "pizza" narrows the list to the one pizza place"""
    result = filter_pois(three_places, "pizza")
    assert [p.id for p in result] == ["node/2"]


def test_matches_name_case_insensitively(three_places):
    assert [p.id for p in filter_pois(three_places, "NOODLE")] == ["node/3"]
    assert [p.id for p in filter_pois(three_places, "  luigi ")] == ["node/1"]


def test_result_is_ordered_subsequence():
    pois = tuple(make_poi(i, name=f"Cafe {i}" if i % 3 else f"Bar {i}") for i in range(30))
    result = filter_pois(pois, "cafe")
    ids = [p.id for p in pois]
    positions = [ids.index(p.id) for p in result]
    assert positions == sorted(positions)
    assert all(p in pois for p in result)
    assert len(result) == 20


def test_missing_tags_never_match_placeholders():
    unnamed = make_poi(9)
    assert filter_pois((unnamed,), "unnamed") == ()
    assert filter_pois((unnamed,), "unknown") == ()


def test_category_falls_back_to_queried_tag():
    cafe = make_poi(4, name="Corner", amenity="cafe")
    assert filter_pois((cafe,), "caf") == (cafe,)


def test_cuisine_and_queried_tag_match_independently():
    pizza = make_poi(5, name="Slice", cuisine="pizza", amenity="restaurant")
    plain = make_poi(6, name="Diner", amenity="restaurant")
    assert filter_pois((pizza, plain), "restaurant") == (pizza, plain)
    assert filter_pois((pizza, plain), "pizza") == (pizza,)
