"""
Unit tests for the Overpass query service
"""
import pytest
import requests

from places_map.models import UNKNOWN, UNNAMED, ErrorKind, QueryFailure, QueryKey
from places_map.overpass import OverpassService, build_query, make_session, parse_elements

from conftest import LONDON


class FakeResponse:
    def __init__(self, payload=None, status=200, body_error=None):
        self.payload = payload
        self.status_code = status
        self.body_error = body_error

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self.body_error:
            raise self.body_error
        return self.payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.posts = []

    def post(self, url, data=None, timeout=None):
        self.posts.append((url, data, timeout))
        if self.exc:
            raise self.exc
        return self.response


KEY = QueryKey(LONDON, "restaurant", 1000)


def test_build_query_is_declarative_around_filter():
    ql = build_query(KEY, timeout_s=25)
    assert ql.startswith("[out:json][timeout:25];")
    assert 'nwr["amenity"="restaurant"](around:1000,51.5074,-0.1278);' in ql
    assert ql.endswith("out center;")


def test_build_query_escapes_quotes():
    ql = build_query(QueryKey(LONDON, 'fish"chips', 500))
    assert '"fish\\"chips"' in ql


def test_parse_elements_defaults_and_positions():
    payload = {"elements": [
        {"type": "node", "id": 1, "lat": 51.5, "lon": -0.12, "tags": {"name": "Dishoom", "cuisine": "indian",
                                                                    "phone": "+44", "website": "https://d.example",
                                                                    "addr:housenumber": "12", "addr:street": "Upper St",
                                                                    "addr:city": "London", "diet:vegan": "yes"}},
        {"type": "way", "id": 2, "center": {"lat": 51.51, "lon": -0.13}},
        {"type": "relation", "id": 3},
        {"type": "node", "id": 1, "lat": 0, "lon": 0},
    ]}
    pois = parse_elements(payload)
    assert [p.id for p in pois] == ["node/1", "way/2"]
    first, second = pois
    assert first.name == "Dishoom" and first.category == "indian"
    assert first.address == "12 Upper St, London"
    assert first.tags["diet:vegan"] == "yes"
    assert (second.name, second.category) == (UNNAMED, UNKNOWN)
    assert second.coordinate.lat == 51.51
    assert second.phone is None and second.website is None and second.address is None


def test_category_prefers_cuisine_then_queried_tag():
    pois = parse_elements({"elements": [{"type": "node", "id": 5, "lat": 1, "lon": 2, "tags": {"amenity": "cafe"}}]})
    assert pois[0].category == "cafe"


def test_empty_elements_is_not_an_error():
    assert parse_elements({"elements": []}) == ()


@pytest.mark.parametrize("payload", [None, [], {"version": 0.6}, {"elements": "nope"}])
def test_missing_elements_array_is_malformed(payload):
    with pytest.raises(QueryFailure) as info:
        parse_elements(payload)
    assert info.value.kind is ErrorKind.MALFORMED_RESPONSE


def test_runtime_error_remark_is_a_failure():
    with pytest.raises(QueryFailure) as info:
        parse_elements({"elements": [], "remark": "runtime error: Query timed out"})
    assert info.value.kind is ErrorKind.QUERY_FAILURE


def test_fetch_posts_form_data_with_timeout():
    session = FakeSession(FakeResponse({"elements": [{"type": "node", "id": 9, "lat": 1.0, "lon": 2.0}]}))
    service = OverpassService("https://overpass.test/api/interpreter", timeout_s=12, session=session)
    pois = service.fetch(KEY)
    assert [p.id for p in pois] == ["node/9"]
    url, data, timeout = session.posts[0]
    assert url == "https://overpass.test/api/interpreter"
    assert data["data"] == build_query(KEY, 12)
    assert timeout == 12
    assert service.calls == 1


def test_fetch_wraps_network_errors():
    service = OverpassService(session=FakeSession(exc=requests.ConnectionError("unreachable")))
    with pytest.raises(QueryFailure) as info:
        service.fetch(KEY)
    assert info.value.kind is ErrorKind.QUERY_FAILURE
    assert isinstance(info.value.__cause__, requests.ConnectionError)


def test_fetch_wraps_http_errors():
    service = OverpassService(session=FakeSession(FakeResponse(status=504)))
    with pytest.raises(QueryFailure, match="504"):
        service.fetch(KEY)


def test_fetch_non_json_body_is_malformed():
    service = OverpassService(session=FakeSession(FakeResponse(body_error=ValueError("Expecting value"))))
    with pytest.raises(QueryFailure) as info:
        service.fetch(KEY)
    assert info.value.kind is ErrorKind.MALFORMED_RESPONSE


def test_session_headers_and_no_transport_retries_by_default():
    s = make_session()
    assert s.headers["User-Agent"].startswith("places-map/")
    assert s.get_adapter("https://overpass-api.de").max_retries.total == 0
    assert make_session(retries=2).get_adapter("https://x").max_retries.total == 2


def test_non_object_tags_are_treated_as_missing():
    payload = {"remark": 42, "elements": [
        {"type": "node", "id": 1, "lat": 1, "lon": 2, "tags": "oops"},
        {"type": "node", "id": 2, "lat": 1, "lon": 2, "tags": {"name": "ok"}},
    ]}
    pois = parse_elements(payload)
    assert [p.id for p in pois] == ["node/1", "node/2"]
    assert pois[0].name == UNNAMED and dict(pois[0].tags) == {}
    assert pois[1].name == "ok"
