import asyncio
from urllib.parse import parse_qs

import httpx

from watermap.config.settings import Settings
from watermap.core.geo import BoundingBox
from watermap.core.result import Err, Ok
from watermap.domain.errors import FetchErrorKind
from watermap.ingestion.overpass_client import OverpassClient, parse_elements
from watermap.ingestion.queries import QueryTemplate

BOUNDS = BoundingBox(south=56.9, west=24.0, north=57.0, east=24.2)
QUERY = QueryTemplate(layer="water", name="test", text='node["amenity"="drinking_water"]({{bbox}});out body;')


def _client(handler) -> OverpassClient:
    settings = Settings.model_validate({"overpass": {"url": "https://overpass.test/api/interpreter"}})
    return OverpassClient(settings, transport=httpx.MockTransport(handler))


def _fetch(handler):
    return asyncio.run(_client(handler).fetch_facilities(QUERY, BOUNDS))


def test_success_preserves_source_order_and_sends_bbox():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["query"] = parse_qs(request.content.decode())["data"][0]
        return httpx.Response(
            200,
            json={
                "elements": [
                    {"type": "node", "id": 2, "lat": 56.95, "lon": 24.11, "tags": {"amenity": "drinking_water"}},
                    {"type": "node", "id": 1, "lat": 56.96, "lon": 24.12, "tags": {"man_made": "water_tap"}},
                ]
            },
        )

    outcome = _fetch(handler)

    assert isinstance(outcome, Ok)
    assert [f.id for f in outcome.value] == ["node/2", "node/1"]
    assert outcome.value[0].details.source_type == "drinking_water"
    assert seen["method"] == "POST"
    assert "(56.9,24.0,57.0,24.2)" in seen["query"]


def test_empty_elements_is_a_success():
    assert _fetch(lambda request: httpx.Response(200, json={"elements": []})) == Ok([])


def test_http_error_status_is_network():
    outcome = _fetch(lambda request: httpx.Response(429))
    assert isinstance(outcome, Err)
    assert outcome.error.kind is FetchErrorKind.NETWORK
    assert "429" in outcome.error.message


def test_connection_failure_is_network():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    outcome = _fetch(handler)
    assert isinstance(outcome, Err)
    assert outcome.error.kind is FetchErrorKind.NETWORK


def test_transport_timeout_is_timeout():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    outcome = _fetch(handler)
    assert isinstance(outcome, Err)
    assert outcome.error.kind is FetchErrorKind.TIMEOUT


def test_non_json_body_is_parse():
    outcome = _fetch(lambda request: httpx.Response(200, text="<html>rate limited</html>"))
    assert isinstance(outcome, Err)
    assert outcome.error.kind is FetchErrorKind.PARSE


def test_missing_elements_list_is_parse():
    outcome = parse_elements({"remark": "runtime error"}, "water")
    assert isinstance(outcome, Err)
    assert outcome.error.kind is FetchErrorKind.PARSE
    assert isinstance(parse_elements([1, 2], "water"), Err)
    assert isinstance(parse_elements({"elements": ["x"]}, "water"), Err)


def test_elements_without_position_are_skipped():
    payload = {
        "elements": [
            {"type": "way", "id": 7, "center": {"lat": 56.95, "lon": 24.1}, "tags": {"amenity": "toilets"}},
            {"type": "relation", "id": 8, "tags": {"amenity": "toilets"}},
            {"type": "node", "id": 9, "lat": 200, "lon": 24.1},
        ]
    }
    outcome = parse_elements(payload, "toilet")
    assert isinstance(outcome, Ok)
    assert [f.id for f in outcome.value] == ["way/7"]
    assert outcome.value[0].details.kind == "toilet"
