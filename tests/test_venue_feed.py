import json

import pytest
import requests

from exceptions import DecodeError, EmptyResponseError, NetworkError
from models import FailureKind
from venue_feed import VenueFeedClient, build_feed_payload, parse_feed_payload
from tests.conftest import FEED_URL, FakeSession, make_response, make_venue

SPHINX = {
    "name": "The Sphinx",
    "building": "Student Guild",
    "lat": "53.4055",
    "lon": "-2.9660",
    "description": "Pizza and pasta",
    "opening_times": ["Mon-Fri 11:00-15:00", "Sat closed"],
    "amenities": ["Seating", "Wi-Fi"],
    "URL": "https://www.liverpoolguild.org/sphinx",
}
BAD_COORDS = {
    "name": "Pop-up Van",
    "building": "Quad",
    "lat": "bad",
    "lon": "bad",
    "description": "Moves around",
    "opening_times": [],
}


def client_for(body, status_code=200):
    session = FakeSession(response=make_response(body, status_code))
    return VenueFeedClient(FEED_URL, session=session), session


def test_fetch_parses_feed_and_keeps_order():
    payload = {"food_venues": [SPHINX, BAD_COORDS], "last_modified": "2024-01-01"}
    client, session = client_for(json.dumps(payload).encode())

    venues = client.fetch_venues()

    assert [v.name for v in venues] == ["The Sphinx", "Pop-up Van"]
    assert venues[0].opening_times == ("Mon-Fri 11:00-15:00", "Sat closed")
    assert venues[0].amenities == ("Seating", "Wi-Fi")
    assert venues[0].photos is None
    assert venues[0].website == "https://www.liverpoolguild.org/sphinx"
    assert venues[1].coordinates is None
    assert session.calls == [(FEED_URL, None)]


def test_fetch_uses_configured_timeout():
    session = FakeSession(response=make_response(b'{"food_venues": []}'))
    client = VenueFeedClient(FEED_URL, session=session, timeout=4.0)
    assert client.fetch_venues() == []
    assert session.calls == [(FEED_URL, 4.0)]


def test_transport_error_is_network_error():
    session = FakeSession(error=requests.exceptions.ConnectionError("unreachable"))
    client = VenueFeedClient(FEED_URL, session=session)

    with pytest.raises(NetworkError) as excinfo:
        client.fetch_venues()
    assert excinfo.value.kind == FailureKind.NETWORK
    assert client.get_usage_stats()['failed_requests'] == 1


def test_http_error_status_is_network_error():
    client, _ = client_for(b'{"food_venues": []}', status_code=503)
    with pytest.raises(NetworkError):
        client.fetch_venues()


@pytest.mark.parametrize("body", [b"", b"   \n"])
def test_empty_body_is_empty_response(body):
    client, _ = client_for(body)
    with pytest.raises(EmptyResponseError) as excinfo:
        client.fetch_venues()
    assert excinfo.value.kind == FailureKind.NO_DATA


def test_invalid_json_is_decode_error():
    client, _ = client_for(b"<html>maintenance</html>")
    with pytest.raises(DecodeError) as excinfo:
        client.fetch_venues()
    assert excinfo.value.kind == FailureKind.MALFORMED


@pytest.mark.parametrize("payload", [
    [],
    {"venues": []},
    {"food_venues": [{k: v for k, v in SPHINX.items() if k != "building"}]},
    {"food_venues": [dict(SPHINX, name="   ")]},
    {"food_venues": [dict(SPHINX, opening_times="Mon-Fri")]},
    {"food_venues": [dict(SPHINX, URL=42)]},
    {"food_venues": [SPHINX, "not a venue"]},
])
def test_schema_mismatch_fails_whole_payload(payload):
    with pytest.raises(DecodeError):
        parse_feed_payload(payload)


def test_numeric_coordinates_are_kept_as_text():
    venues = parse_feed_payload({"food_venues": [dict(SPHINX, lat=53.4, lon=-2.97)]})
    assert venues[0].lat == "53.4"
    assert venues[0].coordinates == (53.4, -2.97)


def test_blank_url_becomes_none():
    venues = parse_feed_payload({"food_venues": [dict(SPHINX, URL="  ")]})
    assert venues[0].website is None


def test_payload_builder_matches_parser():
    venues = [make_venue("A", amenities=("Seating",)), make_venue("B", lat="bad")]
    assert parse_feed_payload(build_feed_payload(venues)) == venues


def test_usage_stats_count_requests():
    client, _ = client_for(b'{"food_venues": []}')
    client.fetch_venues()
    client.fetch_venues()
    stats = client.get_usage_stats()
    assert stats['total_requests'] == 2
    assert stats['failed_requests'] == 0
    assert stats['last_request_time'] > 0
