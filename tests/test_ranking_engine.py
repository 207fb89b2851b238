import pytest

from models import MapMarker, Position, VenueStatus
from ranking_engine import (
    distance_between,
    enrich_venues,
    filter_by_status,
    find_duplicate_names,
    map_markers,
)
from tests.conftest import make_venue

USER = Position(53.40, -2.97)


def test_valid_coordinates_rank_before_invalid():
    venues = [make_venue("A", lat="53.40", lon="-2.97"), make_venue("B", lat="bad", lon="bad")]

    result = enrich_venues(venues, {}, USER)

    assert [v.name for v in result] == ["A", "B"]
    assert result[0].distance_meters == pytest.approx(0.0, abs=1.0)
    assert result[1].distance_meters is None


def test_sorted_by_distance_with_unknowns_last_in_input_order():
    venues = [
        make_venue("no-coords-1", lat="", lon=""),
        make_venue("far", lat="53.45", lon="-2.97"),
        make_venue("near", lat="53.401", lon="-2.97"),
        make_venue("no-coords-2", lat="x", lon="y"),
        make_venue("middle", lat="53.42", lon="-2.97"),
        make_venue("no-coords-3", lat="53.40", lon="oops"),
    ]

    result = enrich_venues(venues, {}, USER)

    assert [v.name for v in result] == [
        "near", "middle", "far", "no-coords-1", "no-coords-2", "no-coords-3",
    ]
    known = [v.distance_meters for v in result if v.distance_meters is not None]
    assert known == sorted(known)


def test_equal_distances_keep_input_order():
    venues = [make_venue("first"), make_venue("second"), make_venue("third")]
    result = enrich_venues(venues, {}, USER)
    assert [v.name for v in result] == ["first", "second", "third"]


def test_without_position_keeps_fetch_order_and_no_distance():
    venues = [make_venue("Z", lat="53.50"), make_venue("A", lat="53.40"), make_venue("M", lat="bad")]

    result = enrich_venues(venues, {"A": VenueStatus.FAVORITE})

    assert [v.name for v in result] == ["Z", "A", "M"]
    assert all(v.distance_meters is None for v in result)
    assert result[1].status == VenueStatus.FAVORITE


def test_status_defaults_to_normal_and_stale_entries_are_ignored():
    statuses = {"A": VenueStatus.DISLIKED, "Gone": VenueStatus.FAVORITE}
    result = enrich_venues([make_venue("A"), make_venue("B")], statuses, USER)
    assert {v.name: v.status for v in result} == {"A": VenueStatus.DISLIKED, "B": VenueStatus.NORMAL}


def test_enrichment_is_pure():
    venues = [make_venue("far", lat="53.45"), make_venue("near", lat="53.401"), make_venue("x", lat="bad")]
    statuses = {"near": VenueStatus.FAVORITE}
    snapshot = (list(venues), dict(statuses))

    first = enrich_venues(venues, statuses, USER)
    second = enrich_venues(venues, statuses, USER)

    assert first == second
    assert (venues, statuses) == snapshot
    assert all(v.distance_meters is None and v.status == VenueStatus.NORMAL for v in venues)


def test_previous_enrichment_is_replaced_not_accumulated():
    once = enrich_venues([make_venue("A", lat="53.45")], {"A": VenueStatus.FAVORITE}, USER)
    again = enrich_venues(once, {}, None)
    assert again[0].status == VenueStatus.NORMAL
    assert again[0].distance_meters is None


def test_distance_is_in_meters():
    # One hundredth of a degree of latitude is roughly 1.1 km
    venue = make_venue("A", lat="53.41", lon="-2.97")
    assert distance_between(USER, venue) == pytest.approx(1112, rel=0.01)
    assert distance_between(USER, make_venue("B", lat="bad")) is None


def test_map_markers_skip_invalid_coordinates():
    venues = [make_venue("A", lat="53.40", lon="-2.97", building="Guild"), make_venue("B", lat="bad")]
    assert map_markers(venues) == [MapMarker(title="A", subtitle="Guild", latitude=53.40, longitude=-2.97)]


def test_find_duplicate_names():
    venues = [make_venue("A"), make_venue("B"), make_venue("A", building="Other")]
    assert find_duplicate_names(venues) == ["A"]
    assert find_duplicate_names(venues[:2]) == []


def test_filter_by_status():
    result = enrich_venues([make_venue("A"), make_venue("B")], {"B": VenueStatus.FAVORITE})
    assert [v.name for v in filter_by_status(result, VenueStatus.FAVORITE)] == ["B"]
