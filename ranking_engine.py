"""
ranking_engine.py
Enrichment and distance ranking for campus dining venues
"""

import logging
from collections import Counter
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

from geopy.distance import great_circle

from models import MapMarker, Position, VenueRecord, VenueStatus

logger = logging.getLogger(__name__)


def distance_between(position: Position, venue: VenueRecord) -> Optional[float]:
    """Great-circle distance in meters, or None when the venue has no valid coordinates"""
    coordinates = venue.coordinates
    if coordinates is None:
        return None
    return great_circle((position.latitude, position.longitude), coordinates).meters


def enrich_venues(venues: Iterable[VenueRecord], statuses: Dict[str, VenueStatus],
                  position: Optional[Position] = None) -> List[VenueRecord]:
    """Merge status and distance into the raw venues and order them for display.

    With a position, venues are sorted by ascending distance; venues without a
    distance keep their input order after all others. Without a position the
    input order is kept and any previous distance is cleared. Inputs are never
    modified.
    """
    enriched = []
    for venue in venues:
        distance = distance_between(position, venue) if position is not None else None
        enriched.append(replace(
            venue,
            status=statuses.get(venue.name, VenueStatus.NORMAL),
            distance_meters=distance,
        ))

    if position is None:
        return enriched

    # sorted() is stable, so unknown distances stay in input order
    return sorted(enriched, key=_distance_sort_key)


def _distance_sort_key(venue: VenueRecord):
    if venue.distance_meters is None:
        return (1, 0.0)
    return (0, venue.distance_meters)


def map_markers(venues: Iterable[VenueRecord]) -> List[MapMarker]:
    """Markers for every venue that can be placed on the map"""
    markers = []
    for venue in venues:
        coordinates = venue.coordinates
        if coordinates is None:
            continue
        markers.append(MapMarker(
            title=venue.name,
            subtitle=venue.building,
            latitude=coordinates[0],
            longitude=coordinates[1],
        ))
    return markers


def find_duplicate_names(venues: Iterable[VenueRecord]) -> List[str]:
    """Names shared by more than one venue; those collide on status and selection"""
    counts = Counter(venue.name for venue in venues)
    return sorted(name for name, count in counts.items() if count > 1)


def filter_by_status(venues: Iterable[VenueRecord], status: VenueStatus) -> List[VenueRecord]:
    return [venue for venue in venues if venue.status == status]
