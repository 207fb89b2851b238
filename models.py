"""
models.py
Core data models for the Campus Eats venue pipeline
"""

import hashlib
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class VenueStatus(str, Enum):
    """User-assigned marker for a venue"""
    NORMAL = "normal"
    FAVORITE = "favorite"
    DISLIKED = "disliked"

    def next(self) -> "VenueStatus":
        """Advance one step in the normal -> favorite -> disliked cycle"""
        return _STATUS_CYCLE[self]


_STATUS_CYCLE = {
    VenueStatus.NORMAL: VenueStatus.FAVORITE,
    VenueStatus.FAVORITE: VenueStatus.DISLIKED,
    VenueStatus.DISLIKED: VenueStatus.NORMAL,
}


class PipelineState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    READY = "ready"
    DEGRADED = "degraded"
    REFRESHING_STATUS = "refreshing-status"


class FailureKind(str, Enum):
    """Categorized condition published alongside a degraded view model"""
    NETWORK = "network"
    NO_DATA = "no-data"
    MALFORMED = "malformed"
    CACHE_MISS = "cache-miss"


@dataclass(frozen=True)
class Position:
    """User position in decimal degrees"""
    latitude: float
    longitude: float


def parse_coordinate(raw: Any, limit: float) -> Optional[float]:
    """Parse a textual coordinate; None when unparsable, non-finite or out of range"""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    if not math.isfinite(value) or abs(value) > limit:
        return None
    return value


def is_valid_position(position: Position) -> bool:
    """Finite latitude/longitude within ±90 / ±180"""
    return (parse_coordinate(position.latitude, 90.0) is not None
            and parse_coordinate(position.longitude, 180.0) is not None)


@dataclass(frozen=True)
class VenueRecord:
    """Dining venue as served by the feed, plus derived distance and status"""
    name: str
    building: str
    lat: str  # textual source coordinate, kept verbatim
    lon: str
    description: str
    opening_times: Tuple[str, ...] = ()
    amenities: Optional[Tuple[str, ...]] = None
    photos: Optional[Tuple[str, ...]] = None
    website: Optional[str] = None
    distance_meters: Optional[float] = None
    status: VenueStatus = VenueStatus.NORMAL

    @property
    def latitude(self) -> Optional[float]:
        return parse_coordinate(self.lat, 90.0)

    @property
    def longitude(self) -> Optional[float]:
        return parse_coordinate(self.lon, 180.0)

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        """(latitude, longitude), or None if either half is invalid"""
        latitude, longitude = self.latitude, self.longitude
        if latitude is None or longitude is None:
            return None
        return latitude, longitude

    @property
    def has_valid_coordinates(self) -> bool:
        return self.coordinates is not None

    @property
    def venue_id(self) -> str:
        """Stable identifier derived from name and building"""
        return hashlib.md5(f"{self.name}_{self.building}".encode()).hexdigest()

    def to_feed_dict(self) -> Dict[str, Any]:
        """Serialize using the feed's field names; derived fields are left out"""
        data: Dict[str, Any] = {
            'name': self.name,
            'building': self.building,
            'lat': self.lat,
            'lon': self.lon,
            'description': self.description,
            'opening_times': list(self.opening_times),
        }
        if self.amenities is not None:
            data['amenities'] = list(self.amenities)
        if self.photos is not None:
            data['photos'] = list(self.photos)
        if self.website is not None:
            data['URL'] = self.website
        return data


@dataclass(frozen=True)
class MapMarker:
    """Map annotation for a venue with valid coordinates"""
    title: str
    subtitle: str
    latitude: float
    longitude: float


@dataclass(frozen=True)
class ViewModel:
    """Ordered venue list handed to the presentation layer"""
    venues: Tuple[VenueRecord, ...] = ()
    state: PipelineState = PipelineState.IDLE
    condition: Optional[FailureKind] = None
    position: Optional[Position] = None
    markers: Tuple[MapMarker, ...] = field(default=())

    @property
    def is_degraded(self) -> bool:
        return self.state == PipelineState.DEGRADED

    @property
    def count(self) -> int:
        return len(self.venues)

    def names(self) -> List[str]:
        return [venue.name for venue in self.venues]
