"""
venue_feed.py
Remote feed client for campus dining venue data
"""

import requests
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from models import VenueRecord
from exceptions import DecodeError, EmptyResponseError, NetworkError

logger = logging.getLogger(__name__)

FEED_LIST_KEY = 'food_venues'
REQUIRED_TEXT_FIELDS = ('name', 'building', 'description')


def _text_field(entry: Dict[str, Any], key: str, index: int) -> str:
    value = entry.get(key)
    if not isinstance(value, str):
        raise DecodeError(f"Venue #{index}: field '{key}' must be a string")
    return value


def _coordinate_field(entry: Dict[str, Any], key: str, index: int) -> str:
    """Coordinates are textual in the feed; numbers are accepted and kept as text"""
    value = entry.get(key)
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise DecodeError(f"Venue #{index}: field '{key}' must be a string")


def _string_list(entry: Dict[str, Any], key: str, index: int,
                 required: bool = False) -> Optional[Tuple[str, ...]]:
    value = entry.get(key)
    if value is None:
        if required:
            raise DecodeError(f"Venue #{index}: field '{key}' is required")
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise DecodeError(f"Venue #{index}: field '{key}' must be a list of strings")
    return tuple(value)


def venue_from_dict(entry: Any, index: int = 0) -> VenueRecord:
    """Build a VenueRecord from one feed entry, raising DecodeError on schema mismatch"""
    if not isinstance(entry, dict):
        raise DecodeError(f"Venue #{index}: expected an object, got {type(entry).__name__}")

    fields = {key: _text_field(entry, key, index) for key in REQUIRED_TEXT_FIELDS}
    if not fields['name'].strip():
        raise DecodeError(f"Venue #{index}: name must not be empty")

    website = entry.get('URL')
    if website is not None:
        if not isinstance(website, str):
            raise DecodeError(f"Venue #{index}: field 'URL' must be a string")
        website = website.strip() or None

    return VenueRecord(
        name=fields['name'],
        building=fields['building'],
        lat=_coordinate_field(entry, 'lat', index),
        lon=_coordinate_field(entry, 'lon', index),
        description=fields['description'],
        opening_times=_string_list(entry, 'opening_times', index, required=True),
        amenities=_string_list(entry, 'amenities', index),
        photos=_string_list(entry, 'photos', index),
        website=website,
    )


def parse_feed_payload(data: Any) -> List[VenueRecord]:
    """Decode a {"food_venues": [...]} payload; any bad entry fails the whole payload"""
    if not isinstance(data, dict):
        raise DecodeError("Feed payload must be a JSON object")
    entries = data.get(FEED_LIST_KEY)
    if not isinstance(entries, list):
        raise DecodeError(f"Feed payload is missing the '{FEED_LIST_KEY}' list")
    return [venue_from_dict(entry, index) for index, entry in enumerate(entries)]


def build_feed_payload(venues: List[VenueRecord]) -> Dict[str, Any]:
    """Inverse of parse_feed_payload"""
    return {FEED_LIST_KEY: [venue.to_feed_dict() for venue in venues]}


class VenueFeedClient:
    """Fetches the venue list from the configured feed URL"""

    def __init__(self, feed_url: str, session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        self.feed_url = feed_url
        self.session = session or requests.Session()
        self.timeout = timeout
        self.request_count = 0
        self.failure_count = 0
        self.last_request_time = 0

    def fetch_venues(self) -> List[VenueRecord]:
        """Perform one GET against the feed. No retries; errors are categorized and raised."""
        try:
            venues = self._fetch()
        except (NetworkError, EmptyResponseError, DecodeError):
            self.failure_count += 1
            raise

        logger.info(f"Fetched {len(venues)} venues from {self.feed_url}")
        return venues

    def _fetch(self) -> List[VenueRecord]:
        self.request_count += 1
        self.last_request_time = time.time()

        try:
            response = self.session.get(self.feed_url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Venue feed request error: {e}")
            raise NetworkError(str(e)) from e

        if not response.content or not response.content.strip():
            logger.error(f"Venue feed returned an empty body: {self.feed_url}")
            raise EmptyResponseError(f"No data received from {self.feed_url}")

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Error decoding venue feed JSON: {e}")
            raise DecodeError(f"Invalid JSON from {self.feed_url}: {e}") from e

        try:
            return parse_feed_payload(data)
        except DecodeError as e:
            logger.error(f"Venue feed schema mismatch: {e}")
            raise

    def get_usage_stats(self) -> Dict[str, Any]:
        """Get feed request statistics"""
        return {
            'total_requests': self.request_count,
            'failed_requests': self.failure_count,
            'last_request_time': self.last_request_time,
        }
