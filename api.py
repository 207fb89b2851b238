"""
api.py
API interface for the Campus Eats venue pipeline
"""

import logging
from typing import Any, Dict, List, Optional

from fuzzywuzzy import fuzz

from config import config
from models import Position, VenueRecord, VenueStatus, ViewModel, is_valid_position
from venue_feed import VenueFeedClient
from cache_store import VenueCacheStore
from database import SQLiteKeyValueStore
from status_store import StatusStore
from location import LocationSource
from ranking_engine import filter_by_status
from pipeline import VenuePipeline

logger = logging.getLogger(__name__)

def format_venue(venue: VenueRecord) -> Dict[str, Any]:
    """Flatten an enriched venue for output"""
    return {
        'id': venue.venue_id,
        'name': venue.name,
        'building': venue.building,
        'latitude': venue.latitude,
        'longitude': venue.longitude,
        'description': venue.description,
        'opening_times': list(venue.opening_times),
        'amenities': list(venue.amenities) if venue.amenities is not None else None,
        'photos': list(venue.photos) if venue.photos is not None else None,
        'website': venue.website,
        'distance_meters': venue.distance_meters,
        'status': venue.status.value,
    }


class CampusEatsAPI:
    """Simple API wrapper around the venue pipeline"""

    def __init__(self, feed_url: str = None, cache_path: str = None, db_path: str = None,
                 location_source: Optional[LocationSource] = None,
                 pipeline: Optional[VenuePipeline] = None):
        """Build the pipeline from configuration unless one is supplied"""
        if pipeline is None:
            fetcher = VenueFeedClient(feed_url or config.feed_url, timeout=config.request_timeout)
            cache_store = VenueCacheStore(cache_path or config.cache_path)
            status_store = StatusStore(SQLiteKeyValueStore(db_path or config.db_path))
            pipeline = VenuePipeline(fetcher, cache_store, status_store, location_source)
        self.pipeline = pipeline
        logger.info("Campus Eats API initialized")

    def refresh(self, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Fetch venues, falling back to the cache, and wait for the result"""
        try:
            view_model = self.pipeline.refresh(timeout=timeout)
        except Exception as e:
            error_msg = f"Error refreshing venues: {str(e)}"
            logger.error(error_msg)
            return {"success": False, "error": error_msg}

        return self._summarize(view_model)

    def list_venues(self, latitude: float = None, longitude: float = None,
                    limit: int = None) -> Dict[str, Any]:
        """Current venues, ranked by distance when a position is given"""
        if latitude is not None and longitude is not None:
            position = Position(latitude, longitude)
            if not is_valid_position(position):
                return {"success": False, "error": f"Invalid position: {latitude}, {longitude}"}
            view_model = self.pipeline.update_position(position)
        else:
            view_model = self.pipeline.current_view_model()

        result = self._summarize(view_model)
        venues = [format_venue(v) for v in view_model.venues]
        if limit is not None:
            venues = venues[:limit]
        result["venues"] = venues
        return result

    def get_venue(self, name: str) -> Dict[str, Any]:
        venue = self.pipeline.selected_venue(name)
        if venue is None:
            return {
                "success": False,
                "error": f"Venue '{name}' not found",
                "suggestions": self._suggest_names(name),
            }
        return {"success": True, "venue": format_venue(venue)}

    def toggle_status(self, name: str) -> Dict[str, Any]:
        """Cycle a venue through normal -> favorite -> disliked"""
        known = self.pipeline.selected_venue(name) is not None
        status = self.pipeline.toggle_status(name)
        self.pipeline.flush()

        result = {"success": True, "name": name, "status": status.value}
        if not known:
            result["warning"] = f"Venue '{name}' is not in the current list"
        return result

    def get_favorites(self) -> Dict[str, Any]:
        favorites = filter_by_status(self.pipeline.current_view_model().venues, VenueStatus.FAVORITE)
        venues = [format_venue(v) for v in favorites]
        return {"success": True, "venues": venues, "count": len(venues)}

    def get_system_status(self) -> Dict[str, Any]:
        view_model = self.pipeline.current_view_model()
        status_counts = {status.value: 0 for status in VenueStatus}
        for venue in view_model.venues:
            status_counts[venue.status.value] += 1

        stats = {
            "state": view_model.state.value,
            "condition": view_model.condition.value if view_model.condition else None,
            "venue_count": view_model.count,
            "mappable_venues": len(view_model.markers),
            "cache_present": self.pipeline.cache_store.exists(),
            "cache_path": str(self.pipeline.cache_store.path),
            "status_counts": status_counts,
        }
        if hasattr(self.pipeline.fetcher, 'get_usage_stats'):
            stats["feed_usage"] = self.pipeline.fetcher.get_usage_stats()
        return {"success": True, "stats": stats}

    def close(self) -> None:
        self.pipeline.close()

    def _summarize(self, view_model: ViewModel) -> Dict[str, Any]:
        return {
            "success": True,
            "state": view_model.state.value,
            "degraded": view_model.is_degraded,
            "condition": view_model.condition.value if view_model.condition else None,
            "count": view_model.count,
        }

    def _suggest_names(self, query: str, limit: int = 3) -> List[str]:
        """Closest venue names, for 'did you mean' hints"""
        scored = []
        for venue in self.pipeline.current_view_model().venues:
            score = fuzz.ratio(query.lower(), venue.name.lower())
            if score > 50:
                scored.append((score, venue.name))
        scored.sort(key=lambda x: x[0], reverse=True)
        return [name for _, name in scored[:limit]]
