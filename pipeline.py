"""
pipeline.py
Venue pipeline orchestrator: fetch, fall back to cache, enrich and publish
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, List, Optional

from models import (FailureKind, PipelineState, Position, VenueRecord, VenueStatus, ViewModel,
                    is_valid_position)
from venue_feed import VenueFeedClient
from cache_store import VenueCacheStore
from status_store import StatusStore
from location import LocationSource
from ranking_engine import enrich_venues, find_duplicate_names, map_markers
from exceptions import CacheMiss, StatusPersistError, VenueFeedError

logger = logging.getLogger(__name__)

ViewModelCallback = Callable[[ViewModel], None]

class VenuePipeline:
    """Owns the in-memory venue list and publishes ordered view models.

    Fetches run on a single worker thread, so load() never blocks the caller
    and overlapping loads are queued. Toggles and position updates may arrive
    at any time; they change in-memory state immediately and every later
    enrichment run, including the one at fetch completion, sees them.
    """

    def __init__(self, fetcher: VenueFeedClient, cache_store: VenueCacheStore,
                 status_store: StatusStore, location_source: Optional[LocationSource] = None,
                 executor: Optional[ThreadPoolExecutor] = None):
        self.fetcher = fetcher
        self.cache_store = cache_store
        self.status_store = status_store

        self._lock = threading.RLock()
        self._publish_lock = threading.RLock()
        self._raw_venues: List[VenueRecord] = []
        self._statuses = status_store.load_all()
        self._position: Optional[Position] = None
        self._state = PipelineState.IDLE
        self._condition: Optional[FailureKind] = None
        self._view_model = ViewModel()
        self._version = 0
        self._published_version = 0
        self._subscribers: List[ViewModelCallback] = []

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix='venue-fetch')
        self._persist_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='venue-persist')
        self._pending_writes: List[Future] = []

        logger.info(f"Venue pipeline initialized with {len(self._statuses)} stored statuses")

        # Last, since a location source may replay a position immediately
        self._unsubscribe_location = None
        if location_source is not None:
            self._unsubscribe_location = location_source.subscribe(self.update_position)

    @property
    def state(self) -> PipelineState:
        with self._lock:
            return self._state

    def current_view_model(self) -> ViewModel:
        with self._lock:
            return self._view_model

    def on_view_model_changed(self, callback: ViewModelCallback) -> Callable[[], None]:
        """Subscribe to published view models; returns an unsubscribe function"""
        with self._publish_lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._publish_lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def selected_venue(self, name: str) -> Optional[VenueRecord]:
        """Enriched record for the detail view, or None"""
        for venue in self.current_view_model().venues:
            if venue.name == name:
                return venue
        return None

    def load(self) -> Future:
        """Start a fetch in the background; the future resolves to the published ViewModel"""
        with self._lock:
            self._state = PipelineState.FETCHING
            self._condition = None
            view_model, version = self._rebuild_locked()
        self._publish(view_model, version)
        logger.info(f"Fetching venues from {getattr(self.fetcher, 'feed_url', 'feed')}")
        return self._executor.submit(self._run_fetch)

    def refresh(self, timeout: Optional[float] = None) -> ViewModel:
        """Blocking variant of load()"""
        return self.load().result(timeout=timeout)

    def _run_fetch(self) -> ViewModel:
        with self._lock:
            self._state = PipelineState.FETCHING

        try:
            venues = self.fetcher.fetch_venues()
        except VenueFeedError as e:
            logger.error(f"Venue fetch failed ({e.kind.value}): {e}")
            return self._fall_back_to_cache(e.kind)
        except Exception as e:
            logger.exception(f"Unexpected error fetching venues: {e}")
            return self._fall_back_to_cache(FailureKind.NETWORK)

        self.cache_store.save(venues)
        return self._apply(venues, PipelineState.READY, None)

    def _fall_back_to_cache(self, kind: FailureKind) -> ViewModel:
        try:
            cached = self.cache_store.require()
        except CacheMiss as e:
            logger.warning(f"{e}, publishing an empty list")
            return self._apply([], PipelineState.DEGRADED, e.kind)

        logger.warning(f"Using {len(cached)} cached venues after {kind.value} failure")
        return self._apply(cached, PipelineState.DEGRADED, kind)

    def _apply(self, venues: List[VenueRecord], state: PipelineState,
               condition: Optional[FailureKind]) -> ViewModel:
        duplicates = find_duplicate_names(venues)
        if duplicates:
            logger.warning(f"Venues share names and will share a status: {', '.join(duplicates)}")

        with self._lock:
            self._raw_venues = list(venues)
            self._state = state
            self._condition = condition
            view_model, version = self._rebuild_locked()

        self._publish(view_model, version)
        logger.info(f"Published {view_model.count} venues ({state.value})")
        return view_model

    def toggle_status(self, venue_name: str) -> VenueStatus:
        """Advance a venue's status one step, persist it and republish.

        REFRESHING_STATUS only lasts while the lock is held; subscribers and
        the state property see the prior ready/degraded state again.
        """
        with self._lock:
            prior_state = self._state
            self._state = PipelineState.REFRESHING_STATUS
            try:
                new_status = self._statuses.get(venue_name, VenueStatus.NORMAL).next()
                self._statuses[venue_name] = new_status
                self._schedule_status_write(dict(self._statuses))
            finally:
                self._state = prior_state
            view_model, version = self._rebuild_locked()

        self._publish(view_model, version)
        logger.info(f"Venue '{venue_name}' is now {new_status.value}")
        return new_status

    def update_position(self, position: Position) -> ViewModel:
        """Re-rank with a new user position without re-fetching.

        An invalid fix is logged and ignored; the previous position stays.
        """
        if not is_valid_position(position):
            logger.warning(f"Ignoring invalid position {position.latitude}, {position.longitude}")
            return self.current_view_model()

        with self._lock:
            previous = self._position
            self._position = position
            try:
                view_model, version = self._rebuild_locked()
            except ValueError as e:
                self._position = previous
                logger.warning(f"Could not rank venues for position {position.latitude}, "
                               f"{position.longitude}: {e}")
                return self._view_model
        self._publish(view_model, version)
        return view_model

    def clear_position(self) -> ViewModel:
        with self._lock:
            self._position = None
            view_model, version = self._rebuild_locked()
        self._publish(view_model, version)
        return view_model

    def _rebuild_locked(self):
        venues = enrich_venues(self._raw_venues, self._statuses, self._position)
        self._version += 1
        self._view_model = ViewModel(
            venues=tuple(venues),
            state=self._state,
            condition=self._condition,
            position=self._position,
            markers=tuple(map_markers(venues)),
        )
        return self._view_model, self._version

    def _publish(self, view_model: ViewModel, version: int) -> None:
        with self._publish_lock:
            # A slower thread must not overwrite a newer view model
            if version < self._published_version:
                return
            self._published_version = version
            for callback in list(self._subscribers):
                try:
                    callback(view_model)
                except Exception as e:
                    logger.exception(f"View model subscriber failed: {e}")

    def _schedule_status_write(self, statuses) -> None:
        self._pending_writes = [f for f in self._pending_writes if not f.done()]
        self._pending_writes.append(self._persist_executor.submit(self._write_statuses, statuses))

    def _write_statuses(self, statuses) -> None:
        try:
            self.status_store.save_all(statuses)
        except StatusPersistError as e:
            logger.warning(f"{e}; the change is kept for this session only")
        except Exception as e:
            logger.exception(f"Unexpected error saving venue statuses: {e}")

    def flush(self, timeout: Optional[float] = None) -> None:
        """Wait for outstanding status writes"""
        with self._lock:
            pending = list(self._pending_writes)
        if pending:
            wait(pending, timeout=timeout)

    def close(self) -> None:
        if self._unsubscribe_location is not None:
            self._unsubscribe_location()
            self._unsubscribe_location = None
        self._persist_executor.shutdown(wait=True)
        if self._owns_executor:
            self._executor.shutdown(wait=True)
        logger.debug("Venue pipeline closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
