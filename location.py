"""
location.py
Location sources that push user positions into the pipeline
"""

import logging
import threading
from typing import Callable, List, Optional

from models import Position

logger = logging.getLogger(__name__)

PositionCallback = Callable[[Position], None]
Unsubscribe = Callable[[], None]


class LocationSource:
    """Delivers zero or more position updates to subscribers"""

    def subscribe(self, callback: PositionCallback) -> Unsubscribe:
        raise NotImplementedError


class ManualLocationSource(LocationSource):
    """Positions are pushed by the caller; the latest one is replayed to new subscribers"""

    def __init__(self, initial: Optional[Position] = None):
        self._lock = threading.RLock()
        self._subscribers: List[PositionCallback] = []
        self.last_position = initial

    def subscribe(self, callback: PositionCallback) -> Unsubscribe:
        with self._lock:
            self._subscribers.append(callback)
            last = self.last_position
        if last is not None:
            callback(last)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def push(self, latitude: float, longitude: float) -> Position:
        position = Position(latitude=latitude, longitude=longitude)
        with self._lock:
            self.last_position = position
            subscribers = list(self._subscribers)
        logger.debug(f"Position update: {latitude}, {longitude}")
        for callback in subscribers:
            callback(position)
        return position


class StaticLocationSource(LocationSource):
    """A single fixed position, e.g. from --lat/--lng on the command line"""

    def __init__(self, latitude: float, longitude: float):
        self.position = Position(latitude=latitude, longitude=longitude)

    def subscribe(self, callback: PositionCallback) -> Unsubscribe:
        callback(self.position)
        return lambda: None
