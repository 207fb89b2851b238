"""
status_store.py
Durable venue name -> status mapping
"""

import json
import logging
import sqlite3
from typing import Dict

from models import VenueStatus
from database import PersistentKeyValueStore
from exceptions import StatusPersistError

logger = logging.getLogger(__name__)

STATUS_KEY = "venue_statuses"

class StatusStore:
    """Reads and writes the whole status mapping under a single preference key"""

    def __init__(self, kv_store: PersistentKeyValueStore, key: str = STATUS_KEY):
        self.kv_store = kv_store
        self.key = key

    def load_all(self) -> Dict[str, VenueStatus]:
        """Get the persisted mapping; empty when nothing is stored or it is unreadable"""
        try:
            raw = self.kv_store.get(self.key)
        except (sqlite3.Error, OSError) as e:
            logger.warning(f"Could not read venue statuses: {e}")
            return {}

        if not raw:
            return {}

        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Ignoring malformed venue statuses: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning("Ignoring venue statuses that are not a JSON object")
            return {}

        statuses = {}
        for name, value in data.items():
            try:
                statuses[name] = VenueStatus(value)
            except ValueError:
                logger.warning(f"Skipping unknown status {value!r} for venue '{name}'")
        return statuses

    def save_all(self, statuses: Dict[str, VenueStatus]) -> None:
        """Overwrite the persisted mapping in one write"""
        payload = json.dumps({name: VenueStatus(status).value for name, status in statuses.items()},
                             sort_keys=True)
        try:
            self.kv_store.set(self.key, payload)
        except (sqlite3.Error, OSError) as e:
            raise StatusPersistError(f"Could not save venue statuses: {e}") from e
        logger.debug(f"Saved {len(statuses)} venue statuses")
