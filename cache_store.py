"""
cache_store.py
Local snapshot of the last successfully fetched venue list
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from models import VenueRecord
from exceptions import CacheMiss, DecodeError
from venue_feed import build_feed_payload, parse_feed_payload

logger = logging.getLogger(__name__)

class VenueCacheStore:
    """Single-slot JSON cache; every save clobbers the previous snapshot"""

    def __init__(self, path: str = "venue_cache.json"):
        self.path = Path(path)

    def save(self, venues: List[VenueRecord]) -> bool:
        """Best-effort overwrite of the cache file. Never raises."""
        payload = build_feed_payload(venues)
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            # Write beside the target then rename so readers never see a partial file
            fd, tmp_name = tempfile.mkstemp(prefix='.venue_cache.', suffix='.tmp',
                                            dir=str(self.path.parent))
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(payload, f, ensure_ascii=False)
            os.replace(tmp_name, self.path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Could not write venue cache {self.path}: {e}")
            return False
        finally:
            if tmp_name and os.path.exists(tmp_name):
                os.remove(tmp_name)

        logger.info(f"Cached {len(venues)} venues to {self.path}")
        return True

    def load(self) -> Optional[List[VenueRecord]]:
        """Read the snapshot; a missing or malformed file counts as absent"""
        if not self.path.exists():
            logger.info(f"No venue cache at {self.path}")
            return None

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            venues = parse_feed_payload(data)
        except (OSError, ValueError, DecodeError) as e:
            logger.warning(f"Ignoring unreadable venue cache {self.path}: {e}")
            return None

        logger.info(f"Loaded {len(venues)} venues from cache {self.path}")
        return venues

    def require(self) -> List[VenueRecord]:
        """Like load(), but raises CacheMiss when there is nothing to show"""
        venues = self.load()
        if not venues:
            raise CacheMiss(f"No usable venue cache at {self.path}")
        return venues

    def exists(self) -> bool:
        return self.path.exists()

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info(f"Removed venue cache {self.path}")
