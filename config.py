"""
config.py
Configuration management for the Campus Eats venue pipeline
"""

import os
import logging
from typing import Optional
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_FEED_URL = "https://cgi.csc.liv.ac.uk/~phil/Teaching/COMP228/eating_venues/data.json"

class Config:
    """Configuration management for the system"""

    def __init__(self, env_file: str = '.env'):
        self.env_file = Path(env_file)
        self.feed_url = self._get_setting('CAMPUS_EATS_FEED_URL') or DEFAULT_FEED_URL
        self.cache_path = self._get_setting('CAMPUS_EATS_CACHE_PATH') or "venue_cache.json"
        self.db_path = self._get_setting('CAMPUS_EATS_DB_PATH') or "campus_eats.db"
        self.request_timeout = self._parse_timeout(self._get_setting('CAMPUS_EATS_REQUEST_TIMEOUT'))
        self.follow_delay_seconds = 5.0  # first fix -> continuous follow, presentation only

    def _get_setting(self, name: str) -> Optional[str]:
        """Get a setting from the environment, falling back to the .env file"""
        value = os.getenv(name)
        if value:
            logger.debug(f"{name} loaded from environment variable")
            return value

        return self._load_from_env_file(name)

    def _load_from_env_file(self, name: str) -> Optional[str]:
        """Load a single setting from the .env file"""
        if not self.env_file.exists():
            return None

        try:
            with open(self.env_file, 'r') as f:
                for line in f:
                    line = line.strip()
                    if line.startswith(f'{name}='):
                        value = line.split('=', 1)[1].strip()
                        # Remove quotes if present
                        if value.startswith('"') and value.endswith('"'):
                            value = value[1:-1]
                        if value.startswith("'") and value.endswith("'"):
                            value = value[1:-1]

                        if value:
                            logger.debug(f"{name} loaded from {self.env_file}")
                            return value
        except OSError as e:
            logger.warning(f"Error reading {self.env_file}: {e}")

        return None

    @staticmethod
    def _parse_timeout(raw: Optional[str]) -> Optional[float]:
        """None keeps the transport default"""
        if not raw:
            return None
        try:
            timeout = float(raw)
        except ValueError:
            logger.warning(f"Ignoring invalid CAMPUS_EATS_REQUEST_TIMEOUT: {raw!r}")
            return None
        return timeout if timeout > 0 else None

# Global configuration instance
config = Config()
