"""
database.py
Key-value preference storage for the Campus Eats venue pipeline
"""

import sqlite3
import logging
import time
from datetime import datetime
from typing import Dict, Optional

logger = logging.getLogger(__name__)

class PersistentKeyValueStore:
    """Interface for application-private preference storage"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class InMemoryKeyValueStore(PersistentKeyValueStore):
    """Process-local store, used for tests and throwaway sessions"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class SQLiteKeyValueStore(PersistentKeyValueStore):
    """Handles preference persistence in a single SQLite table"""

    def __init__(self, db_path: str = "campus_eats.db"):
        self.db_path = db_path
        self.init_database()

    def get_connection(self, timeout: float = 30.0, retries: int = 3):
        """Get a database connection with timeout and retry logic"""
        for attempt in range(retries):
            try:
                conn = sqlite3.connect(self.db_path, timeout=timeout)
                # Enable WAL mode for better concurrent access
                conn.execute("PRAGMA journal_mode=WAL")
                return conn
            except sqlite3.OperationalError as e:
                if "database is locked" in str(e) and attempt < retries - 1:
                    wait_time = (attempt + 1) * 0.5
                    logger.warning(f"Database locked, retrying in {wait_time}s (attempt {attempt + 1}/{retries})")
                    time.sleep(wait_time)
                    continue
                raise

        raise sqlite3.OperationalError("Failed to connect to database after all retries")

    def init_database(self):
        """Initialize database with the preferences table"""
        with sqlite3.connect(self.db_path, timeout=30.0) as conn:
            cursor = conn.cursor()
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS preferences (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP
                )
            ''')
            conn.commit()
        logger.debug(f"Preference database ready at {self.db_path}")

    def get(self, key: str) -> Optional[str]:
        conn = self.get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute('SELECT value FROM preferences WHERE key = ?', (key,))
            row = cursor.fetchone()
            return row[0] if row else None
        finally:
            conn.close()

    def set(self, key: str, value: str) -> None:
        """Replace the value for key in one transaction"""
        conn = self.get_connection()
        try:
            with conn:
                conn.execute('''
                    INSERT OR REPLACE INTO preferences (key, value, updated_at)
                    VALUES (?, ?, ?)
                ''', (key, value, datetime.now().isoformat()))
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        conn = self.get_connection()
        try:
            with conn:
                conn.execute('DELETE FROM preferences WHERE key = ?', (key,))
        finally:
            conn.close()
