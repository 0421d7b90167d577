"""
Durable key/value storage backed by a single SQLite file.

Every value is serialized as JSON and written in its own transaction, so a
reader sees either the previous value or the new one, never a mix.
"""

import contextlib
import json
import logging
import sqlite3
import threading
from typing import Any, Iterator

from .domain import StorageCorrupt
from .utils import time_now

logger = logging.getLogger(__name__)


class PersistentKVStore:
    """Key -> JSON value store. The only component touching the database file.

    Attributes:
        db_path (str): Path to the SQLite database file
        lock (threading.RLock): Serializes writers; callers hold it across read-modify-write
    """

    def __init__(self, db_path: str = "localnotes.db"):
        self.db_path = db_path
        self.lock = threading.RLock()
        self._create_table()

    @contextlib.contextmanager
    def _get_db_connection(self) -> Iterator[sqlite3.Connection]:
        """Open a connection with WAL journaling and full sync, closed on exit."""
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=FULL;")
        try:
            yield conn
        finally:
            conn.close()

    def _create_table(self):
        with self._get_db_connection() as conn:
            conn.execute("""
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_time TEXT NOT NULL
            )
            """)
            conn.commit()

    def read(self, key: str, default: Any = None) -> Any:
        """
        Return the decoded value stored under ``key``.

        Args:
            key: Storage key
            default: Returned when nothing is stored under the key

        Raises:
            StorageCorrupt: The stored text is not valid JSON
        """
        with self._get_db_connection() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key=?", (key,)).fetchone()
        if row is None:
            return default
        try:
            value = json.loads(row[0])
        except (TypeError, ValueError) as e:
            raise StorageCorrupt(key, str(e)) from e
        return default if value is None else value

    def write(self, key: str, value: Any) -> None:
        """Replace the value stored under ``key`` in a single transaction."""
        payload = json.dumps(value)
        with self.lock:
            with self._get_db_connection() as conn:
                try:
                    conn.execute(
                        "INSERT INTO kv (key, value, updated_time) VALUES (?, ?, ?) "
                        "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_time=excluded.updated_time",
                        (key, payload, time_now()),
                    )
                    conn.commit()
                except sqlite3.Error:
                    conn.rollback()
                    logger.exception("Failed to write key %r", key)
                    raise
        logger.debug("Wrote %d bytes to %r", len(payload), key)

    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if a value was removed."""
        with self.lock:
            with self._get_db_connection() as conn:
                cursor = conn.execute("DELETE FROM kv WHERE key=?", (key,))
                conn.commit()
                return cursor.rowcount > 0

