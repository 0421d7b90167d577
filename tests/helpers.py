import os
import sqlite3
import tempfile
import unittest

from localnotes.config import Settings
from localnotes.services import CredentialStore, NoteStore, SessionManager
from localnotes.storage import PersistentKVStore


class StoreTestCase(unittest.TestCase):
    """Gives each test a fresh SQLite file and the stores built on it."""

    autosave_delay = 0.05

    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.db_path = os.path.join(tmp.name, "notes.db")
        self.settings = Settings(db_path=self.db_path, autosave_delay=self.autosave_delay)
        self.kv = PersistentKVStore(self.db_path)
        self.credentials = CredentialStore(self.kv)
        self.sessions = SessionManager(self.kv)
        self.note_store = NoteStore(self.kv)

    def corrupt(self, key, text="{not json"):
        """Store raw, undecodable text under a key, bypassing the JSON layer."""
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute(
                "INSERT OR REPLACE INTO kv (key, value, updated_time) VALUES (?, ?, ?)",
                (key, text, "2024-01-01T00:00:00+00:00"),
            )
            conn.commit()
        finally:
            conn.close()


class AsyncStoreTestCase(StoreTestCase, unittest.IsolatedAsyncioTestCase):
    """StoreTestCase whose tests run on an event loop, for autosave timers."""
