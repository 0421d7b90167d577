import hashlib
import hmac
import logging
from typing import Any, Dict, List, Optional

from .domain import AccountExists, NoAccount, Note, StorageCorrupt, WrongPassword
from .storage import PersistentKVStore
from .utils import make_salt, next_stamp, normalize_email

logger = logging.getLogger(__name__)

USERS_KEY = "users"
SESSION_KEY = "session"
NOTES_KEY_PREFIX = "notes:"

# Verified against when an email is unknown so both failure paths do one digest.
_DUMMY_SALT = "0" * 32


def notes_key_for(email: str) -> str:
    return f"{NOTES_KEY_PREFIX}{email}"


def hash_password(password: str, salt: str) -> str:
    """Hex SHA-256 digest of ``password`` followed by ``salt``."""
    return hashlib.sha256((password + salt).encode("utf-8")).hexdigest()


_DUMMY_HASH = hash_password("", _DUMMY_SALT)


class CredentialStore:
    """Registers and verifies accounts stored as ``{email: {salt, hash}}``."""

    def __init__(self, kv: PersistentKVStore):
        self.kv = kv

    def _users(self) -> Dict[str, Dict[str, str]]:
        try:
            users = self.kv.read(USERS_KEY, {})
        except StorageCorrupt as e:
            logger.warning("Credential table unreadable, treating as empty: %s", e)
            return {}
        return users if isinstance(users, dict) else {}

    def _record(self, users: Dict[str, Any], email: str) -> Optional[Dict[str, str]]:
        """The stored ``{salt, hash}`` for ``email``, or None when absent or malformed."""
        record = users.get(email)
        if record is None:
            return None
        if not (isinstance(record, dict) and isinstance(record.get("salt"), str)
                and isinstance(record.get("hash"), str)):
            logger.warning("Credential record for %s unreadable, treating as absent", email)
            return None
        return record

    def exists(self, email: str) -> bool:
        email = normalize_email(email)
        return self._record(self._users(), email) is not None

    def register(self, email: str, password: str) -> str:
        """
        Create an account with a fresh per-account salt.

        Returns:
            str: The normalized email

        Raises:
            AccountExists: The normalized email is already registered
        """
        email = normalize_email(email)
        with self.kv.lock:
            users = self._users()
            if self._record(users, email) is not None:
                raise AccountExists(email)
            salt = make_salt()
            users[email] = {"salt": salt, "hash": hash_password(password, salt)}
            self.kv.write(USERS_KEY, users)
        logger.info("Registered account %s", email)
        return email

    def verify(self, email: str, password: str) -> str:
        """
        Check a password against the stored salted hash.

        Returns:
            str: The normalized email

        Raises:
            NoAccount: Email is not registered
            WrongPassword: Digest mismatch
        """
        email = normalize_email(email)
        record = self._record(self._users(), email)
        if record is None:
            hmac.compare_digest(hash_password(password, _DUMMY_SALT), _DUMMY_HASH)
            raise NoAccount(email)
        candidate = hash_password(password, record["salt"])
        if not hmac.compare_digest(candidate, record["hash"]):
            raise WrongPassword(email)
        return email


class SessionManager:
    """Tracks the single active account; survives restarts through the store."""

    def __init__(self, kv: PersistentKVStore):
        self.kv = kv

    def login(self, email: str) -> None:
        self.kv.write(SESSION_KEY, email)
        logger.info("Session started for %s", email)

    def logout(self) -> None:
        if self.kv.delete(SESSION_KEY):
            logger.info("Session cleared")

    def current(self) -> Optional[str]:
        try:
            email = self.kv.read(SESSION_KEY)
        except StorageCorrupt as e:
            logger.warning("Session record unreadable, treating as signed out: %s", e)
            return None
        return email if isinstance(email, str) and email else None


class NoteStore:
    """
    Ordered note collections, one per account, newest-created first.

    Every mutation loads the whole collection, changes it and writes it back in
    one transaction. Unreadable collections load as empty; the affected emails
    are kept in ``corrupt`` until that account's collection is written again.
    """

    def __init__(self, kv: PersistentKVStore, default_title: str = "Untitled"):
        self.kv = kv
        self.default_title = default_title
        self.corrupt: set = set()

    def load(self, email: str) -> List[Note]:
        try:
            raw = self.kv.read(notes_key_for(email), [])
            if not isinstance(raw, list):
                raise StorageCorrupt(notes_key_for(email), f"expected a list, got {type(raw).__name__}")
            notes = [Note.from_dict(item) for item in raw]
        except StorageCorrupt as e:
            self._mark_corrupt(email, e)
            return []
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            self._mark_corrupt(email, StorageCorrupt(notes_key_for(email), str(e)))
            return []
        self.corrupt.discard(email)
        return notes

    def _mark_corrupt(self, email: str, error: StorageCorrupt):
        logger.warning("Notes for %s unreadable, showing none: %s", email, error)
        self.corrupt.add(email)

    def _save(self, email: str, notes: List[Note]):
        self.kv.write(notes_key_for(email), [n.to_dict() for n in notes])
        self.corrupt.discard(email)

    def get(self, email: str, note_id: str) -> Optional[Note]:
        for note in self.load(email):
            if note.id == note_id:
                return note
        return None

    def create(self, email: str) -> str:
        """Insert a new empty note at the head of the collection and return its id."""
        with self.kv.lock:
            notes = self.load(email)
            newest = max((int(n.id) for n in notes if n.id.isdigit()), default=None)
            stamp = next_stamp(newest)
            note = Note(str(stamp), self.default_title, "", stamp)
            notes.insert(0, note)
            self._save(email, notes)
        logger.debug("Created note %s for %s", note.id, email)
        return note.id

    def update(self, email: str, note_id: str, patch: Dict[str, Any]) -> bool:
        """
        Merge ``title``/``body`` from ``patch`` into a note.

        Returns:
            bool: False (and nothing written) when the id is unknown
        """
        with self.kv.lock:
            notes = self.load(email)
            for note in notes:
                if note.id == note_id:
                    break
            else:
                logger.debug("Update for unknown note %s ignored", note_id)
                return False
            if patch.get("title") is not None:
                note.title = patch["title"]
            if patch.get("body") is not None:
                note.body = patch["body"]
            note.updated_at = next_stamp(note.updated_at)
            self._save(email, notes)
        logger.debug("Updated note %s for %s", note_id, email)
        return True

    def delete(self, email: str, note_id: str) -> bool:
        """Remove a note. Unknown ids are a no-op and write nothing."""
        with self.kv.lock:
            notes = self.load(email)
            remaining = [n for n in notes if n.id != note_id]
            if len(remaining) == len(notes):
                return False
            self._save(email, remaining)
        logger.debug("Deleted note %s for %s", note_id, email)
        return True
