"""
Notes application core.

``NotesApp`` owns the stores, the active session, the open note and the
autosave scheduler. A view layer talks to it through the intent methods below
and re-renders from what they return; nothing here knows about the view.
"""

import asyncio
import logging
from typing import List, Optional

from .autosave import AutosaveScheduler, SaveState
from .config import Settings, get_settings
from .domain import AuthError, Note, NotAuthenticated
from .search import filter_notes
from .services import CredentialStore, NoteStore, SessionManager
from .storage import PersistentKVStore

logger = logging.getLogger(__name__)

AUTH_MODES = ("signup", "signin")


class AuthResult:
    """Outcome of ``NotesApp.authenticate``: the email on success, a reason otherwise."""

    def __init__(self, success: bool, email: Optional[str] = None, reason: Optional[str] = None,
                 error: Optional[AuthError] = None):
        self.success = success
        self.email = email
        self.reason = reason
        self.error = error

    def __bool__(self) -> bool:
        return self.success

    def __repr__(self) -> str:
        if self.success:
            return f"AuthResult(success=True, email={self.email!r})"
        return f"AuthResult(success=False, reason={self.reason!r})"


class NotesApp:
    """
    Main app logic: accounts, the active session and the signed-in user's notes.

    Attributes:
        credentials (CredentialStore): Account registration and verification
        sessions (SessionManager): Persisted active-account record
        notes (NoteStore): Per-account note collections
        autosave (AutosaveScheduler): Debounced writes for the open note
        current_user (Optional[str]): Email of the signed-in account
        active_note_id (Optional[str]): Note open in the editor
    """

    def __init__(self, kv: PersistentKVStore, settings: Optional[Settings] = None,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        settings = settings or get_settings()
        self.kv = kv
        self.credentials = CredentialStore(kv)
        self.sessions = SessionManager(kv)
        self.notes = NoteStore(kv, settings.default_title)
        self.autosave = AutosaveScheduler(self.notes, settings.autosave_delay, settings.flush_on_switch, loop)
        self.current_user: Optional[str] = None
        self.active_note_id: Optional[str] = None
        self.restore()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "NotesApp":
        settings = settings or get_settings()
        return cls(PersistentKVStore(settings.db_path), settings)

    # --- session ---

    def restore(self) -> Optional[str]:
        """
        Re-enter the persisted session, if any.

        A session naming an account that no longer exists is cleared so the
        user lands on the signed-out view.
        """
        email = self.sessions.current()
        if email is not None and not self.credentials.exists(email):
            logger.warning("Session for unknown account %s cleared", email)
            self.sessions.logout()
            email = None
        self.current_user = email
        self.active_note_id = None
        if email:
            logger.info("Restored session for %s", email)
        return email

    def authenticate(self, email: str, password: str, mode: str = "signin") -> AuthResult:
        """
        Sign in, or create an account and sign in directly after.

        Args:
            email: Account email (normalized before use)
            password: Plain text password
            mode: "signup" or "signin"

        Returns:
            AuthResult: success with the normalized email, or failure with a
            user-facing reason
        """
        if mode not in AUTH_MODES:
            raise ValueError(f"Unknown authentication mode: {mode!r}")
        try:
            if mode == "signup":
                self.credentials.register(email, password)
            email = self.credentials.verify(email, password)
        except AuthError as e:
            logger.info("%s failed for %s: %s", mode, e.email, type(e).__name__)
            return AuthResult(False, reason=str(e), error=e)
        self.close_note()
        self.sessions.login(email)
        self.current_user = email
        return AuthResult(True, email=email)

    def logout(self) -> None:
        self.close_note()
        self.sessions.logout()
        self.current_user = None

    def _require_user(self) -> str:
        if not self.current_user:
            raise NotAuthenticated()
        return self.current_user

    # --- notes ---

    def list_notes(self) -> List[Note]:
        return self.notes.load(self._require_user())

    def search_notes(self, query: str) -> List[Note]:
        """Notes of the signed-in user matching ``query``, newest-created first."""
        return filter_notes(self.list_notes(), query)

    def get_note(self, note_id: str) -> Optional[Note]:
        return self.notes.get(self._require_user(), note_id)

    def create_note(self) -> str:
        """Create an untitled note, open it and return its id."""
        note_id = self.notes.create(self._require_user())
        self.open_note(note_id)
        return note_id

    def open_note(self, note_id: str) -> Optional[Note]:
        """Make ``note_id`` the note under edit. Unknown ids leave the editor as is."""
        user = self._require_user()
        if note_id != self.active_note_id:
            self.autosave.switch()
        note = self.notes.get(user, note_id)
        if note is None:
            return None
        self.active_note_id = note_id
        return note

    def close_note(self) -> None:
        self.autosave.switch()
        self.active_note_id = None

    def edit_note(self, note_id: str, title: Optional[str] = None, body: Optional[str] = None) -> bool:
        """
        Record an edit and schedule its autosave.

        Fields left as None keep their value from the pending draft or, failing
        that, the stored note.

        Returns:
            bool: False when the note does not exist (nothing scheduled)
        """
        user = self._require_user()
        if note_id != self.active_note_id and self.open_note(note_id) is None:
            return False
        draft = self.autosave.pending
        if draft is not None and draft.same_note(user, note_id):
            base_title, base_body = draft.title, draft.body
        else:
            note = self.notes.get(user, note_id)
            if note is None:
                return False
            base_title, base_body = note.title, note.body
        self.autosave.edit(
            user,
            note_id,
            base_title if title is None else title,
            base_body if body is None else body,
        )
        return True

    def save_note(self, note_id: str, title: str, body: str) -> bool:
        """Persist immediately, canceling any pending autosave."""
        return self.autosave.save_now(self._require_user(), note_id, title, body)

    def delete_note(self, note_id: str) -> bool:
        user = self._require_user()
        draft = self.autosave.pending
        if draft is not None and draft.same_note(user, note_id):
            self.autosave.discard()
        removed = self.notes.delete(user, note_id)
        if self.active_note_id == note_id:
            self.active_note_id = None
        return removed

    # --- status ---

    @property
    def save_status(self) -> str:
        return "Saving..." if self.autosave.state is SaveState.PENDING else "Saved"

    @property
    def storage_warning(self) -> Optional[str]:
        """User-facing message when the signed-in user's notes could not be read."""
        if self.current_user and self.current_user in self.notes.corrupt:
            return "Stored notes could not be read and are not shown."
        return None
