"""
Debounced autosave.

A burst of edits to the open note is collapsed into one NoteStore write once
the editor has been quiet for ``delay`` seconds. Timers run on the asyncio
event loop, so edits must be issued from code running on that loop (or with a
loop passed in explicitly).
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Optional

from .services import NoteStore

logger = logging.getLogger(__name__)


class TaskState(str, Enum):
    UNSCHEDULED = "unscheduled"
    SCHEDULED = "scheduled"
    FIRED = "fired"


class ScheduledTask:
    """A single cancelable delayed call. Arming again replaces the previous call."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self.state = TaskState.UNSCHEDULED

    def arm(self, delay: float, callback: Callable[[], None]) -> None:
        self.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(delay, self._fire, callback)
        self.state = TaskState.SCHEDULED

    def cancel(self) -> bool:
        """Cancel the armed call. Returns True if one was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        self.state = TaskState.UNSCHEDULED
        return True

    def _fire(self, callback: Callable[[], None]) -> None:
        self._handle = None
        self.state = TaskState.FIRED
        callback()


class SaveState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


class Draft:
    """Latest unsaved editor contents for one note."""

    def __init__(self, email: str, note_id: str, title: str, body: str):
        self.email = email
        self.note_id = note_id
        self.title = title
        self.body = body

    def same_note(self, email: str, note_id: str) -> bool:
        return self.email == email and self.note_id == note_id


class AutosaveScheduler:
    """
    Coalesces edit events into single NoteStore updates.

    IDLE -> edit -> PENDING (timer armed). Further edits re-arm the timer from
    zero and replace the draft. When the timer elapses exactly one update is
    issued with the latest draft and the scheduler returns to IDLE.

    Attributes:
        notes (NoteStore): Target of the writes
        delay (float): Quiet period in seconds
        flush_on_switch (bool): What ``switch()`` does with a pending draft,
            write it (True) or drop it (False)
    """

    def __init__(self, notes: NoteStore, delay: float = 0.7, flush_on_switch: bool = True,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        self.notes = notes
        self.delay = delay
        self.flush_on_switch = flush_on_switch
        self.task = ScheduledTask(loop)
        self._draft: Optional[Draft] = None

    @property
    def state(self) -> SaveState:
        return SaveState.PENDING if self._draft is not None else SaveState.IDLE

    @property
    def pending(self) -> Optional[Draft]:
        return self._draft

    def edit(self, email: str, note_id: str, title: str, body: str) -> None:
        """Record the latest editor state and (re)arm the quiet-period timer."""
        if self._draft is not None and not self._draft.same_note(email, note_id):
            self.switch()
        self._draft = Draft(email, note_id, title, body)
        self.task.arm(self.delay, self._elapsed)
        logger.debug("Autosave armed for note %s (%.3fs)", note_id, self.delay)

    def save_now(self, email: str, note_id: str, title: str, body: str) -> bool:
        """Write immediately, replacing any pending draft and canceling its timer."""
        if self._draft is not None and not self._draft.same_note(email, note_id):
            self.switch()
        self.task.cancel()
        self._draft = Draft(email, note_id, title, body)
        return self._write()

    def flush(self) -> bool:
        """Write the pending draft now. Returns False when there was nothing to write."""
        self.task.cancel()
        return self._write()

    def discard(self) -> Optional[Draft]:
        """Cancel the timer and drop the pending draft without writing it."""
        self.task.cancel()
        draft, self._draft = self._draft, None
        if draft is not None:
            logger.info("Discarded unsaved edits to note %s", draft.note_id)
        return draft

    def switch(self) -> None:
        """Called when the open note changes or the user signs out."""
        if self.flush_on_switch:
            self.flush()
        else:
            self.discard()

    def _elapsed(self) -> None:
        try:
            self._write()
        except Exception:
            logger.exception("Autosave of note %s failed; edits kept pending", self._draft.note_id)

    def _write(self) -> bool:
        """Write the pending draft. The draft is only cleared once the write succeeds."""
        draft = self._draft
        if draft is None:
            return False
        result = self.notes.update(draft.email, draft.note_id, {"title": draft.title, "body": draft.body})
        if self._draft is draft:
            self._draft = None
        return result
