from typing import Iterable, List

from .domain import Note


def matches(note: Note, query: str) -> bool:
    """True when the trimmed, case-folded query occurs in the title or body.

    An empty query matches every note.
    """
    q = (query or "").strip().casefold()
    if not q:
        return True
    return q in (note.title or "").casefold() or q in (note.body or "").casefold()


def filter_notes(notes: Iterable[Note], query: str) -> List[Note]:
    """Notes matching ``query``, in collection order."""
    return [n for n in notes if matches(n, query)]
