from typing import List, Optional
from pydantic import BaseModel, EmailStr

from .domain import Note
from .utils import iso_from_ms


class UserCreds(BaseModel):
    email: EmailStr
    password: str


class NoteEdit(BaseModel):
    """Partial edit; omitted fields keep their current value."""
    title: Optional[str] = None
    body: Optional[str] = None


class NoteSave(BaseModel):
    title: str
    body: str = ""


class NoteOut(BaseModel):
    id: str
    title: str
    body: str
    updated_at: int
    updated_time: str

    @classmethod
    def from_note(cls, note: Note) -> "NoteOut":
        return cls(
            id=note.id,
            title=note.title,
            body=note.body,
            updated_at=note.updated_at,
            updated_time=iso_from_ms(note.updated_at),
        )


class AuthResponse(BaseModel):
    success: bool
    email: str
    message: str = "Signed in"


class SessionResponse(BaseModel):
    email: Optional[str] = None
    active_note_id: Optional[str] = None
    save_status: str = "Saved"
    storage_warning: Optional[str] = None


class NoteResponse(BaseModel):
    success: bool
    note: NoteOut
    message: str = "Note operation successful"


class NotesListResponse(BaseModel):
    success: bool
    notes: List[NoteOut]
    count: int
    query: str = ""
    storage_warning: Optional[str] = None


class EditResponse(BaseModel):
    success: bool
    save_status: str


class MessageResponse(BaseModel):
    success: bool
    message: str
