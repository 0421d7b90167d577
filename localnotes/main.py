"""
Local HTTP view adapter for the notes core.

Exposes the NotesApp intents to a browser front end running on the same
machine. Routes translate requests into intents and results into responses;
all state lives in the NotesApp held on ``app.state``.
"""

import contextlib
import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from .app import NotesApp
from .config import Settings, get_settings
from .domain import AccountExists
from .models import (
    AuthResponse,
    EditResponse,
    MessageResponse,
    NoteEdit,
    NoteOut,
    NoteResponse,
    NoteSave,
    NotesListResponse,
    SessionResponse,
    UserCreds,
)
from .utils import time_now

logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    notes_app = NotesApp.from_settings(settings)
    app.state.notes_app = notes_app
    logger.info("Notes API starting up (db=%s, signed in: %s)", settings.db_path, notes_app.current_user or "nobody")
    yield
    if notes_app.autosave.flush():
        logger.info("Pending edits written on shutdown")
    logger.info("Notes API shutting down")


def get_notes_app(request: Request) -> NotesApp:
    return request.app.state.notes_app


def get_signed_in_app(notes_app: NotesApp = Depends(get_notes_app)) -> NotesApp:
    """Dependency for note routes: 401 unless an account is signed in."""
    if not notes_app.current_user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Sign in to manage notes.")
    return notes_app


def _authenticate(notes_app: NotesApp, creds: UserCreds, mode: str) -> AuthResponse:
    result = notes_app.authenticate(creds.email, creds.password, mode)
    if not result:
        code = status.HTTP_409_CONFLICT if isinstance(result.error, AccountExists) else status.HTTP_401_UNAUTHORIZED
        raise HTTPException(status_code=code, detail=result.reason)
    message = "Account created" if mode == "signup" else "Signed in"
    return AuthResponse(success=True, email=result.email, message=message)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title="Local Notes",
        description="Account-gated personal notes stored on this device",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    website_dir = settings.website_dir
    if website_dir is not None and website_dir.is_dir():
        app.mount("/static", StaticFiles(directory=website_dir), name="static")

    @app.get("/")
    async def read_root():
        if website_dir is not None:
            index_path = website_dir / "index.html"
            if index_path.is_file():
                return FileResponse(index_path)
        return {"message": "Notes API is running", "version": app.version}

    @app.post("/auth/signup", response_model=AuthResponse)
    async def signup(creds: UserCreds, notes_app: NotesApp = Depends(get_notes_app)):
        return _authenticate(notes_app, creds, "signup")

    @app.post("/auth/signin", response_model=AuthResponse)
    async def signin(creds: UserCreds, notes_app: NotesApp = Depends(get_notes_app)):
        return _authenticate(notes_app, creds, "signin")

    @app.post("/auth/logout", response_model=MessageResponse)
    async def logout(notes_app: NotesApp = Depends(get_notes_app)):
        if not notes_app.current_user:
            return MessageResponse(success=False, message="Already logged out")
        notes_app.logout()
        return MessageResponse(success=True, message="Logged out successfully")

    @app.get("/session", response_model=SessionResponse)
    async def session(notes_app: NotesApp = Depends(get_notes_app)):
        return SessionResponse(
            email=notes_app.current_user,
            active_note_id=notes_app.active_note_id,
            save_status=notes_app.save_status,
            storage_warning=notes_app.storage_warning,
        )

    @app.get("/notes", response_model=NotesListResponse)
    async def list_notes(q: str = "", notes_app: NotesApp = Depends(get_signed_in_app)):
        notes = [NoteOut.from_note(n) for n in notes_app.search_notes(q)]
        return NotesListResponse(
            success=True,
            notes=notes,
            count=len(notes),
            query=q,
            storage_warning=notes_app.storage_warning,
        )

    @app.post("/notes", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
    async def create_note(notes_app: NotesApp = Depends(get_signed_in_app)):
        note_id = notes_app.create_note()
        note = notes_app.get_note(note_id)
        return NoteResponse(success=True, note=NoteOut.from_note(note), message="Note created successfully")

    @app.get("/notes/{note_id}", response_model=NoteResponse)
    async def open_note(note_id: str, notes_app: NotesApp = Depends(get_signed_in_app)):
        note = notes_app.open_note(note_id)
        if note is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
        return NoteResponse(success=True, note=NoteOut.from_note(note), message="Note retrieved successfully")

    @app.patch("/notes/{note_id}", response_model=EditResponse, status_code=status.HTTP_202_ACCEPTED)
    async def edit_note(note_id: str, edit: NoteEdit, notes_app: NotesApp = Depends(get_signed_in_app)):
        if not notes_app.edit_note(note_id, edit.title, edit.body):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
        return EditResponse(success=True, save_status=notes_app.save_status)

    @app.put("/notes/{note_id}", response_model=NoteResponse)
    async def save_note(note_id: str, data: NoteSave, notes_app: NotesApp = Depends(get_signed_in_app)):
        if not notes_app.save_note(note_id, data.title, data.body):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Note not found")
        note = notes_app.get_note(note_id)
        return NoteResponse(success=True, note=NoteOut.from_note(note), message="Note saved")

    @app.delete("/notes/{note_id}", response_model=MessageResponse)
    async def delete_note(note_id: str, notes_app: NotesApp = Depends(get_signed_in_app)):
        if notes_app.delete_note(note_id):
            return MessageResponse(success=True, message="Note deleted successfully")
        return MessageResponse(success=False, message="Note not found")

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "timestamp": time_now(), "db_path": settings.db_path}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=settings.host, port=settings.port)
