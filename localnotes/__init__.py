"""
Local, account-gated note storage.
"""

from .app import AuthResult, NotesApp
from .domain import AccountExists, AuthError, NoAccount, Note, NotAuthenticated, StorageCorrupt, WrongPassword
from .storage import PersistentKVStore

__version__ = "1.0.0"

__all__ = [
    'AuthResult',
    'NotesApp',
    'Note',
    'AuthError',
    'AccountExists',
    'NoAccount',
    'WrongPassword',
    'NotAuthenticated',
    'StorageCorrupt',
    'PersistentKVStore',
]
