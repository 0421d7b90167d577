from typing import Any, Dict


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class Note:
    """A single note. Ownership lives in the storage key, not on the note."""

    def __init__(self, id: str, title: str, body: str, updated_at: int):
        self.id = id
        self.title = title
        self.body = body
        self.updated_at = updated_at

    def to_dict(self) -> Dict[str, Any]:
        """Convert note to dictionary representation."""
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Note":
        """Build a note from its stored dictionary form.

        Raises KeyError/TypeError/ValueError when the record is malformed.
        """
        return cls(
            str(data["id"]),
            _text(data.get("title")),
            _text(data.get("body")),
            int(data["updated_at"]),
        )

    def __repr__(self) -> str:
        return f"Note(id={self.id!r}, title={self.title!r})"


class AuthError(Exception):
    """Base exception for authentication errors."""
    pass


class AccountExists(AuthError):
    def __init__(self, email: str):
        super().__init__("Account exists. Sign in instead.")
        self.email = email


class NoAccount(AuthError):
    def __init__(self, email: str):
        super().__init__("No account found. Create one.")
        self.email = email


class WrongPassword(AuthError):
    def __init__(self, email: str):
        super().__init__("Wrong password.")
        self.email = email


class NotAuthenticated(AuthError):
    def __init__(self):
        super().__init__("Sign in to manage notes.")


class StorageCorrupt(Exception):
    """A stored value exists but could not be decoded."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Stored value for {key!r} is unreadable: {reason}")
        self.key = key
        self.reason = reason
