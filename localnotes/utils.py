import secrets
import time
from datetime import datetime, UTC
from typing import Optional


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def next_stamp(previous: Optional[int] = None) -> int:
    """Return a millisecond stamp strictly greater than ``previous``."""
    now = now_ms()
    if previous is not None and now <= previous:
        return previous + 1
    return now


def time_now() -> str:
    """Return the current time in ISO format (UTC, no microseconds)."""
    return datetime.now(UTC).replace(microsecond=0).isoformat()


def iso_from_ms(stamp: int) -> str:
    """Render an epoch-millisecond stamp in ISO format (UTC, no microseconds)."""
    return datetime.fromtimestamp(stamp / 1000, UTC).replace(microsecond=0).isoformat()


def make_salt(nbytes: int = 16) -> str:
    """Generate a random hex salt (``nbytes`` of entropy)."""
    return secrets.token_hex(nbytes)


def normalize_email(email: str) -> str:
    """Case-fold and trim an email so it can be used as an account key."""
    return email.strip().casefold()
