"""Password reset tokens: generation, expiry arithmetic, shape check.

Tokens are opaque: 32 bytes from the OS CSPRNG as 64 lowercase hex chars,
compared by plain equality against the stored value.
"""

from __future__ import annotations

import re
import secrets
from datetime import datetime, timedelta
from typing import Optional

from nexus_admin.db.models import as_utc, utcnow

TOKEN_BYTES = 32
TOKEN_LENGTH = TOKEN_BYTES * 2

_TOKEN_RE = re.compile(r"[0-9a-fA-F]{%d}" % TOKEN_LENGTH)


def generate_reset_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def token_expiry(hours: float = 1.0, now: Optional[datetime] = None) -> datetime:
    """Return ``now + hours`` in UTC."""
    return (as_utc(now) or utcnow()) + timedelta(hours=hours)


def is_token_expired(expiry: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """A missing expiry counts as expired; so does ``expiry <= now``."""
    if expiry is None:
        return True
    return as_utc(expiry) <= (as_utc(now) or utcnow())


def is_well_formed(token: Optional[str]) -> bool:
    """Cheap syntactic pre-filter before hitting the database. Not a security check."""
    if not token or not isinstance(token, str):
        return False
    return _TOKEN_RE.fullmatch(token) is not None


def token_preview(token: str) -> str:
    """Loggable form of a token."""
    return f"{token[:6]}...{token[-4:]}" if len(token) > 12 else "redacted"
