"""Server-side sessions behind a signed cookie.

The cookie value is a compact HS256 JWT whose only claim of interest is the
session id (``sid``); the signature (made with ``auth.session_secret``) stops
forged ids from ever reaching the database. The ``user_sessions`` row is the
authority: logout deletes it and the cookie becomes useless immediately, even
though its signature is still valid.

Expired rows are removed lazily on lookup and in bulk by ``purge_expired``.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import Optional

import jwt
from sqlalchemy import delete
from sqlalchemy.engine import Engine
from sqlmodel import Session

from config.settings import AuthSettings
from nexus_admin.db.models import UserSession, as_utc, utcnow
from nexus_admin.log import get_logger

logger = get_logger(__name__)

_ALGORITHM = "HS256"


class SessionManager:
    """Creates, resolves and destroys login sessions."""

    def __init__(self, auth: AuthSettings, engine: Engine):
        self._auth = auth
        self._engine = engine

    @property
    def cookie_name(self) -> str:
        return self._auth.cookie_name

    @property
    def max_age_seconds(self) -> int:
        return int(self._auth.session_ttl_hours * 3600)

    # ── cookie envelope ────────────────────────────────────────────────

    def _sign(self, session_id: str, expires_at) -> str:
        payload = {"sid": session_id, "iat": utcnow(), "exp": expires_at}
        return jwt.encode(payload, self._auth.session_secret, algorithm=_ALGORITHM)

    def _unsign(self, cookie_value: Optional[str]) -> Optional[str]:
        if not cookie_value:
            return None
        try:
            payload = jwt.decode(cookie_value, self._auth.session_secret, algorithms=[_ALGORITHM])
        except jwt.InvalidTokenError:
            return None
        sid = payload.get("sid")
        return sid if isinstance(sid, str) and sid else None

    # ── lifecycle ──────────────────────────────────────────────────────

    def create(self, user_id: str) -> str:
        """Open a session for *user_id* and return the cookie value."""
        session_id = secrets.token_urlsafe(32)
        expires_at = utcnow() + timedelta(hours=self._auth.session_ttl_hours)
        with Session(self._engine) as db:
            db.add(UserSession(id=session_id, user_id=user_id, expires_at=expires_at))
            db.commit()
        logger.info("session opened user_id=%s", user_id)
        return self._sign(session_id, expires_at)

    def resolve(self, cookie_value: Optional[str]) -> Optional[str]:
        """Return the user id behind *cookie_value*, or None when not a live session."""
        session_id = self._unsign(cookie_value)
        if session_id is None:
            return None
        with Session(self._engine) as db:
            row = db.get(UserSession, session_id)
            if row is None:
                return None
            if as_utc(row.expires_at) <= utcnow():
                db.delete(row)
                db.commit()
                logger.info("session expired user_id=%s", row.user_id)
                return None
            return row.user_id

    def destroy(self, cookie_value: Optional[str]) -> None:
        session_id = self._unsign(cookie_value)
        if session_id is None:
            return
        with Session(self._engine) as db:
            db.exec(delete(UserSession).where(UserSession.id == session_id))
            db.commit()

    def destroy_for_user(self, user_id: str) -> int:
        """Log *user_id* out everywhere. Returns the number of sessions removed."""
        with Session(self._engine) as db:
            result = db.exec(delete(UserSession).where(UserSession.user_id == user_id))
            db.commit()
            return result.rowcount

    def purge_expired(self) -> int:
        """Delete every expired session row. Returns the number of rows deleted."""
        with Session(self._engine) as db:
            result = db.exec(delete(UserSession).where(UserSession.expires_at <= utcnow()))
            db.commit()
            return result.rowcount
