"""
User repository: all database access for the ``users`` table.

Services depend on the ``UserRepository`` protocol; ``SqlUserRepository`` is
the SQLModel implementation. Every mutation is a single statement + commit,
and uniqueness is left to database constraints (IntegrityError is mapped to
``ConflictError``).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import delete, func, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from nexus_admin.db.models import User, utcnow
from nexus_admin.errors import ConflictError
from nexus_admin.log import get_logger

logger = get_logger(__name__)

# Columns a caller may set through create/update. Token columns are not here:
# they only change through the dedicated reset-token methods.
WRITABLE_FIELDS = ("email", "password", "name", "celular", "external_id", "role", "avatar", "status")


class UserRepository(Protocol):
    def get(self, user_id: str) -> Optional[User]: ...
    def get_by_email(self, email: str) -> Optional[User]: ...
    def get_by_reset_token(self, token: str) -> Optional[User]: ...
    def list_all(self) -> List[User]: ...
    def count(self) -> int: ...
    def create(self, data: Dict[str, Any]) -> User: ...
    def update(self, user_id: str, data: Dict[str, Any]) -> Optional[User]: ...
    def delete(self, user_id: str) -> bool: ...
    def touch_last_active(self, user_id: str) -> None: ...
    def set_reset_token(self, email: str, token: str, expiry: datetime) -> bool: ...
    def clear_reset_token(self, user_id: str, token: str) -> bool: ...
    def reset_password(self, user_id: str, token: str, hashed_password: str) -> bool: ...


def _conflict_from(exc: IntegrityError) -> ConflictError:
    detail = str(exc.orig).lower()
    if "external_id" in detail:
        return ConflictError("ID externo já cadastrado")
    if "email" in detail:
        return ConflictError("Email já cadastrado")
    return ConflictError()


class SqlUserRepository:
    """SQLModel-backed ``UserRepository``."""

    def __init__(self, engine: Engine):
        self._engine = engine

    def _session(self) -> Session:
        return Session(self._engine, expire_on_commit=False)

    # ── reads ──────────────────────────────────────────────────────────

    def get(self, user_id: str) -> Optional[User]:
        with self._session() as session:
            return session.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        with self._session() as session:
            return session.exec(select(User).where(User.email == email).limit(1)).first()

    def get_by_reset_token(self, token: str) -> Optional[User]:
        if not token:
            return None
        with self._session() as session:
            return session.exec(select(User).where(User.reset_token == token).limit(1)).first()

    def list_all(self) -> List[User]:
        with self._session() as session:
            return list(session.exec(select(User).order_by(User.created_at)).all())

    def count(self) -> int:
        with self._session() as session:
            return int(session.exec(select(func.count()).select_from(User)).one())

    # ── writes ─────────────────────────────────────────────────────────

    def create(self, data: Dict[str, Any]) -> User:
        user = User(**{k: v for k, v in data.items() if k in WRITABLE_FIELDS})
        with self._session() as session:
            session.add(user)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise _conflict_from(exc) from exc
            session.refresh(user)
        logger.info("user created id=%s role=%s", user.id, user.role)
        return user

    def update(self, user_id: str, data: Dict[str, Any]) -> Optional[User]:
        values = {k: v for k, v in data.items() if k in WRITABLE_FIELDS}
        with self._session() as session:
            user = session.get(User, user_id)
            if user is None:
                return None
            for key, value in values.items():
                setattr(user, key, value)
            session.add(user)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise _conflict_from(exc) from exc
            session.refresh(user)
            return user

    def delete(self, user_id: str) -> bool:
        with self._session() as session:
            result = session.exec(delete(User).where(User.id == user_id))
            session.commit()
            return result.rowcount > 0

    def touch_last_active(self, user_id: str) -> None:
        with self._session() as session:
            session.exec(update(User).where(User.id == user_id).values(last_active=utcnow()))
            session.commit()

    def set_reset_token(self, email: str, token: str, expiry: datetime) -> bool:
        """Store a fresh token, superseding any previous one. Both columns change together."""
        with self._session() as session:
            result = session.exec(
                update(User)
                .where(User.email == email)
                .values(reset_token=token, reset_token_expiry=expiry)
            )
            session.commit()
            return result.rowcount > 0

    def clear_reset_token(self, user_id: str, token: str) -> bool:
        """Drop *token* if it is still the stored one; a newer token is left alone."""
        with self._session() as session:
            result = session.exec(
                update(User)
                .where(User.id == user_id, User.reset_token == token)
                .values(reset_token=None, reset_token_expiry=None)
            )
            session.commit()
            return result.rowcount > 0

    def reset_password(self, user_id: str, token: str, hashed_password: str) -> bool:
        """Overwrite the password and clear the token in one statement.

        Guarded on the token still being the stored one, so a token can only
        ever be consumed once even under concurrent requests.
        """
        with self._session() as session:
            result = session.exec(
                update(User)
                .where(User.id == user_id, User.reset_token == token)
                .values(password=hashed_password, reset_token=None, reset_token_expiry=None)
            )
            session.commit()
            return result.rowcount > 0
