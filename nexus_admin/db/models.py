"""
SQLModel table definitions.

Design rules:
  - Uniqueness (email, non-empty external_id) is enforced by the database,
    never by check-then-act in application code.
  - reset_token and reset_token_expiry are written together or not at all.
  - Timestamps are stored in UTC; SQLite hands them back naive, so readers
    normalize with ``as_utc``.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Index, Text, text
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


ROLES = ("admin", "client")
STATUSES = ("active", "inactive")


# ──────────────────────────────────────────────────────────────────────────────
# 1. Users
# ──────────────────────────────────────────────────────────────────────────────

class User(SQLModel, table=True):
    __tablename__ = "users"
    __table_args__ = (
        Index(
            "unique_external_id",
            "external_id",
            unique=True,
            sqlite_where=text("external_id IS NOT NULL AND external_id != ''"),
            postgresql_where=text("external_id IS NOT NULL AND external_id != ''"),
        ),
    )

    id: str = Field(default_factory=_new_id, primary_key=True)
    email: str = Field(sa_column=Column(Text, nullable=False, unique=True))
    password: str = Field(sa_column=Column(Text, nullable=False))
    name: str = Field(sa_column=Column(Text, nullable=False))
    celular: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    external_id: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    role: str = Field(default="client", sa_column=Column(Text, nullable=False, server_default="client"))
    avatar: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    status: str = Field(default="active", sa_column=Column(Text, nullable=False, server_default="active"))
    last_active: Optional[datetime] = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    reset_token: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True, index=True))
    reset_token_expiry: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )


# ──────────────────────────────────────────────────────────────────────────────
# 2. Sessions  (server-side half of the session cookie)
# ──────────────────────────────────────────────────────────────────────────────

class UserSession(SQLModel, table=True):
    """One row per logged-in browser.

    The cookie only carries a signed envelope of ``id``; this row is the
    authority, so deleting it logs the browser out immediately.
    """

    __tablename__ = "user_sessions"
    __table_args__ = (
        Index("idx_user_sessions_user_id", "user_id"),
        Index("idx_user_sessions_expires_at", "expires_at"),
    )

    id: str = Field(primary_key=True)
    user_id: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    expires_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
