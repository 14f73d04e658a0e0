"""
Centralized SQLAlchemy/SQLModel engine factory.

The application builds its engine from ``Settings.database.url`` at startup;
scripts and Alembic use the process-wide ``get_engine()``. Switching to
PostgreSQL is a single configuration change.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

_engine: Engine | None = None


def _resolve_db_url() -> str:
    """
    Resolve database URL with precedence:
    1. NEXUS_DATABASE_URL / DATABASE_URL environment variables
    2. config/app_config(.local).json  database.url
    3. Fallback: sqlite:///data/nexus.db
    """
    from config.settings import settings
    return settings.database.url


def _make_absolute_sqlite_url(url: str) -> str:
    """
    Resolve relative sqlite:/// paths against the project root so the DB is
    always created in <project_root>/data regardless of cwd.
    """
    if not url.startswith("sqlite:///"):
        return url
    rel_path = url[len("sqlite:///"):]
    if rel_path == ":memory:" or os.path.isabs(rel_path):
        return url
    root = Path(__file__).resolve().parents[2]
    abs_path = (root / rel_path).resolve()
    abs_path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{abs_path}"


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Build an engine for *url*, applying SQLite pragmas when relevant."""
    db_url = _make_absolute_sqlite_url(url)

    is_sqlite = db_url.startswith("sqlite")
    connect_args = {"check_same_thread": False, "timeout": 30} if is_sqlite else {}

    engine = create_engine(
        db_url,
        echo=echo,
        connect_args=connect_args,
        pool_pre_ping=True,
    )

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_conn, _connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA busy_timeout=30000")
            cursor.close()

    return engine


def get_engine() -> Engine:
    """Return the process-wide engine, creating it on first call."""
    global _engine
    if _engine is None:
        _engine = create_db_engine(_resolve_db_url())
    return _engine


def get_session(engine: Optional[Engine] = None) -> Generator[Session, None, None]:
    """Yield a SQLModel session bound to *engine* (default: process-wide)."""
    with Session(engine or get_engine()) as session:
        yield session


def init_db(engine: Optional[Engine] = None) -> None:
    """
    Create all tables that are not yet present.
    In production the Alembic migration handles table creation;
    this is a safety net for tests and fresh installs.
    """
    from nexus_admin.db import models as _models  # noqa: F401  registers the tables
    SQLModel.metadata.create_all(engine or get_engine())
