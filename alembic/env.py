from __future__ import annotations

import sys
from pathlib import Path
from logging.config import fileConfig

from sqlmodel import SQLModel

from alembic import context

# Project root on sys.path so config/ and nexus_admin/ import from any cwd.
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Register table metadata.
import nexus_admin.db.models as _models  # noqa: F401, E402

from nexus_admin.db.engine import _make_absolute_sqlite_url, _resolve_db_url, create_db_engine  # noqa: E402

target_metadata = SQLModel.metadata


def _get_url() -> str:
    """alembic.ini / -x url override first, otherwise the application's database.url."""
    url = context.get_x_argument(as_dictionary=True).get("url") or config.get_main_option("sqlalchemy.url", default="")
    if not url or url.startswith("driver://"):
        url = _resolve_db_url()
    return _make_absolute_sqlite_url(url)


def run_migrations_offline() -> None:
    """Emit SQL instead of applying it."""
    context.configure(
        url=_get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,  # SQLite ALTER TABLE support
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_db_engine(_get_url())

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,  # SQLite ALTER TABLE support
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
