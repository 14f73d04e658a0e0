"""
nexus_admin.db: database engine factory, session helper, and SQLModel models.

Usage:
    from nexus_admin.db import create_db_engine, init_db
    from nexus_admin.db.models import User, UserSession
"""

from nexus_admin.db.engine import create_db_engine, get_engine, get_session, init_db

__all__ = ["create_db_engine", "get_engine", "get_session", "init_db"]
