"""User management operations behind the /api/users routes."""

from __future__ import annotations

from typing import Any, Dict, List

from nexus_admin.auth.session import SessionManager
from nexus_admin.db.models import User
from nexus_admin.errors import NotFoundError
from nexus_admin.log import get_logger
from nexus_admin.users.repository import UserRepository

logger = get_logger(__name__)

_CLEARABLE = frozenset({"celular", "external_id", "avatar"})


class UserService:
    def __init__(self, users: UserRepository, sessions: SessionManager):
        self._users = users
        self._sessions = sessions

    def list_users(self) -> List[User]:
        return self._users.list_all()

    def get_user(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise NotFoundError()
        return user

    def update_user(self, user_id: str, data: Dict[str, Any]) -> User:
        # null only clears optional columns; a null email or name means "leave as is"
        data = {k: v for k, v in data.items() if k != "password" and (v is not None or k in _CLEARABLE)}
        user = self._users.update(user_id, data)
        if user is None:
            raise NotFoundError()
        return user

    def delete_user(self, user_id: str) -> None:
        if not self._users.delete(user_id):
            raise NotFoundError()
        closed = self._sessions.destroy_for_user(user_id)
        logger.info("user deleted id=%s sessions_closed=%d", user_id, closed)
