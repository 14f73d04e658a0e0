"""Registration and credential checks."""

from __future__ import annotations

from typing import Any, Dict

from nexus_admin.auth.password import hash_password, verify_password
from nexus_admin.db.models import User
from nexus_admin.errors import AuthenticationError, ConflictError
from nexus_admin.log import get_logger
from nexus_admin.observability.metrics import metrics
from nexus_admin.users.repository import UserRepository

logger = get_logger(__name__)

BAD_CREDENTIALS = "Email ou senha inválidos"


class AuthService:
    def __init__(self, users: UserRepository, bcrypt_rounds: int = 10):
        self._users = users
        self._bcrypt_rounds = bcrypt_rounds

    def create_user(self, data: Dict[str, Any]) -> User:
        """Create a user from validated input; the plain password is hashed here.

        The duplicate check runs before hashing so the common conflict is
        cheap; the unique constraint still decides under races.
        """
        if self._users.get_by_email(data["email"]) is not None:
            raise ConflictError("Email já cadastrado")
        values = dict(data)
        values["password"] = hash_password(data["password"], rounds=self._bcrypt_rounds)
        return self._users.create(values)

    def authenticate(self, email: str, password: str) -> User:
        """Return the user for valid credentials, else raise AuthenticationError.

        Unknown email, wrong password and inactive account all produce the
        same error.
        """
        user = self._users.get_by_email(email)
        if user is None or not verify_password(password, user.password) or user.status != "active":
            metrics.login_attempts_total.labels(outcome="failure").inc()
            raise AuthenticationError(BAD_CREDENTIALS)

        self._users.touch_last_active(user.id)
        metrics.login_attempts_total.labels(outcome="success").inc()
        logger.info("login ok user_id=%s", user.id)
        return self._users.get(user.id) or user
