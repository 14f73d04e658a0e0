"""
Request dependencies: services hung on ``app.state`` by ``create_app`` and
the session gate used by protected routes.
"""

from typing import Optional

from fastapi import Depends, Request, Response

from nexus_admin.auth.password_reset import PasswordResetService
from nexus_admin.auth.service import AuthService
from nexus_admin.auth.session import SessionManager
from nexus_admin.errors import AuthenticationError
from nexus_admin.users.service import UserService


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_reset_service(request: Request) -> PasswordResetService:
    return request.app.state.reset_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def session_cookie(request: Request, sessions: SessionManager = Depends(get_sessions)) -> Optional[str]:
    return request.cookies.get(sessions.cookie_name)


def get_current_user_id(
    request: Request,
    sessions: SessionManager = Depends(get_sessions),
    cookie: Optional[str] = Depends(session_cookie),
) -> str:
    """Dependency: require a live session, return its user id.

    The id is also left on ``request.state`` for the webhook hook.
    """
    user_id = sessions.resolve(cookie) if cookie else None
    if not user_id:
        raise AuthenticationError()
    request.state.user_id = user_id
    return user_id


def open_session(request: Request, response: Response, sessions: SessionManager, user_id: str) -> None:
    """Replace any session the caller already holds with a new one for *user_id*."""
    previous = request.cookies.get(sessions.cookie_name)
    if previous:
        sessions.destroy(previous)
    cookie = sessions.create(user_id)
    response.set_cookie(
        key=sessions.cookie_name,
        value=cookie,
        max_age=sessions.max_age_seconds,
        httponly=True,
        secure=request.app.state.settings.auth.cookie_secure,
        samesite="lax",
        path="/",
    )
    request.state.user_id = user_id


def close_session(request: Request, response: Response, sessions: SessionManager) -> None:
    sessions.destroy(request.cookies.get(sessions.cookie_name))
    response.delete_cookie(key=sessions.cookie_name, path="/")
    request.state.user_id = None
