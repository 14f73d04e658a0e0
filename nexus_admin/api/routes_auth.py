"""
Auth API: register, login, logout, current user and the password reset flow.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from sqlalchemy.exc import SQLAlchemyError

from nexus_admin.api.deps import (
    close_session,
    get_auth_service,
    get_current_user_id,
    get_reset_service,
    get_sessions,
    get_user_service,
    open_session,
)
from nexus_admin.api.schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    RecoveryMethods,
    ResetPasswordRequest,
    SuccessResponse,
    TokenValidity,
    UserCreate,
    UserEnvelope,
    UserOut,
)
from nexus_admin.auth.password_reset import PasswordResetService, generic_message
from nexus_admin.auth.service import AuthService
from nexus_admin.auth.session import SessionManager
from nexus_admin.log import get_logger
from nexus_admin.users.service import UserService
from nexus_admin.webhooks import WebhookRoute

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"], route_class=WebhookRoute)


@router.post("/register", response_model=UserEnvelope)
def register(
    body: UserCreate,
    request: Request,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    sessions: SessionManager = Depends(get_sessions),
) -> UserEnvelope:
    """Create an account and log it in."""
    user = auth.create_user(body.model_dump())
    open_session(request, response, sessions, user.id)
    return UserEnvelope(user=UserOut.model_validate(user))


@router.post("/login", response_model=UserEnvelope)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    auth: AuthService = Depends(get_auth_service),
    sessions: SessionManager = Depends(get_sessions),
) -> UserEnvelope:
    user = auth.authenticate(body.email, body.password)
    open_session(request, response, sessions, user.id)
    return UserEnvelope(user=UserOut.model_validate(user))


@router.post("/logout", response_model=SuccessResponse)
def logout(
    request: Request,
    response: Response,
    _user_id: str = Depends(get_current_user_id),
    sessions: SessionManager = Depends(get_sessions),
) -> SuccessResponse:
    close_session(request, response, sessions)
    return SuccessResponse()


@router.get("/me", response_model=UserEnvelope)
def me(
    user_id: str = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service),
) -> UserEnvelope:
    return UserEnvelope(user=UserOut.model_validate(users.get_user(user_id)))


@router.get("/recovery-methods", response_model=RecoveryMethods)
def recovery_methods(reset: PasswordResetService = Depends(get_reset_service)) -> RecoveryMethods:
    """Which reset channels are configured, so the client can offer them."""
    return RecoveryMethods(methods=reset.available_methods())


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    body: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    reset: PasswordResetService = Depends(get_reset_service),
) -> MessageResponse:
    """
    Always answers the same way for a given method.

    The lookup, token write and delivery run after the response is sent, so
    neither the body nor the latency depends on whether the email exists.
    """
    background_tasks.add_task(reset.issue_token_in_background, body.email, body.method)
    return MessageResponse(message=generic_message(body.method))


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    reset: PasswordResetService = Depends(get_reset_service),
) -> MessageResponse:
    reset.consume(body.token, body.password)
    return MessageResponse(message="Senha redefinida com sucesso")


@router.get("/validate-token/{token}", response_model=TokenValidity)
def validate_token(
    token: str,
    reset: PasswordResetService = Depends(get_reset_service),
) -> TokenValidity:
    try:
        return TokenValidity(valid=reset.validate(token))
    except SQLAlchemyError:
        logger.exception("token validation failed")
        return TokenValidity(valid=False)
