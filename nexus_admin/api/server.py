"""
FastAPI application entry: session auth, password reset, user management
and the global webhook mirror.

    uvicorn nexus_admin.api.server:create_app --factory
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from config.settings import DEFAULT_SESSION_SECRET, Settings
from nexus_admin import __version__
from nexus_admin.api.errors import register_exception_handlers
from nexus_admin.api.routes_auth import router as auth_router
from nexus_admin.api.routes_users import router as users_router
from nexus_admin.auth.delivery import EMAIL, WHATSAPP, EmailResetChannel, WhatsAppResetChannel
from nexus_admin.auth.password_reset import PasswordResetService
from nexus_admin.auth.service import AuthService
from nexus_admin.auth.session import SessionManager
from nexus_admin.db import create_db_engine, init_db
from nexus_admin.log import cleanup_logs, get_logger, init_logging
from nexus_admin.observability import setup_observability
from nexus_admin.users import SqlUserRepository, UserService
from nexus_admin.webhooks import WebhookDispatcher

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle: create tables -> secret check -> purge expired sessions; on exit drain webhooks"""
    settings: Settings = app.state.settings

    # 0. make sure the tables exist (alembic owns real migrations)
    try:
        init_db(app.state.engine)
    except SQLAlchemyError as e:
        logger.warning("[startup] init_db failed (may be OK if alembic already ran): %s", e)

    # 0a. session secret safety check
    if settings.auth.session_secret == DEFAULT_SESSION_SECRET:
        if settings.is_prod:
            raise RuntimeError("SESSION_SECRET must be set in production")
        logger.warning(
            "[startup] SECURITY WARNING: auth.session_secret is still the default value. "
            "Session cookies can be forged. Set SESSION_SECRET before deploying."
        )

    # 0b. drop expired sessions left from previous runs
    try:
        purged = app.state.sessions.purge_expired()
        if purged:
            logger.info("[startup] purged %d expired session(s)", purged)
    except SQLAlchemyError as e:
        logger.warning("[startup] purge_expired failed: %s", e)

    # 0c. log retention
    report = cleanup_logs()
    if report["deleted_by_age"] or report["deleted_by_size"]:
        logger.info("[startup] log cleanup: %s", report)

    if not settings.webhook.enabled:
        logger.info("[startup] GLOBAL_WEBHOOK_URL not set; webhook dispatch disabled")

    yield

    await app.state.webhook_dispatcher.aclose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application and its services from *settings* (defaults to the environment)."""
    settings = settings or Settings()
    init_logging(settings.logging.as_dict())

    engine = create_db_engine(settings.database.url, echo=settings.database.echo)
    users = SqlUserRepository(engine)
    sessions = SessionManager(settings.auth, engine)
    channels = {
        EMAIL: EmailResetChannel(settings.mail),
        WHATSAPP: WhatsAppResetChannel(settings.whatsapp, settings.mail.app_base_url),
    }

    app = FastAPI(
        title="Nexus Admin API",
        description="Painel administrativo: autenticação, usuários e webhooks",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.users = users
    app.state.sessions = sessions
    app.state.auth_service = AuthService(users, bcrypt_rounds=settings.auth.bcrypt_rounds)
    app.state.reset_service = PasswordResetService(
        users,
        channels,
        token_ttl_hours=settings.auth.reset_token_ttl_hours,
        bcrypt_rounds=settings.auth.bcrypt_rounds,
    )
    app.state.user_service = UserService(users, sessions)
    app.state.webhook_dispatcher = WebhookDispatcher(settings.webhook)

    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(users_router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    # Observability: middleware + /metrics + /health/detailed
    setup_observability(app)

    return app
