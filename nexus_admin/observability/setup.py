"""
One-call observability wiring: middleware, /metrics and /health/detailed.
"""

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from nexus_admin import __version__
from nexus_admin.log import get_logger
from nexus_admin.observability.metrics import metrics
from nexus_admin.observability.middleware import ObservabilityMiddleware

logger = get_logger(__name__)


def _check_database(app: FastAPI) -> str:
    engine = getattr(app.state, "engine", None)
    if engine is None:
        return "not_configured"
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return "ok"
    except SQLAlchemyError as e:
        return f"error: {e}"


def _check_webhook(app: FastAPI) -> dict:
    dispatcher = getattr(app.state, "webhook_dispatcher", None)
    if dispatcher is None or not dispatcher.enabled:
        return {"status": "disabled"}
    return {"status": "configured", "pending": dispatcher.pending_count}


def setup_observability(app: FastAPI) -> None:
    """
    Attach observability to *app*.

    Call after the routers are included and before the app starts serving.
    """
    app.add_middleware(ObservabilityMiddleware)

    @app.get("/metrics", include_in_schema=False)
    def prometheus_metrics():
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health/detailed", tags=["observability"])
    def health_detailed():
        """Component reachability"""
        database = _check_database(app)
        webhook = _check_webhook(app)
        reset = getattr(app.state, "reset_service", None)
        components = {
            "database": database,
            "webhook": webhook,
            "recovery_methods": reset.available_methods() if reset is not None else {},
        }
        return {"status": "ok" if database == "ok" else "degraded", "components": components}

    metrics.app_info.info({"version": __version__, "service": "nexus-admin"})

    logger.info("[observability] middleware + /metrics + /health/detailed registered")
