"""
FastAPI middleware: per-request latency / count / status metrics plus a trace span.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from nexus_admin.observability.metrics import metrics
from nexus_admin.observability.tracing import tracer
from nexus_admin.webhooks.events import is_identifier

_SKIP_PATHS = frozenset({"/metrics", "/health"})


def _normalize_path(path: str) -> str:
    """
    Replace ids and tokens with a placeholder to keep label cardinality bounded.
    e.g. /api/users/3f2c...-.../ → /api/users/{id}
    """
    parts = path.strip("/").split("/")
    return "/" + "/".join("{id}" if is_identifier(p) else p for p in parts)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        method = request.method
        path = _normalize_path(request.url.path)

        # the raw URL may carry reset tokens, so only the normalized path goes on the span
        with tracer.start_as_current_span(
            f"{method} {path}",
            attributes={"http.method": method, "http.route": path},
        ) as span:
            start = time.perf_counter()
            response: Response = await call_next(request)
            elapsed = time.perf_counter() - start

            span.set_attribute("http.status_code", response.status_code)
            metrics.http_requests_total.labels(
                method=method, endpoint=path, status_code=str(response.status_code)
            ).inc()
            metrics.http_request_duration_seconds.labels(method=method, endpoint=path).observe(elapsed)

            return response
