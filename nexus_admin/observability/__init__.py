"""
Observability: OpenTelemetry tracing + Prometheus metrics.

    from nexus_admin.observability import setup_observability, metrics, tracer

    setup_observability(app)

    metrics.login_attempts_total.labels(outcome="success").inc()
"""

from nexus_admin.observability.metrics import metrics
from nexus_admin.observability.setup import setup_observability
from nexus_admin.observability.tracing import tracer

__all__ = ["setup_observability", "metrics", "tracer"]
