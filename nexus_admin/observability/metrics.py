"""
Prometheus metrics definitions.

All custom metrics live here; modules use them via
`from nexus_admin.observability.metrics import metrics`.
"""

from prometheus_client import Counter, Histogram, Info


class _Metrics:
    """Holds every Prometheus metric of the service."""

    def __init__(self):
        # ── HTTP ──
        self.http_requests_total = Counter(
            "nexus_http_requests_total",
            "HTTP requests",
            ["method", "endpoint", "status_code"],
        )
        self.http_request_duration_seconds = Histogram(
            "nexus_http_request_duration_seconds",
            "HTTP request latency (seconds)",
            ["method", "endpoint"],
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
        )

        # ── Auth ──
        self.login_attempts_total = Counter(
            "nexus_login_attempts_total",
            "Login attempts",
            ["outcome"],  # success / failure
        )
        self.password_reset_total = Counter(
            "nexus_password_reset_total",
            "Password reset lifecycle events",
            ["stage", "outcome"],  # stage: issue / validate / consume
        )

        # ── Webhook ──
        self.webhook_dispatch_total = Counter(
            "nexus_webhook_dispatch_total",
            "Outbound webhook deliveries",
            ["outcome"],  # sent / http_error / failed
        )
        self.webhook_dispatch_duration_seconds = Histogram(
            "nexus_webhook_dispatch_duration_seconds",
            "Outbound webhook latency (seconds)",
            buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
        )

        self.app_info = Info(
            "nexus_app",
            "Application metadata",
        )


metrics = _Metrics()
