"""
Webhook event dispatch: every /api response is mirrored, best effort, to the
globally configured webhook endpoint.

    from nexus_admin.webhooks import WebhookDispatcher, WebhookRoute

    router = APIRouter(prefix="/api/users", route_class=WebhookRoute)
    app.state.webhook_dispatcher = WebhookDispatcher(settings.webhook)
"""

from nexus_admin.webhooks.dispatcher import WebhookDispatcher
from nexus_admin.webhooks.events import build_payload, event_name, is_eligible
from nexus_admin.webhooks.route import WebhookRoute, emit_webhook_event

__all__ = [
    "WebhookDispatcher",
    "WebhookRoute",
    "build_payload",
    "emit_webhook_event",
    "event_name",
    "is_eligible",
]
