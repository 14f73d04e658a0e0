"""
Post-response hook for webhook events.

Routers under /api are created with ``route_class=WebhookRoute``. Once the
endpoint has produced its response (or raised the error that will be
rendered), the route emits the request to the app's ``WebhookDispatcher``.
The response object is passed through untouched.

The caller's user id comes from ``request.state.user_id`` when the auth layer
set it during the request (login, register, protected routes); otherwise the
session cookie is resolved inside the dispatcher task, off the request path.
"""

from __future__ import annotations

import json
from functools import partial
from typing import Any, Callable, Coroutine, Dict, Optional, Tuple

from fastapi import Request, Response
from fastapi.routing import APIRoute

from nexus_admin.log import get_logger
from nexus_admin.webhooks.events import build_payload, is_eligible

logger = get_logger(__name__)

_UNSET = object()


async def _json_body(request: Request) -> Dict[str, Any]:
    if "json" not in request.headers.get("content-type", ""):
        return {}
    try:
        raw = await request.body()
        data = json.loads(raw) if raw else {}
    except (ValueError, RuntimeError):
        return {}
    return data if isinstance(data, dict) else {}


def _user_id_source(request: Request) -> Tuple[Optional[str], Optional[Callable[[], Optional[str]]]]:
    """Known user id, or a deferred cookie lookup when the request did not set one."""
    user_id = getattr(request.state, "user_id", _UNSET)
    if user_id is not _UNSET:
        return user_id, None
    sessions = getattr(request.app.state, "sessions", None)
    cookie = request.cookies.get(sessions.cookie_name) if sessions is not None else None
    if not cookie:
        return None, None
    return None, partial(sessions.resolve, cookie)


async def emit_webhook_event(request: Request) -> None:
    """Build the payload for *request* and hand it to the dispatcher. Never raises."""
    dispatcher = getattr(request.app.state, "webhook_dispatcher", None)
    if dispatcher is None or not dispatcher.enabled:
        return
    if not is_eligible(request.method, request.url.path):
        return
    try:
        user_id, resolve_user_id = _user_id_source(request)
        payload = build_payload(
            method=request.method,
            path=request.url.path,
            body=await _json_body(request),
            query=dict(request.query_params),
            path_params=dict(request.path_params),
            user_id=user_id,
        )
        dispatcher.fire(payload, resolve_user_id)
    except Exception:
        logger.exception("could not schedule webhook for %s %s", request.method, request.url.path)


class WebhookRoute(APIRoute):
    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_route_handler = super().get_route_handler()

        async def webhook_route_handler(request: Request) -> Response:
            try:
                response = await original_route_handler(request)
            except Exception:
                await emit_webhook_event(request)
                raise
            await emit_webhook_event(request)
            return response

        return webhook_route_handler
