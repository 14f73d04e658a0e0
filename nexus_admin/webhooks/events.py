"""
Webhook event naming and payload assembly.

/api/auth/login            -> auth.login
/api/users/<uuid>          -> users
/api/users/42/avatar       -> users.avatar
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

API_PREFIX = "/api/"
REALTIME_SEGMENT = "/socket.io"
ELIGIBLE_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})
# Never forwarded to the webhook.
SECRET_FIELDS = frozenset({"password", "confirmPassword", "newPassword", "token"})

_UUID_RE = re.compile(r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}")
_NUMERIC_RE = re.compile(r"\d+")
# Opaque tokens in paths (e.g. /validate-token/<64 hex>) must not end up in event names.
_HEX_TOKEN_RE = re.compile(r"[0-9a-fA-F]{32,}")


def is_identifier(segment: str) -> bool:
    return bool(
        _UUID_RE.fullmatch(segment)
        or _NUMERIC_RE.fullmatch(segment)
        or _HEX_TOKEN_RE.fullmatch(segment)
    )


def is_eligible(method: str, path: str) -> bool:
    return (
        method.upper() in ELIGIBLE_METHODS
        and path.startswith(API_PREFIX)
        and REALTIME_SEGMENT not in path
    )


def event_name(path: str) -> str:
    path = path.split("?", 1)[0]
    if path.startswith(API_PREFIX):
        path = path[len(API_PREFIX):]
    segments = [s for s in path.strip("/").split("/") if s and not is_identifier(s)]
    return ".".join(segments)


def _parse_geolocation(body: Mapping[str, Any], query: Mapping[str, Any]) -> Optional[Any]:
    if body.get("geolocation"):
        return body["geolocation"]
    raw = query.get("_geo")
    if raw:
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            return None
    return None


def _public(source: Mapping[str, Any], *skip: str) -> Dict[str, Any]:
    return {k: v for k, v in source.items() if k not in SECRET_FIELDS and k not in skip}


def build_payload(
    *,
    method: str,
    path: str,
    body: Optional[Mapping[str, Any]] = None,
    query: Optional[Mapping[str, Any]] = None,
    path_params: Optional[Mapping[str, Any]] = None,
    user_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Merge request data into one flat payload. Later sources win on key clashes;
    method, geolocation, userId and timestamp always win."""
    body = body or {}
    query = query or {}
    payload: Dict[str, Any] = {"event": event_name(path)}
    payload.update(_public(body, "geolocation"))
    payload.update(_public(query, "_geo"))
    payload.update(_public(path_params or {}))
    # set after the merges: a body field named "method" must not replace the verb
    payload["method"] = method.upper()
    payload["geolocation"] = _parse_geolocation(body, query)
    payload["userId"] = user_id
    payload["timestamp"] = (now or datetime.now(timezone.utc)).isoformat()
    return payload
