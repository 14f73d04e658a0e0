"""
Webhook event naming, eligibility and payload assembly.
"""

import json
from datetime import datetime, timezone

import pytest

from nexus_admin.webhooks.events import build_payload, event_name, is_eligible

UUID = "3f2c9a1e-8b7d-4c6e-9f00-1234567890ab"


@pytest.mark.parametrize(
    "path,expected",
    [
        ("/api/auth/login", "auth.login"),
        (f"/api/users/{UUID}", "users"),
        ("/api/users/42/avatar", "users.avatar"),
        ("/api/users", "users"),
        ("/api/auth/validate-token/" + "ab" * 32, "auth.validate-token"),
        ("/api/auth/login?x=1", "auth.login"),
    ],
)
def test_event_name(path, expected):
    assert event_name(path) == expected


@pytest.mark.parametrize(
    "method,path,expected",
    [
        ("POST", "/api/auth/login", True),
        ("delete", "/api/users/1", True),
        ("OPTIONS", "/api/users", False),
        ("HEAD", "/api/users", False),
        ("GET", "/health", False),
        ("GET", "/api/socket.io/", False),
        ("GET", "/metrics", False),
    ],
)
def test_is_eligible(method, path, expected):
    assert is_eligible(method, path) is expected


def test_payload_merges_sources_and_drops_secrets():
    now = datetime(2026, 5, 4, 3, 2, 1, tzinfo=timezone.utc)
    payload = build_payload(
        method="post",
        path="/api/auth/register",
        body={"email": "a@b.com", "password": "secret1", "name": "Ana"},
        query={"ref": "landing"},
        user_id="u-1",
        now=now,
    )
    assert payload["event"] == "auth.register"
    assert payload["method"] == "POST"
    assert payload["email"] == "a@b.com"
    assert payload["ref"] == "landing"
    assert "password" not in payload
    assert payload["userId"] == "u-1"
    assert payload["timestamp"] == now.isoformat()
    assert payload["geolocation"] is None


def test_path_params_win_and_tokens_are_redacted():
    payload = build_payload(
        method="PATCH",
        path=f"/api/users/{UUID}",
        body={"id": "from-body"},
        path_params={"id": UUID, "token": "ab" * 32},
    )
    assert payload["id"] == UUID
    assert "token" not in payload


def test_geolocation_from_body_or_query():
    geo = {"lat": -23.5, "lng": -46.6}
    from_body = build_payload(method="GET", path="/api/users", body={"geolocation": geo})
    from_query = build_payload(method="GET", path="/api/users", query={"_geo": json.dumps(geo)})
    broken = build_payload(method="GET", path="/api/users", query={"_geo": "{nope"})
    assert from_body["geolocation"] == geo
    assert from_query["geolocation"] == geo
    assert "_geo" not in from_query
    assert broken["geolocation"] is None


def test_anonymous_caller_has_null_user():
    assert build_payload(method="GET", path="/api/users")["userId"] is None


def test_body_cannot_override_method():
    payload = build_payload(
        method="post",
        path="/api/auth/forgot-password",
        body={"email": "a@b.com", "method": "whatsapp", "userId": "spoofed", "timestamp": "x"},
        user_id=None,
    )
    assert payload["method"] == "POST"
    assert payload["userId"] is None
    assert payload["timestamp"] != "x"


def test_query_secrets_are_redacted():
    payload = build_payload(
        method="GET",
        path="/api/auth/validate-token/abc",
        query={"token": "ab" * 32, "password": "hunter22", "newPassword": "x", "ref": "mail"},
    )
    assert "token" not in payload
    assert "password" not in payload
    assert "newPassword" not in payload
    assert payload["ref"] == "mail"
