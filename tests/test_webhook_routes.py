"""
Webhook emission from the HTTP layer.

Coverage:
  1. Every eligible /api request emits once, after the endpoint ran,
     including error responses.
  2. Caller identity: set on login/register, null after logout and for anonymous calls,
     resolved from the cookie inside the dispatcher task otherwise.
  3. Secrets never reach the payload, from the body or the query string.
  4. Non-/api routes emit nothing.
  5. An unreachable webhook never changes the HTTP response.
"""

import pytest
from fastapi.testclient import TestClient

from nexus_admin.api.server import create_app

HOOK_URL = "http://127.0.0.1:9/hook"


@pytest.fixture
def hook_app(settings_factory):
    return create_app(settings_factory(webhook={"url": HOOK_URL, "api_key": "k-123"}))


class _Events(list):
    """Captured payloads; ``resolvers`` holds the deferred user lookup passed with each."""

    def __init__(self):
        super().__init__()
        self.resolvers = []

    def fire(self, payload, resolve_user_id=None):
        self.append(payload)
        self.resolvers.append(resolve_user_id)


@pytest.fixture
def events(hook_app, monkeypatch):
    captured = _Events()
    monkeypatch.setattr(hook_app.state.webhook_dispatcher, "fire", captured.fire)
    return captured


@pytest.fixture
def hook_client(hook_app, events):
    with TestClient(hook_app) as c:
        yield c


def _register(client, email="a@b.com"):
    return client.post("/api/auth/register", json={"email": email, "password": "secret1", "name": "Ana"})


def test_register_emits_with_new_user_and_no_password(hook_client, events):
    user = _register(hook_client).json()["user"]
    assert len(events) == 1
    event = events[0]
    assert event["event"] == "auth.register"
    assert event["method"] == "POST"
    assert event["userId"] == user["id"]
    assert event["email"] == "a@b.com"
    assert "password" not in event


def test_failed_requests_emit_too(hook_client, events):
    resp = hook_client.post("/api/auth/login", json={"email": "x@b.com", "password": "wrong-pass"})
    assert resp.status_code == 401
    assert [e["event"] for e in events] == ["auth.login"]
    assert events[0]["userId"] is None

    hook_client.get("/api/users")
    assert events[-1]["event"] == "users"
    assert events[-1]["userId"] is None


def test_protected_route_carries_session_user(hook_client, events):
    user = _register(hook_client).json()["user"]
    hook_client.get(f"/api/users/{user['id']}?_geo=%7B%22lat%22%3A1%7D")
    event = events[-1]
    assert event["event"] == "users"
    assert event["userId"] == user["id"]
    assert event["id"] == user["id"]
    assert "user_id" not in event
    assert event["geolocation"] == {"lat": 1}


def test_logout_event_is_anonymous(hook_client, events):
    _register(hook_client)
    hook_client.post("/api/auth/logout")
    assert events[-1]["event"] == "auth.logout"
    assert events[-1]["userId"] is None


def test_reset_token_not_forwarded(hook_client, events):
    hook_client.post("/api/auth/reset-password", json={"token": "ab" * 32, "password": "brandnew"})
    hook_client.get("/api/auth/validate-token/" + "cd" * 32)
    assert [e["event"] for e in events] == ["auth.reset-password", "auth.validate-token"]
    assert all("token" not in e and "password" not in e for e in events)


def test_non_api_routes_do_not_emit(hook_client, events):
    hook_client.get("/health")
    hook_client.get("/metrics")
    assert events == []


def test_unreachable_webhook_does_not_change_response(settings_factory, tmp_path):
    with_hook = create_app(settings_factory(webhook={"url": HOOK_URL, "timeout_seconds": 1}))
    without_hook = create_app(settings_factory(database={"url": f"sqlite:///{tmp_path / 'other.db'}"}))

    responses = []
    for app in (with_hook, without_hook):
        with TestClient(app) as c:
            resp = c.post("/api/auth/login", json={"email": "x@b.com", "password": "wrong-pass"})
            responses.append((resp.status_code, resp.json()))

    assert responses[0] == responses[1] == (401, {"error": "Email ou senha inválidos"})


def test_body_field_named_method_does_not_replace_verb(hook_client, events):
    hook_client.post("/api/auth/forgot-password", json={"email": "a@b.com", "method": "whatsapp"})
    assert events[-1]["event"] == "auth.forgot-password"
    assert events[-1]["method"] == "POST"


def test_query_secrets_not_forwarded(hook_client, events):
    hook_client.get("/api/auth/validate-token/abc", params={"token": "ab" * 32, "password": "hunter22", "ref": "mail"})
    event = events[-1]
    assert event["event"] == "auth.validate-token"
    assert "token" not in event
    assert "password" not in event
    assert event["ref"] == "mail"


def test_cookie_user_resolved_outside_request(hook_client, events):
    user = _register(hook_client).json()["user"]
    assert events.resolvers[-1] is None

    # recovery-methods does not touch the session, so the cookie is looked up later
    hook_client.get("/api/auth/recovery-methods")
    assert events[-1]["event"] == "auth.recovery-methods"
    assert events[-1]["userId"] is None
    resolve = events.resolvers[-1]
    assert resolve is not None
    assert resolve() == user["id"]


def test_anonymous_request_has_no_deferred_lookup(hook_client, events):
    hook_client.get("/api/auth/recovery-methods")
    assert events.resolvers == [None]
    assert events[-1]["userId"] is None
