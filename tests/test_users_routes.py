"""
HTTP tests for /api/users: session gate, CRUD, uniqueness conflicts.
"""

import pytest

UUID = "3f2c9a1e-8b7d-4c6e-9f00-1234567890ab"


@pytest.fixture
def logged_in(register):
    return register(email="admin@b.com", name="Admin", role="admin").json()["user"]


def _create(client, email, **extra):
    return client.post("/api/users", json={"email": email, "password": "secret1", "name": "User", **extra})


@pytest.mark.parametrize(
    "method,path,body",
    [
        ("GET", "/api/users", None),
        ("GET", f"/api/users/{UUID}", None),
        ("POST", "/api/users", {"email": "x@b.com", "password": "secret1", "name": "X"}),
        ("PATCH", f"/api/users/{UUID}", {"name": "X"}),
        ("DELETE", f"/api/users/{UUID}", None),
    ],
)
def test_every_route_requires_a_session(app, client, method, path, body):
    resp = client.request(method, path, json=body)
    assert resp.status_code == 401
    assert resp.json() == {"error": "Não autorizado"}
    assert app.state.users.count() == 0


def test_forged_cookie_is_rejected(client):
    resp = client.get("/api/users", headers={"Cookie": "nexus.sid=forged.value.here"})
    assert resp.status_code == 401


def test_create_list_get(client, logged_in):
    created = _create(client, "c@b.com", celular="+5511988887777", externalId="crm-7")
    assert created.status_code == 201
    user = created.json()["user"]
    assert user["externalId"] == "crm-7"
    assert "password" not in user

    listed = client.get("/api/users").json()["users"]
    assert {u["email"] for u in listed} == {"admin@b.com", "c@b.com"}
    assert all("password" not in u for u in listed)

    fetched = client.get(f"/api/users/{user['id']}")
    assert fetched.json()["user"]["email"] == "c@b.com"


def test_admin_create_does_not_switch_session(client, logged_in):
    _create(client, "c@b.com")
    assert client.get("/api/auth/me").json()["user"]["id"] == logged_in["id"]


def test_get_unknown_user(client, logged_in):
    resp = client.get(f"/api/users/{UUID}")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Usuário não encontrado"}


def test_create_conflicts(client, logged_in):
    assert _create(client, "admin@b.com").status_code == 409

    assert _create(client, "one@b.com", externalId="ext-1").status_code == 201
    dup = _create(client, "two@b.com", externalId="ext-1")
    assert dup.status_code == 409
    assert dup.json() == {"error": "ID externo já cadastrado"}


def test_empty_external_ids_do_not_collide(client, logged_in):
    assert _create(client, "one@b.com", externalId="").status_code == 201
    assert _create(client, "two@b.com", externalId="").status_code == 201
    assert _create(client, "three@b.com").status_code == 201


def test_patch_updates_fields_but_never_password(app, client, logged_in):
    user = _create(client, "c@b.com").json()["user"]
    before = app.state.users.get(user["id"]).password

    resp = client.patch(
        f"/api/users/{user['id']}",
        json={"name": "Carla", "status": "inactive", "password": "hijacked", "email": None},
    )
    assert resp.status_code == 200
    body = resp.json()["user"]
    assert body["name"] == "Carla"
    assert body["status"] == "inactive"
    assert body["email"] == "c@b.com"
    assert app.state.users.get(user["id"]).password == before


def test_patch_email_conflict_and_unknown_user(client, logged_in):
    user = _create(client, "c@b.com").json()["user"]
    conflict = client.patch(f"/api/users/{user['id']}", json={"email": "admin@b.com"})
    assert conflict.status_code == 409
    assert conflict.json() == {"error": "Email já cadastrado"}

    missing = client.patch(f"/api/users/{UUID}", json={"name": "Nobody"})
    assert missing.status_code == 404


def test_patch_can_clear_optional_fields(client, logged_in):
    user = _create(client, "c@b.com", celular="+5511900000000").json()["user"]
    resp = client.patch(f"/api/users/{user['id']}", json={"celular": None})
    assert resp.json()["user"]["celular"] is None


def test_delete_user(client, logged_in):
    user = _create(client, "c@b.com").json()["user"]
    resp = client.delete(f"/api/users/{user['id']}")
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert client.get(f"/api/users/{user['id']}").status_code == 404
    assert client.delete(f"/api/users/{user['id']}").status_code == 404


def test_deleting_yourself_ends_your_session(client, logged_in):
    client.delete(f"/api/users/{logged_in['id']}")
    assert client.get("/api/users").status_code == 401
