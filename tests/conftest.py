"""
Shared fixtures: isolated settings, a temp SQLite database, the app and a client.
"""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config.settings import Settings  # noqa: E402
from nexus_admin.api.server import create_app  # noqa: E402
from nexus_admin.db import create_db_engine, init_db  # noqa: E402
from nexus_admin.users import SqlUserRepository  # noqa: E402

# Anything here would leak a developer's .env into the tests.
_ENV_OVERRIDES = (
    "APP_ENV", "NEXUS_DATABASE_URL", "DATABASE_URL", "SESSION_SECRET", "COOKIE_SECURE",
    "GLOBAL_WEBHOOK_URL", "GLOBAL_API_KEY", "SMTP_HOST", "SMTP_FROM", "SMTP_USER", "SMTP_PASS",
    "WHATSAPP_ENDPOINT", "WHATSAPP_API_KEY", "APP_BASE_URL", "LOG_LEVEL",
)

PASSWORD = "secret1"


def make_settings(tmp_path: Path, **sections) -> Settings:
    raw = {
        "env": "test",
        "database": {"url": f"sqlite:///{tmp_path / 'nexus_test.db'}"},
        "auth": {"session_secret": "test-secret", "bcrypt_rounds": 4},
        "webhook": {"url": "", "shutdown_grace_seconds": 0.5},
        "logging": {"level": "DEBUG", "log_dir": str(tmp_path / "logs"), "console_output": False},
    }
    for key, value in sections.items():
        raw[key] = {**raw.get(key, {}), **value}
    return Settings(raw=raw)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in _ENV_OVERRIDES:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def settings_factory(tmp_path):
    """Settings on the test database with some sections overridden."""
    return lambda **sections: make_settings(tmp_path, **sections)


@pytest.fixture
def settings(settings_factory) -> Settings:
    return settings_factory()


@pytest.fixture
def engine(settings):
    eng = create_db_engine(settings.database.url)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def user_repo(engine) -> SqlUserRepository:
    return SqlUserRepository(engine)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client):
    """POST /api/auth/register with sensible defaults; returns the response."""

    def _register(email: str = "a@b.com", password: str = PASSWORD, name: str = "Ana", **extra):
        return client.post(
            "/api/auth/register",
            json={"email": email, "password": password, "name": name, **extra},
        )

    return _register
