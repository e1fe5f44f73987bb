"""
Test configuration: point the app at a throwaway SQLite database and keep the
AI endpoint unconfigured unless a test injects a fake client.

Environment is set at conftest load time, before anything imports
``solvo_core.config``.
"""

import os
import tempfile
import uuid
from pathlib import Path

import pytest

_TMP_DIR = Path(tempfile.mkdtemp(prefix="solvo_core_tests_"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'test.db'}"
os.environ.pop("SQLALCHEMY_DATABASE_URL", None)
os.environ.pop("AI_API_BASE_URL", None)
os.environ.pop("AI_API_KEY", None)


@pytest.fixture
def app():
    from solvo_core.main import app

    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    # Entering the context runs the startup hook that creates the tables
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers(client):
    """Register a fresh user so every test starts from empty state."""
    email = f"lead-{uuid.uuid4().hex[:8]}@example.com"
    password = "correct-horse-9"
    response = client.post("/auth/register", json={"email": email, "name": "Team Lead", "password": password})
    assert response.status_code == 200
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def use_ai(app):
    """Install a FakeAIClient for the duration of a test."""
    from solvo_core.services.ai_client import get_ai_client

    def install(fake):
        app.dependency_overrides[get_ai_client] = lambda: fake
        return fake

    return install
