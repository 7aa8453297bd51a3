"""Pytest configuration and shared fixtures."""

import os


# Settings are read at import time, so the environment must be prepared first
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.pop("REDIS_URL", None)
os.environ.pop("LOGFIRE_TOKEN", None)

from collections.abc import Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from tasktracker.core.config import settings  # noqa: E402
from tasktracker.main import app  # noqa: E402


@pytest.fixture
def test_client(tmp_path, monkeypatch) -> Generator[TestClient, None, None]:
    """FastAPI test client backed by a fresh SQLite file per test."""
    monkeypatch.setattr(settings, "sqlite_db_path", str(tmp_path / "tasktracker-test.db"))
    with TestClient(app) as client:
        yield client


def signup(client: TestClient, name: str, email: str, password: str = "password123") -> dict:
    """Register a user through the API and return the response body."""
    response = client.post("/api/auth/signup", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    return response.json()


def auth_headers(token: str) -> dict[str, str]:
    """Authorization header for a bearer token."""
    return {"Authorization": f"Bearer {token}"}
