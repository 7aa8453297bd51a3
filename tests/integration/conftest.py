"""Pytest configuration and fixtures for integration tests."""

from collections.abc import AsyncIterator

import pytest
from fastapi.testclient import TestClient

from tasktracker.core import db_client
from tasktracker.core.config import settings
from tests.conftest import auth_headers, signup


@pytest.fixture
def alice(test_client: TestClient) -> dict[str, str]:
    """Signed-up user with ready-made auth headers."""
    body = signup(test_client, "Alice", "alice@example.com")
    return {"id": body["user"]["id"], **auth_headers(body["token"])}


@pytest.fixture
def bob(test_client: TestClient) -> dict[str, str]:
    body = signup(test_client, "Bob", "bob@example.com")
    return {"id": body["user"]["id"], **auth_headers(body["token"])}


def headers(user: dict[str, str]) -> dict[str, str]:
    """Auth headers only, without the id helper key."""
    return {"Authorization": user["Authorization"]}


@pytest.fixture
async def sqlite_db(tmp_path, monkeypatch) -> AsyncIterator[None]:
    """Fresh SQLite file with the schema applied, closed after the test."""
    monkeypatch.setattr(settings, "sqlite_db_path", str(tmp_path / "db-client-test.db"))
    await db_client.init_db()
    yield
    await db_client.close_connection()
