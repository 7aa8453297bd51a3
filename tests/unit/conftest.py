"""Pytest configuration and fixtures for unit tests."""

import pytest

from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches tasktracker.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("tasktracker.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("tasktracker.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("tasktracker.core.db_client.update_records", in_memory_db.update_records)
    monkeypatch.setattr("tasktracker.core.db_client.delete_records", in_memory_db.delete_records)
    monkeypatch.setattr("tasktracker.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("tasktracker.core.db_client.count_records", in_memory_db.count_records)
    monkeypatch.setattr("tasktracker.core.db_client.get_first_record", in_memory_db.get_first_record)

    return in_memory_db


@pytest.fixture
def alice_id() -> str:
    return "1"


@pytest.fixture
def bob_id() -> str:
    return "2"
