"""Security tests share the in-memory database fixtures."""

from tests.unit.conftest import alice_id, bob_id, in_memory_db, patched_db  # noqa: F401
