"""SQLite schema management (code-first approach)."""

import logging

from tasktracker.core import db_client


logger = logging.getLogger(__name__)


# Central list of all collections in the schema, in dependency order
COLLECTIONS = [
    "users",
    "tasks",
]

_TABLES: dict[str, str] = {
    "users": """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL,
            password_hash TEXT NOT NULL,
            created TEXT NOT NULL
        )
    """,
    "tasks": """
        CREATE TABLE IF NOT EXISTS tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_id TEXT NOT NULL,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            due_date TEXT,
            priority TEXT NOT NULL DEFAULT 'medium'
                CHECK (priority IN ('low', 'medium', 'high')),
            priority_rank INTEGER NOT NULL DEFAULT 2,
            status TEXT NOT NULL DEFAULT 'To Do'
                CHECK (status IN ('To Do', 'In Progress', 'Done')),
            created TEXT NOT NULL,
            updated TEXT NOT NULL
        )
    """,
}

_INDEXES: list[str] = [
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_users_email ON users (email)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_owner ON tasks (owner_id)",
    "CREATE INDEX IF NOT EXISTS idx_tasks_owner_status ON tasks (owner_id, status)",
]


async def init_db(*, db_path: str | None = None) -> None:
    """Create tables and indexes if they do not exist (idempotent)."""
    logger.info("Starting SQLite schema sync...")
    conn = await db_client.get_connection(db_path=db_path)

    for collection_name in COLLECTIONS:
        await conn.execute(_TABLES[collection_name])
    for index in _INDEXES:
        await conn.execute(index)
    await conn.commit()

    logger.info("SQLite schema sync complete", extra={"collections": COLLECTIONS})
