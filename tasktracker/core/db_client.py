"""SQLite database client wrapper with CRUD operations."""

import asyncio
import json
import logging
import re
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from tasktracker.core.config import settings


logger = logging.getLogger(__name__)

_IDENTIFIER_PATTERN = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_FIELD_PATTERN = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
_COMPARISON_OPERATORS = ("!=", ">=", "<=", "=", ">", "<", "~")


class DatabaseError(RuntimeError):
    """Raised when a database operation fails."""


class RecordNotFoundError(KeyError):
    """Raised when a record lookup by id finds nothing."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Record not found"


def _validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not _IDENTIFIER_PATTERN.match(collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in a double-quoted filter string via json.dumps."""
    return json.dumps(str(value))[1:-1]


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value is matched literally (backslash is the escape char)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _convert_record_ids(record: dict[str, Any]) -> dict[str, Any]:
    """Convert integer ID and foreign key fields to strings for Pydantic compatibility."""
    converted = record.copy()
    for key, value in converted.items():
        if isinstance(value, int) and not isinstance(value, bool) and (key == "id" or key.endswith("_id")):
            converted[key] = str(value)
    return converted


def _serialize_value(value: Any) -> Any:  # noqa: ANN401
    """Convert Python values to types SQLite can store."""
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, dict | list):
        return json.dumps(value)
    return value


def _parse_record_id(collection: str, record_id: str) -> int:
    """Convert an opaque record id to the integer primary key, treating junk as not found."""
    try:
        return int(record_id)
    except (TypeError, ValueError) as e:
        msg = f"Record not found in {collection}: {record_id}"
        raise RecordNotFoundError(msg) from e


def get_db_path(db_path: str | None = None) -> Path:
    """Get the resolved SQLite database file path."""
    path_str = db_path or settings.sqlite_db_path
    return Path(path_str).resolve()


class _FilterParser:
    """Recursive-descent parser for the filter expression language.

    Grammar:
        expr       := and_expr ("||" and_expr)*
        and_expr   := primary ("&&" primary)*
        primary    := "(" expr ")" | comparison
        comparison := field operator quoted_value

    Values are single- or double-quoted; double-quoted values use JSON escapes,
    which is what sanitize_param produces.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0
        self.params: list[Any] = []

    def parse(self) -> str:
        clause = self._parse_or()
        self._skip_ws()
        if self._pos != len(self._text):
            self._fail("unexpected trailing input")
        return clause

    def _fail(self, reason: str) -> None:
        msg = f"Invalid filter syntax ({reason} at position {self._pos}): {self._text}"
        raise ValueError(msg)

    def _skip_ws(self) -> None:
        while self._pos < len(self._text) and self._text[self._pos].isspace():
            self._pos += 1

    def _consume(self, token: str) -> bool:
        self._skip_ws()
        if self._text.startswith(token, self._pos):
            self._pos += len(token)
            return True
        return False

    def _parse_or(self) -> str:
        parts = [self._parse_and()]
        while self._consume("||"):
            parts.append(self._parse_and())
        return " OR ".join(parts)

    def _parse_and(self) -> str:
        parts = [self._parse_primary()]
        while self._consume("&&"):
            parts.append(self._parse_primary())
        return parts[0] if len(parts) == 1 else " AND ".join(parts)

    def _parse_primary(self) -> str:
        if self._consume("("):
            inner = self._parse_or()
            if not self._consume(")"):
                self._fail("missing closing parenthesis")
            return f"({inner})"
        return self._parse_comparison()

    def _parse_comparison(self) -> str:
        self._skip_ws()
        match = _FIELD_PATTERN.match(self._text, self._pos)
        if not match:
            self._fail("expected field name")
        field = match.group(0)
        self._pos = match.end()

        self._skip_ws()
        op = next((o for o in _COMPARISON_OPERATORS if self._text.startswith(o, self._pos)), None)
        if op is None:
            self._fail("expected operator")
        self._pos += len(op)

        value = self._parse_quoted()

        if op == "~":
            self.params.append(f"%{escape_like(value)}%")
            return f"{field} LIKE ? ESCAPE '\\'"
        self.params.append(value)
        return f"{field} {op} ?"

    def _parse_quoted(self) -> str:
        self._skip_ws()
        if self._pos >= len(self._text) or self._text[self._pos] not in "'\"":
            self._fail("expected quoted value")
        quote = self._text[self._pos]
        self._pos += 1
        start = self._pos
        while self._pos < len(self._text):
            char = self._text[self._pos]
            if char == "\\":
                self._pos += 2
                continue
            if char == quote:
                raw = self._text[start : self._pos]
                self._pos += 1
                return self._unescape(raw, quote)
            self._pos += 1
        self._fail("unterminated string")
        return ""  # unreachable

    def _unescape(self, raw: str, quote: str) -> str:
        if quote == '"':
            try:
                return json.loads(f'"{raw}"')
            except json.JSONDecodeError:
                self._fail("bad escape sequence")
        return raw.replace("\\'", "'").replace("\\\\", "\\")


def parse_filter(filter_query: str) -> tuple[str, list[Any]]:
    """Parse filter syntax into a SQL WHERE clause and parameter list.

    Supports =, !=, >, <, >=, <=, ~ (case-insensitive contains), && and ||
    with parenthesized groups. Field names become SQL identifiers; values are
    always bound parameters.
    """
    if not filter_query or not filter_query.strip():
        return "", []

    parser = _FilterParser(filter_query)
    clause = parser.parse()
    return clause, parser.params


def parse_sort(sort: str) -> str:
    """Translate a comma-separated sort spec ("-created,+due_date,id") into an ORDER BY clause.

    Falls back to "id ASC" when any part is not a plain field name.
    """
    if not sort or not sort.strip():
        return "id ASC"

    clauses = []
    for raw_part in sort.split(","):
        part = raw_part.strip()
        direction = "ASC"
        if part.startswith("-"):
            direction = "DESC"
            part = part[1:]
        elif part.startswith("+"):
            part = part[1:]
        if not _IDENTIFIER_PATTERN.match(part):
            logger.warning("Invalid sort parameter, using default", extra={"sort": sort})
            return "id ASC"
        clauses.append(f"{part} {direction}")
    return ", ".join(clauses)


def _where(filter_query: str) -> tuple[str, list[Any]]:
    clause, params = parse_filter(filter_query)
    return (f"WHERE {clause}" if clause else ""), params


_db_connections: dict[tuple[int, int, str], aiosqlite.Connection] = {}
_db_lock = asyncio.Lock()


async def get_connection(*, db_path: str | None = None) -> aiosqlite.Connection:
    """Get or create a cached connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop = asyncio.get_running_loop()
    loop_id = id(loop)
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    if cache_key in _db_connections:
        return _db_connections[cache_key]

    async with _db_lock:
        # Double-check after acquiring lock
        if cache_key in _db_connections:
            return _db_connections[cache_key]

        path.parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(str(path))
        await conn.execute("PRAGMA foreign_keys = ON")
        await conn.execute("PRAGMA journal_mode = WAL")

        _db_connections[cache_key] = conn

        logger.info(
            "Created new SQLite connection",
            extra={"db_path": str(path), "thread_id": thread_id, "loop_id": loop_id},
        )
        return conn


async def close_connection(*, db_path: str | None = None) -> None:
    """Close the cached SQLite connection for the current thread, loop, and db path."""
    thread_id = threading.get_ident()
    loop_id = id(asyncio.get_running_loop())
    path = get_db_path(db_path)
    cache_key = (thread_id, loop_id, str(path))

    async with _db_lock:
        conn = _db_connections.pop(cache_key, None)
    if conn is None:
        return

    try:
        await conn.close()
        logger.info("Closed SQLite connection", extra={"thread_id": thread_id, "db_path": str(path)})
    except aiosqlite.Error as e:
        logger.warning("Error closing SQLite connection", extra={"error": str(e), "thread_id": thread_id})


async def init_db(*, db_path: str | None = None) -> None:
    """Initialize the database schema by delegating to schema.init_db()."""
    from tasktracker.core import schema  # noqa: PLC0415 - schema imports this module

    await schema.init_db(db_path=db_path)


def _rows_to_records(cursor: aiosqlite.Cursor, rows: list[Any]) -> list[dict[str, Any]]:
    columns = [description[0] for description in cursor.description]
    return [_convert_record_ids(dict(zip(columns, row, strict=True))) for row in rows]


async def create_record(*, collection: str, data: dict[str, Any]) -> dict[str, Any]:
    """Insert a new record and return it with its assigned id."""
    _validate_collection_name(collection)
    try:
        conn = await get_connection()

        columns = list(data.keys())
        for column in columns:
            _validate_collection_name(column)
        columns_str = ", ".join(columns)
        placeholders_str = ", ".join("?" for _ in columns)
        values = [_serialize_value(data[key]) for key in columns]

        query = f"INSERT INTO {collection} ({columns_str}) VALUES ({placeholders_str})"  # noqa: S608 - identifiers are validated
        cursor = await conn.execute(query, values)
        await conn.commit()
        record_id = cursor.lastrowid
    except aiosqlite.OperationalError as e:
        if "no such table" in str(e):
            logger.error("Table not found", extra={"collection": collection})
            msg = f"Table '{collection}' does not exist. Call init_db() first."
            raise DatabaseError(msg) from e
        logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
        raise DatabaseError(f"Failed to create record in {collection}: {e}") from e
    except aiosqlite.Error as e:
        logger.error("create_record_failed", extra={"collection": collection, "error": str(e)})
        raise DatabaseError(f"Failed to create record in {collection}: {e}") from e

    logger.info("Created record", extra={"collection": collection, "record_id": record_id})
    return await get_record(collection=collection, record_id=str(record_id))


async def get_record(*, collection: str, record_id: str) -> dict[str, Any]:
    """Fetch a single record by ID, raising RecordNotFoundError if not found."""
    _validate_collection_name(collection)
    pk = _parse_record_id(collection, record_id)
    try:
        conn = await get_connection()
        query = f"SELECT * FROM {collection} WHERE id = ?"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, (pk,))
        row = await cursor.fetchone()
    except aiosqlite.Error as e:
        logger.error("get_record_failed", extra={"collection": collection, "record_id": record_id, "error": str(e)})
        raise DatabaseError(f"Failed to get record from {collection}: {e}") from e

    if row is None:
        raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")

    logger.debug("Retrieved record", extra={"collection": collection, "record_id": record_id})
    return _rows_to_records(cursor, [row])[0]


async def update_records(*, collection: str, filter_query: str, data: dict[str, Any]) -> int:
    """Apply ``data`` to every record matching the filter in one statement; return the row count.

    An empty filter is rejected so a typo can never rewrite a whole table.
    """
    if not data:
        msg = "Empty update payload"
        raise ValueError(msg)

    _validate_collection_name(collection)
    for column in data:
        _validate_collection_name(column)
    where_clause, params = _where(filter_query)
    if not where_clause:
        msg = "update_records requires a filter"
        raise ValueError(msg)

    set_clause = ", ".join(f"{key} = ?" for key in data)
    values = [_serialize_value(val) for val in data.values()]

    try:
        conn = await get_connection()
        query = f"UPDATE {collection} SET {set_clause} {where_clause}"  # noqa: S608 - identifiers are validated
        cursor = await conn.execute(query, [*values, *params])
        await conn.commit()
    except aiosqlite.Error as e:
        logger.error("update_records_failed", extra={"collection": collection, "error": str(e)})
        raise DatabaseError(f"Failed to update records in {collection}: {e}") from e

    logger.info("Updated records", extra={"collection": collection, "count": cursor.rowcount})
    return cursor.rowcount


async def delete_records(*, collection: str, filter_query: str) -> int:
    """Delete every record matching the filter in one statement; return the row count."""
    _validate_collection_name(collection)
    where_clause, params = _where(filter_query)
    if not where_clause:
        msg = "delete_records requires a filter"
        raise ValueError(msg)

    try:
        conn = await get_connection()
        query = f"DELETE FROM {collection} {where_clause}"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, params)
        await conn.commit()
    except aiosqlite.Error as e:
        logger.error("delete_records_failed", extra={"collection": collection, "error": str(e)})
        raise DatabaseError(f"Failed to delete records from {collection}: {e}") from e

    logger.info("Deleted records", extra={"collection": collection, "count": cursor.rowcount})
    return cursor.rowcount


async def list_records(
    *,
    collection: str,
    page: int = 1,
    per_page: int | None = 50,
    filter_query: str = "",
    sort: str = "",
) -> list[dict[str, Any]]:
    """List records with optional filtering, sorting, and pagination.

    ``per_page=None`` returns every matching record.
    """
    _validate_collection_name(collection)
    where_clause, params = _where(filter_query)
    order_by = parse_sort(sort)

    query = f"SELECT * FROM {collection} {where_clause} ORDER BY {order_by}"  # noqa: S608 - identifiers are validated
    if per_page is not None:
        query += " LIMIT ? OFFSET ?"
        params.extend([per_page, (page - 1) * per_page])

    try:
        conn = await get_connection()
        cursor = await conn.execute(query, params)
        rows = await cursor.fetchall()
    except aiosqlite.Error as e:
        logger.error("list_records_failed", extra={"collection": collection, "error": str(e)})
        raise DatabaseError(f"Failed to list records from {collection}: {e}") from e

    records = _rows_to_records(cursor, list(rows))
    logger.debug("Listed records", extra={"collection": collection, "count": len(records)})
    return records


async def count_records(*, collection: str, filter_query: str = "") -> int:
    """Count records matching the filter."""
    _validate_collection_name(collection)
    where_clause, params = _where(filter_query)

    try:
        conn = await get_connection()
        query = f"SELECT COUNT(*) FROM {collection} {where_clause}"  # noqa: S608 - collection is validated
        cursor = await conn.execute(query, params)
        row = await cursor.fetchone()
    except aiosqlite.Error as e:
        logger.error("count_records_failed", extra={"collection": collection, "error": str(e)})
        raise DatabaseError(f"Failed to count records in {collection}: {e}") from e

    return int(row[0]) if row else 0


async def get_first_record(*, collection: str, filter_query: str) -> dict[str, Any] | None:
    """Return the first record matching the filter, or None."""
    records = await list_records(collection=collection, per_page=1, filter_query=filter_query)
    return records[0] if records else None
