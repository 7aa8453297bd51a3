"""Pure Python in-memory database for unit testing."""

import copy
import json
import re
from datetime import UTC, datetime
from typing import Any

from tasktracker.core.db_client import DatabaseError, RecordNotFoundError


_FIELD = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
_OPERATORS = ("!=", ">=", "<=", "=", ">", "<", "~")


class _FilterEvaluator:
    """Evaluates a filter expression against one record.

    Same grammar as the production parser: comparisons joined by && and ||,
    parenthesized groups, single- or double-quoted values with escapes.
    """

    def __init__(self, text: str, record: dict[str, Any]) -> None:
        self._text = text
        self._pos = 0
        self._record = record

    def evaluate(self) -> bool:
        result = self._or()
        self._ws()
        if self._pos != len(self._text):
            raise DatabaseError(f"Invalid filter syntax: {self._text}")
        return result

    def _ws(self) -> None:
        while self._pos < len(self._text) and self._text[self._pos].isspace():
            self._pos += 1

    def _take(self, token: str) -> bool:
        self._ws()
        if self._text.startswith(token, self._pos):
            self._pos += len(token)
            return True
        return False

    def _or(self) -> bool:
        results = [self._and()]
        while self._take("||"):
            results.append(self._and())
        return any(results)

    def _and(self) -> bool:
        results = [self._primary()]
        while self._take("&&"):
            results.append(self._primary())
        return all(results)

    def _primary(self) -> bool:
        if self._take("("):
            result = self._or()
            if not self._take(")"):
                raise DatabaseError(f"Invalid filter syntax: {self._text}")
            return result
        return self._comparison()

    def _comparison(self) -> bool:
        self._ws()
        match = _FIELD.match(self._text, self._pos)
        if not match:
            raise DatabaseError(f"Invalid filter syntax: {self._text}")
        field = match.group(0)
        self._pos = match.end()
        self._ws()
        op = next((o for o in _OPERATORS if self._text.startswith(o, self._pos)), None)
        if op is None:
            raise DatabaseError(f"Invalid filter syntax (no operator found): {self._text}")
        self._pos += len(op)
        value = self._quoted()

        raw = self._record.get(field)
        actual = "" if raw is None else str(raw)
        if op == "~":
            return value.lower() in actual.lower()
        if op == "=":
            return actual == value
        if op == "!=":
            return actual != value
        if op == ">":
            return actual > value
        if op == "<":
            return actual < value
        if op == ">=":
            return actual >= value
        return actual <= value

    def _quoted(self) -> str:
        self._ws()
        if self._pos >= len(self._text) or self._text[self._pos] not in "'\"":
            raise DatabaseError(f"Invalid filter syntax: {self._text}")
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
                if quote == '"':
                    return json.loads(f'"{raw}"')
                return raw.replace("\\'", "'").replace("\\\\", "\\")
            self._pos += 1
        raise DatabaseError(f"Invalid filter syntax (unterminated string): {self._text}")


class InMemoryDBClient:
    """Pure Python in-memory database for unit testing.

    Mirrors the db_client module interface: CRUD, filter strings with
    =, !=, ~, && and || groups, multi-key sort specs, and conditional
    update/delete.
    """

    def __init__(self):
        """Initialize empty in-memory database."""
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._id_counter = 1000

    def _matches(self, filter_query: str, record: dict[str, Any]) -> bool:
        if not filter_query or not filter_query.strip():
            return True
        try:
            return _FilterEvaluator(filter_query, record).evaluate()
        except json.JSONDecodeError as e:
            raise DatabaseError(f"Invalid filter syntax: {filter_query}") from e

    async def create_record(self, collection: str, data: dict[str, Any]) -> dict[str, Any]:
        """Create a new record with a generated id and timestamps (data may override timestamps)."""
        if not isinstance(data, dict):
            raise DatabaseError(f"Data must be a dictionary, got {type(data)}")

        records = self._collections.setdefault(collection, {})
        record_id = str(self._id_counter)
        self._id_counter += 1

        now = datetime.now(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")
        record = {"created": now, "updated": now, **copy.deepcopy(data), "id": record_id}
        records[record_id] = record
        return copy.deepcopy(record)

    async def get_record(self, collection: str, record_id: str) -> dict[str, Any]:
        """Get a record by ID, raising RecordNotFoundError when missing."""
        if not isinstance(record_id, str):
            raise DatabaseError(f"Record ID must be a string, got {type(record_id)}")

        record = self._collections.get(collection, {}).get(record_id)
        if record is None:
            raise RecordNotFoundError(f"Record not found in {collection}: {record_id}")
        return copy.deepcopy(record)

    async def update_records(self, collection: str, filter_query: str, data: dict[str, Any]) -> int:
        """Apply data to every matching record; return how many changed."""
        if not data:
            raise ValueError("Empty update payload")
        if not filter_query:
            raise ValueError("update_records requires a filter")

        matched = [r for r in self._collections.get(collection, {}).values() if self._matches(filter_query, r)]
        for record in matched:
            record.update(copy.deepcopy(data))
        return len(matched)

    async def delete_records(self, collection: str, filter_query: str) -> int:
        """Delete every matching record; return how many were removed."""
        if not filter_query:
            raise ValueError("delete_records requires a filter")

        records = self._collections.get(collection, {})
        doomed = [rid for rid, r in records.items() if self._matches(filter_query, r)]
        for record_id in doomed:
            del records[record_id]
        return len(doomed)

    async def list_records(
        self,
        collection: str,
        page: int = 1,
        per_page: int | None = 50,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List records with optional filtering, sorting and pagination (per_page=None means all)."""
        records = [r for r in self._collections.get(collection, {}).values() if self._matches(filter_query, r)]
        records = self._apply_sort(records, sort or "id")

        if per_page is not None:
            start_idx = (page - 1) * per_page
            records = records[start_idx : start_idx + per_page]

        return [copy.deepcopy(r) for r in records]

    async def count_records(self, collection: str, filter_query: str = "") -> int:
        """Count matching records."""
        return sum(1 for r in self._collections.get(collection, {}).values() if self._matches(filter_query, r))

    async def get_first_record(self, collection: str, filter_query: str) -> dict[str, Any] | None:
        """Get the first matching record or None."""
        records = await self.list_records(collection, per_page=1, filter_query=filter_query)
        return records[0] if records else None

    def _apply_sort(self, records: list[dict], sort: str) -> list[dict]:
        """Sort by a comma-separated spec ("-created,+due_date,id").

        Missing values sort first ascending and last descending, like SQLite NULLs.
        """
        result = list(records)
        for raw_part in reversed(sort.split(",")):
            part = raw_part.strip()
            reverse = part.startswith("-")
            field = part.lstrip("+-")

            def key(record: dict, field: str = field) -> tuple:
                value = record.get(field)
                if field == "id" and value is not None:
                    value = int(value)
                return (value is not None, value if value is not None else 0)

            result.sort(key=key, reverse=reverse)
        return result
