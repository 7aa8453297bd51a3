"""Translate list parameters into an owner-scoped filter and sort for the tasks collection."""

from typing import NamedTuple

from tasktracker.core.db_client import sanitize_param
from tasktracker.domain.task import STATUS_FILTER_ALL


SORT_BY_DUE_DATE = "dueDate"
SORT_BY_PRIORITY = "priority"

# Trailing "-id" makes ties deterministic, newest insert first
_SORTS: dict[str, str] = {
    SORT_BY_DUE_DATE: "+due_date,-id",
    SORT_BY_PRIORITY: "-priority_rank,-id",
}
DEFAULT_SORT = "-created,-id"


class TaskQuery(NamedTuple):
    """Filter and sort strings ready for db_client.list_records."""

    filter_query: str
    sort: str


def owner_scope(requester_id: str) -> str:
    """Return the filter clause binding a query to one owner's tasks."""
    if not requester_id:
        raise ValueError("requester_id is required to scope a task query")
    return f'owner_id = "{sanitize_param(requester_id)}"'


def build_task_query(
    requester_id: str,
    *,
    status: str | None = None,
    search: str | None = None,
    sort_by: str | None = None,
) -> TaskQuery:
    """Build the filter and sort for listing a user's tasks.

    The owner constraint is always the first conjunct; every other constraint
    narrows it further. A status that is not one of the known values is kept
    as a literal equality and simply matches nothing. An unknown sort key
    falls back to newest-first.

    Args:
        requester_id: Authenticated user id (mandatory)
        status: "To Do", "In Progress", "Done", "all" or None
        search: Case-insensitive substring matched against title or description
        sort_by: "dueDate", "priority", or anything else for newest-first

    Returns:
        TaskQuery with the filter string and sort spec
    """
    conditions = [owner_scope(requester_id)]

    if status and status != STATUS_FILTER_ALL:
        conditions.append(f'status = "{sanitize_param(status)}"')

    if search:
        term = sanitize_param(search)
        conditions.append(f'(title ~ "{term}" || description ~ "{term}")')

    sort = _SORTS.get(sort_by or "", DEFAULT_SORT)

    return TaskQuery(filter_query=" && ".join(conditions), sort=sort)
