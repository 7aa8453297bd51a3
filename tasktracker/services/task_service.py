"""Task service for owner-scoped CRUD operations."""

import logging
from datetime import UTC, datetime

from tasktracker.core import db_client
from tasktracker.core.errors import TaskNotFoundError
from tasktracker.core.logging import log_with_user_context, span
from tasktracker.domain.create_models import TaskCreate
from tasktracker.domain.task import PRIORITY_RANK, Task, TaskPriority, TaskStats, TaskStatus
from tasktracker.domain.update_models import TaskUpdate
from tasktracker.services.ownership import TASKS_COLLECTION, ensure_task_owner, owned_task_filter
from tasktracker.services.task_query import build_task_query, owner_scope


logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(UTC).isoformat(timespec="microseconds").replace("+00:00", "Z")


async def list_tasks(
    requester_id: str,
    *,
    status: str | None = None,
    search: str | None = None,
    sort_by: str | None = None,
) -> list[Task]:
    """List every task owned by the requester that matches the optional filters.

    Returns:
        Matching tasks in the requested order; empty when nothing matches
    """
    with span("task_service.list_tasks"):
        query = build_task_query(requester_id, status=status, search=search, sort_by=sort_by)
        records = await db_client.list_records(
            collection=TASKS_COLLECTION,
            per_page=None,
            filter_query=query.filter_query,
            sort=query.sort,
        )
        return [Task(**record) for record in records]


async def get_task(requester_id: str, task_id: str) -> Task:
    """Get one task owned by the requester.

    Raises:
        TaskNotFoundError: If the task does not exist
        TaskForbiddenError: If the task belongs to another user
    """
    with span("task_service.get_task"):
        record = await ensure_task_owner(requester_id, task_id)
        return Task(**record)


async def create_task(requester_id: str, data: TaskCreate) -> Task:
    """Create a task owned by the requester.

    The owner always comes from the authenticated identity, never the payload.
    """
    with span("task_service.create_task"):
        now = _now()
        fields = data.model_dump(mode="json", by_alias=False)
        record = await db_client.create_record(
            collection=TASKS_COLLECTION,
            data={
                **fields,
                "owner_id": requester_id,
                "priority_rank": PRIORITY_RANK[data.priority],
                "created": now,
                "updated": now,
            },
        )

        log_with_user_context(logger, "info", "task_created", user_id=requester_id, task_id=record["id"])
        return Task(**record)


async def update_task(requester_id: str, task_id: str, data: TaskUpdate) -> Task:
    """Apply the client's changes to an owned task.

    Only allow-listed fields are written. The write is conditional on the
    task still belonging to the requester.

    Raises:
        TaskNotFoundError: If the task does not exist (or vanished mid-request)
        TaskForbiddenError: If the task belongs to another user
    """
    with span("task_service.update_task"):
        record = await ensure_task_owner(requester_id, task_id)

        changes = data.changes()
        if not changes:
            return Task(**record)

        if "priority" in changes:
            changes["priority_rank"] = PRIORITY_RANK[TaskPriority(changes["priority"])]
        changes["updated"] = _now()

        updated = await db_client.update_records(
            collection=TASKS_COLLECTION,
            filter_query=owned_task_filter(requester_id, task_id),
            data=changes,
        )
        if updated == 0:
            raise TaskNotFoundError("Task not found")

        log_with_user_context(
            logger, "info", "task_updated", user_id=requester_id, task_id=task_id, fields=sorted(changes)
        )
        return Task(**await db_client.get_record(collection=TASKS_COLLECTION, record_id=task_id))


async def delete_task(requester_id: str, task_id: str) -> None:
    """Permanently delete an owned task.

    Raises:
        TaskNotFoundError: If the task does not exist (or vanished mid-request)
        TaskForbiddenError: If the task belongs to another user
    """
    with span("task_service.delete_task"):
        await ensure_task_owner(requester_id, task_id)

        deleted = await db_client.delete_records(
            collection=TASKS_COLLECTION,
            filter_query=owned_task_filter(requester_id, task_id),
        )
        if deleted == 0:
            raise TaskNotFoundError("Task not found")

        log_with_user_context(logger, "info", "task_deleted", user_id=requester_id, task_id=task_id)


async def get_task_stats(requester_id: str) -> TaskStats:
    """Count the requester's tasks, overall and per status."""
    with span("task_service.get_task_stats"):
        scope = owner_scope(requester_id)
        counts = {}
        for task_status in TaskStatus:
            counts[task_status] = await db_client.count_records(
                collection=TASKS_COLLECTION,
                filter_query=f'{scope} && status = "{db_client.sanitize_param(task_status.value)}"',
            )

        return TaskStats(
            total=sum(counts.values()),
            todo=counts[TaskStatus.TODO],
            in_progress=counts[TaskStatus.IN_PROGRESS],
            done=counts[TaskStatus.DONE],
        )
