"""Ownership checks for single-task operations."""

import logging
from typing import Any

from tasktracker.core import db_client
from tasktracker.core.db_client import RecordNotFoundError, sanitize_param
from tasktracker.core.errors import TaskForbiddenError, TaskNotFoundError
from tasktracker.core.logging import span


logger = logging.getLogger(__name__)

TASKS_COLLECTION = "tasks"


async def ensure_task_owner(requester_id: str, task_id: str) -> dict[str, Any]:
    """Fetch a task and confirm the requester owns it.

    Args:
        requester_id: Authenticated user id
        task_id: Task id from the request path

    Returns:
        The task record

    Raises:
        TaskNotFoundError: If no task has this id
        TaskForbiddenError: If the task belongs to another user
    """
    with span("ownership.ensure_task_owner"):
        try:
            record = await db_client.get_record(collection=TASKS_COLLECTION, record_id=task_id)
        except RecordNotFoundError as e:
            raise TaskNotFoundError("Task not found") from e

        if str(record["owner_id"]) != str(requester_id):
            logger.warning("task_access_denied", extra={"user_id": requester_id, "task_id": task_id})
            raise TaskForbiddenError("Not authorized")

        return record


def owned_task_filter(requester_id: str, task_id: str) -> str:
    """Filter matching one task only while it still belongs to the requester."""
    return f'id = "{sanitize_param(task_id)}" && owner_id = "{sanitize_param(requester_id)}"'
