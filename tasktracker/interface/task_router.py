"""Task CRUD endpoints, all scoped to the authenticated user."""

import logging

from fastapi import APIRouter, Depends, Query, status

from tasktracker.domain.create_models import TaskCreate
from tasktracker.domain.update_models import TaskUpdate
from tasktracker.domain.user import User
from tasktracker.interface.auth_security import get_current_user
from tasktracker.services import task_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("")
async def list_tasks(
    user: User = Depends(get_current_user),
    task_status: str | None = Query(None, alias="status", description="To Do, In Progress, Done or all"),
    search: str | None = Query(None, description="Substring matched against title or description"),
    sort_by: str | None = Query(None, alias="sortBy", description="dueDate, priority, or newest first"),
) -> dict:
    """List the user's tasks with optional status, search and sort."""
    tasks = await task_service.list_tasks(user.id, status=task_status, search=search, sort_by=sort_by)
    return {"success": True, "count": len(tasks), "data": [task.to_api() for task in tasks]}


@router.get("/stats")
async def task_stats(user: User = Depends(get_current_user)) -> dict:
    """Count the user's tasks per status."""
    stats = await task_service.get_task_stats(user.id)
    return {"success": True, "data": stats.to_api()}


@router.get("/{task_id}")
async def get_task(task_id: str, user: User = Depends(get_current_user)) -> dict:
    """Get one of the user's tasks."""
    task = await task_service.get_task(user.id, task_id)
    return {"success": True, "data": task.to_api()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(body: TaskCreate, user: User = Depends(get_current_user)) -> dict:
    """Create a task owned by the user."""
    task = await task_service.create_task(user.id, body)
    return {"success": True, "data": task.to_api()}


@router.put("/{task_id}")
async def update_task(task_id: str, body: TaskUpdate, user: User = Depends(get_current_user)) -> dict:
    """Update any subset of a task's mutable fields."""
    task = await task_service.update_task(user.id, task_id, body)
    return {"success": True, "data": task.to_api()}


@router.delete("/{task_id}")
async def delete_task(task_id: str, user: User = Depends(get_current_user)) -> dict:
    """Delete one of the user's tasks."""
    await task_service.delete_task(user.id, task_id)
    return {"success": True, "message": "Task deleted"}
