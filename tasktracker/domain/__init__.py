"""Domain models and DTOs."""

from tasktracker.domain.create_models import LoginRequest, TaskCreate, UserCreate
from tasktracker.domain.task import PRIORITY_RANK, STATUS_FILTER_ALL, Task, TaskPriority, TaskStats, TaskStatus
from tasktracker.domain.update_models import MUTABLE_TASK_FIELDS, TaskUpdate
from tasktracker.domain.user import User


__all__ = [
    "MUTABLE_TASK_FIELDS",
    "PRIORITY_RANK",
    "STATUS_FILTER_ALL",
    "LoginRequest",
    "Task",
    "TaskCreate",
    "TaskPriority",
    "TaskStats",
    "TaskStatus",
    "TaskUpdate",
    "User",
    "UserCreate",
]
