from tasktracker.services import (
    ownership,
    task_query,
    task_service,
    user_service,
)


__all__ = [
    "ownership",
    "task_query",
    "task_service",
    "user_service",
]
