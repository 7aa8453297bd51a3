"""Task domain models and enums."""

from datetime import date
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class TaskStatus(StrEnum):
    """Task workflow status."""

    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


class TaskPriority(StrEnum):
    """Task priority level."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Sort rank stored alongside priority so ordering never depends on the labels' spelling
PRIORITY_RANK: dict[TaskPriority, int] = {
    TaskPriority.LOW: 1,
    TaskPriority.MEDIUM: 2,
    TaskPriority.HIGH: 3,
}

# Sentinel accepted by the list endpoint meaning "no status constraint"
STATUS_FILTER_ALL = "all"


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from database")
    owner_id: str = Field(..., serialization_alias="owner", description="ID of the user who created the task")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Free-text description")
    due_date: date | None = Field(default=None, serialization_alias="dueDate", description="Optional due date")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="low, medium or high")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="To Do, In Progress or Done")
    created: str = Field(..., serialization_alias="createdAt", description="Creation timestamp (ISO format)")
    updated: str = Field(..., serialization_alias="updatedAt", description="Last update timestamp (ISO format)")

    def to_api(self) -> dict[str, Any]:
        """Serialize with the camelCase field names the frontend expects."""
        return self.model_dump(mode="json", by_alias=True)


class TaskStats(BaseModel):
    """Per-status task counts for one owner."""

    total: int = 0
    todo: int = 0
    in_progress: int = Field(default=0, serialization_alias="inProgress")
    done: int = 0

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
