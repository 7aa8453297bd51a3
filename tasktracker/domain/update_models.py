"""Update models for database operations."""

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tasktracker.domain.create_models import coerce_due_date, validate_title
from tasktracker.domain.task import TaskPriority, TaskStatus


# The only task attributes a client may change; owner, id and timestamps are never writable
MUTABLE_TASK_FIELDS: tuple[str, ...] = ("title", "description", "due_date", "priority", "status")


class TaskUpdate(BaseModel):
    """Partial update payload for a task. Unset fields are left untouched."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str | None = None
    description: str | None = None
    due_date: date | None = Field(default=None, alias="dueDate")
    priority: TaskPriority | None = None
    status: TaskStatus | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str:
        """A title may be changed but never cleared."""
        if v is None:
            raise ValueError("Title is required")
        return validate_title(v)

    @field_validator("priority", "status")
    @classmethod
    def reject_null(cls, v: Any) -> Any:  # noqa: ANN401
        """Priority and status cannot be cleared."""
        if v is None:
            raise ValueError("Value cannot be null")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def clear_description(cls, v: Any) -> Any:  # noqa: ANN401
        """A null description clears it."""
        return "" if v is None else v

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Any) -> Any:  # noqa: ANN401
        """Accept blank strings (clears the date) and full ISO datetimes."""
        return coerce_due_date(v)

    def changes(self) -> dict[str, Any]:
        """Return only the allow-listed fields the client actually sent, as storable values."""
        sent = self.model_dump(mode="json", include=self.model_fields_set)
        return {field: sent[field] for field in MUTABLE_TASK_FIELDS if field in sent}
