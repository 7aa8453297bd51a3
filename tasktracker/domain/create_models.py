"""Pydantic models for creating records in database."""

import re
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tasktracker.core.config import Constants
from tasktracker.domain.task import TaskPriority, TaskStatus


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_title(value: str) -> str:
    """Strip a title and enforce the non-empty and length rules."""
    value = value.strip()
    if not value:
        raise ValueError("Title is required")
    if len(value) > Constants.TITLE_MAX_LENGTH:
        raise ValueError(f"Title is too long (max {Constants.TITLE_MAX_LENGTH} characters)")
    return value


def coerce_due_date(value: Any) -> Any:  # noqa: ANN401
    """Treat blank form values as "no due date" and drop the time part of ISO datetimes."""
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if "T" in value:
            return value.split("T", 1)[0]
    return value


class TaskCreate(BaseModel):
    """Request body for creating a task.

    Only these fields are read from the client; ``owner``/``user`` and any
    other extra keys in the payload are dropped.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Free-text description")
    due_date: date | None = Field(default=None, alias="dueDate", description="Optional due date (YYYY-MM-DD)")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="low, medium or high")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="To Do, In Progress or Done")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Validate the title is present and within bounds."""
        return validate_title(v)

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Any) -> Any:  # noqa: ANN401
        """Store a missing description as an empty string."""
        return "" if v is None else v

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v: Any) -> Any:  # noqa: ANN401
        """Accept blank strings and full ISO datetimes for the due date."""
        return coerce_due_date(v)


class UserCreate(BaseModel):
    """Request body for signing up."""

    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Login email")
    password: str = Field(..., description="Plain-text password, hashed before storage")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate the name is present and not too long."""
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        if len(v) > Constants.NAME_MAX_LENGTH:
            raise ValueError(f"Name too long (max {Constants.NAME_MAX_LENGTH} characters)")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Normalize the email and check its basic shape."""
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Please provide a valid email")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Validate minimum password length."""
        if len(v) < Constants.PASSWORD_MIN_LENGTH:
            raise ValueError(f"Password must be at least {Constants.PASSWORD_MIN_LENGTH} characters")
        return v


class LoginRequest(BaseModel):
    """Request body for logging in."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Lowercase the email to match how it was stored."""
        return v.strip().lower()
