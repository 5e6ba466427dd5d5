"""Task domain models and enums."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_serializer, field_validator

from taskapi.core.config import constants
from taskapi.core.timestamps import format_timestamp, parse_timestamp, utc_now


class TaskCategory(StrEnum):
    """What area of life a task belongs to."""

    WORK = "Work"
    PERSONAL = "Personal"
    STUDY = "Study"
    HEALTH = "Health"
    OTHER = "Other"


class TaskPriority(StrEnum):
    """How urgent a task is."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Task(BaseModel):
    """Task data transfer object returned by the API."""

    id: str = Field(..., description="Unique task ID assigned by the document store")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")
    category: TaskCategory = Field(..., description="Task category")
    priority: TaskPriority = Field(..., description="Task priority")
    deadline: datetime = Field(..., description="Deadline (ISO format, UTC)")
    completed: bool = Field(default=False, description="Whether the task is done")
    createdAt: datetime = Field(..., description="Creation timestamp (ISO format)")  # noqa: N815
    updatedAt: datetime = Field(..., description="Last update timestamp (ISO format)")  # noqa: N815

    @field_serializer("deadline", "createdAt", "updatedAt")
    def serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)


class TaskRecord(BaseModel):
    """Storage-layer schema for documents in the tasks collection.

    Repeats the request validator's constraints so a document that bypasses
    the HTTP layer still cannot be persisted in an invalid state.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str
    description: str = ""
    category: TaskCategory
    priority: TaskPriority
    deadline: datetime
    completed: bool = False

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v:
            raise ValueError("Task title is required")
        if len(v) > constants.TITLE_MAX_LENGTH:
            raise ValueError(f"Task title cannot be more than {constants.TITLE_MAX_LENGTH} characters")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        if len(v) > constants.DESCRIPTION_MAX_LENGTH:
            raise ValueError(f"Task description cannot be more than {constants.DESCRIPTION_MAX_LENGTH} characters")
        return v

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, v: Any) -> TaskCategory:
        try:
            return TaskCategory(v.strip() if isinstance(v, str) else v)
        except ValueError:
            raise ValueError(f"Category must be one of: {', '.join(TaskCategory)}") from None

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: Any) -> TaskPriority:
        try:
            return TaskPriority(v)
        except ValueError:
            raise ValueError(f"Priority must be one of: {', '.join(TaskPriority)}") from None

    @field_validator("deadline")
    @classmethod
    def validate_deadline_in_future(cls, v: datetime, info: ValidationInfo) -> datetime:
        """New documents must have a deadline after the current time."""
        v = parse_timestamp(v)
        is_new = bool(info.context and info.context.get("is_new"))
        if is_new and v <= utc_now():
            raise ValueError("Deadline must be a future date")
        return v
