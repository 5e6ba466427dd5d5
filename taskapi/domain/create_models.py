"""Pydantic models for creating task records."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskapi.domain.task import TaskCategory, TaskPriority
from taskapi.domain.validators import (
    clean_category,
    clean_completed,
    clean_deadline,
    clean_description,
    clean_priority,
    clean_title,
)


class TaskCreate(BaseModel):
    """Payload for creating a task. Unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., description="Task title (3-100 characters)")
    description: str = Field(default="", description="Optional description (up to 500 characters)")
    category: TaskCategory = Field(..., description="Task category")
    priority: TaskPriority = Field(..., description="Task priority")
    deadline: datetime = Field(..., description="Deadline, must be in the future")
    completed: bool = Field(default=False, description="Whether the task is done")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        return clean_title(v, required=True)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> str:
        return clean_description(v)

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, v: Any) -> TaskCategory:
        return clean_category(v, required=True)

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: Any) -> TaskPriority:
        return clean_priority(v, required=True)

    @field_validator("deadline", mode="before")
    @classmethod
    def validate_deadline(cls, v: Any) -> datetime:
        """Deadline must parse as a date and be later than the time of validation."""
        return clean_deadline(v, require_future=True)

    @field_validator("completed", mode="before")
    @classmethod
    def validate_completed(cls, v: Any) -> bool:
        return clean_completed(v)

    def sanitized(self) -> dict[str, Any]:
        """Return the full field mapping with defaults applied."""
        return self.model_dump()
