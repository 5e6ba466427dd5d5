"""Update models for task records."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from taskapi.domain.task import TaskCategory, TaskPriority
from taskapi.domain.validators import (
    clean_category,
    clean_completed,
    clean_deadline,
    clean_description,
    clean_priority,
    clean_title,
)


class TaskUpdate(BaseModel):
    """Partial update payload; at least one known field must be present.

    The deadline is parsed but not compared against the current time.
    """

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    description: str | None = None
    category: TaskCategory | None = None
    priority: TaskPriority | None = None
    deadline: datetime | None = None
    completed: bool | None = None

    @model_validator(mode="before")
    @classmethod
    def require_any_field(cls, data: Any) -> Any:
        if isinstance(data, dict) and not any(name in data for name in cls.model_fields):
            raise ValueError("At least one field must be provided for update")
        return data

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        return clean_title(v, required=False)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> str:
        return clean_description(v)

    @field_validator("category", mode="before")
    @classmethod
    def validate_category(cls, v: Any) -> TaskCategory:
        return clean_category(v, required=False)

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: Any) -> TaskPriority:
        return clean_priority(v, required=False)

    @field_validator("deadline", mode="before")
    @classmethod
    def validate_deadline(cls, v: Any) -> datetime:
        return clean_deadline(v, require_future=False)

    @field_validator("completed", mode="before")
    @classmethod
    def validate_completed(cls, v: Any) -> bool:
        return clean_completed(v)

    def sanitized(self) -> dict[str, Any]:
        """Return only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)
