"""Per-field validation functions for task payloads.

Each function takes the raw client value and returns the sanitized value, or
raises ValueError with the message shown to the client. The request schemas in
create_models/update_models call these from their field validators so every
field is checked in a single pass.
"""

from datetime import datetime
from typing import Any

from pydantic import ValidationError

from taskapi.core.config import constants
from taskapi.core.errors import FieldError
from taskapi.core.timestamps import parse_timestamp, utc_now
from taskapi.domain.task import TaskCategory, TaskPriority


CATEGORY_CHOICES = ", ".join(category.value for category in TaskCategory)
PRIORITY_CHOICES = ", ".join(priority.value for priority in TaskPriority)


def _require_string(value: Any, label: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{label} must be a string")
    return value.strip()


def clean_title(value: Any, *, required: bool) -> str:
    """Trim and bound-check a task title."""
    title = _require_string(value, "Title")
    if not title:
        raise ValueError("Title is required" if required else "Title cannot be empty")
    if len(title) < constants.TITLE_MIN_LENGTH:
        raise ValueError(f"Title must be at least {constants.TITLE_MIN_LENGTH} characters long")
    if len(title) > constants.TITLE_MAX_LENGTH:
        raise ValueError(f"Title cannot be more than {constants.TITLE_MAX_LENGTH} characters")
    return title


def clean_description(value: Any) -> str:
    """Trim a description; empty is allowed."""
    description = _require_string(value, "Description")
    if len(description) > constants.DESCRIPTION_MAX_LENGTH:
        raise ValueError(f"Description cannot be more than {constants.DESCRIPTION_MAX_LENGTH} characters")
    return description


def clean_category(value: Any, *, required: bool) -> TaskCategory:
    category = _require_string(value, "Category")
    if not category and required:
        raise ValueError("Category is required")
    try:
        return TaskCategory(category)
    except ValueError:
        raise ValueError(f"Category must be one of: {CATEGORY_CHOICES}") from None


def clean_priority(value: Any, *, required: bool) -> TaskPriority:
    priority = _require_string(value, "Priority")
    if not priority and required:
        raise ValueError("Priority is required")
    try:
        return TaskPriority(priority)
    except ValueError:
        raise ValueError(f"Priority must be one of: {PRIORITY_CHOICES}") from None


def clean_deadline(value: Any, *, require_future: bool, now: datetime | None = None) -> datetime:
    """Parse a deadline; optionally require it to be later than now.

    Args:
        value: ISO-8601 date/datetime string or datetime
        require_future: Reject deadlines at or before the current time
        now: Reference time (defaults to the current UTC time)
    """
    if isinstance(value, bool) or not isinstance(value, str | datetime):
        raise ValueError("Deadline must be a valid date")
    try:
        deadline = parse_timestamp(value)
    except (ValueError, OverflowError):
        raise ValueError("Deadline must be a valid date") from None

    if require_future and deadline <= (now or utc_now()):
        raise ValueError("Deadline must be in the future")
    return deadline


def clean_completed(value: Any) -> bool:
    """Accept a boolean or the strings "true"/"false"."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValueError("Completed must be a boolean value")


def collect_field_errors(exc: ValidationError) -> list[FieldError]:
    """Flatten a pydantic ValidationError into {field, message} entries.

    Messages raised by the clean_* functions are passed through verbatim;
    a missing required field becomes "<Field> is required".
    """
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"])
        if error["type"] == "missing":
            message = f"{field.capitalize()} is required"
        elif error["type"] == "value_error" and "error" in error.get("ctx", {}):
            message = str(error["ctx"]["error"])
        else:
            message = error["msg"]
        errors.append(FieldError(field=field, message=message))
    return errors
