"""Shared test utilities."""

from datetime import timedelta
from typing import Any

from taskapi.core.timestamps import format_timestamp, utc_now


def future_deadline(days: int = 7) -> str:
    """Return an ISO deadline `days` from now in the store's timestamp format."""
    return format_timestamp(utc_now() + timedelta(days=days))


def past_deadline(days: int = 1) -> str:
    return format_timestamp(utc_now() - timedelta(days=days))


def make_task_payload(**overrides: Any) -> dict[str, Any]:
    """Build a valid create payload, overriding any field."""
    payload: dict[str, Any] = {
        "title": "Test Task",
        "description": "This is a test task",
        "category": "Work",
        "priority": "Medium",
        "deadline": future_deadline(),
    }
    payload.update(overrides)
    return payload
