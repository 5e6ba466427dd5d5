"""Service layer for task operations."""

from taskapi.services import task_query, task_service


__all__ = [
    "task_query",
    "task_service",
]
