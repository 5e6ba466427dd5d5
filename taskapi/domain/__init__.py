"""Domain models and DTOs."""

from taskapi.domain.create_models import TaskCreate
from taskapi.domain.task import Task, TaskCategory, TaskPriority, TaskRecord
from taskapi.domain.update_models import TaskUpdate


__all__ = [
    "Task",
    "TaskCategory",
    "TaskCreate",
    "TaskPriority",
    "TaskRecord",
    "TaskUpdate",
]
