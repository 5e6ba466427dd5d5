"""Task service: one store operation per API action."""

import logging
from typing import Any

from taskapi.core.config import constants
from taskapi.core.db_client import DocumentStore
from taskapi.core.logging import span
from taskapi.domain.task import Task
from taskapi.services.task_query import TaskQuery


logger = logging.getLogger(__name__)

COLLECTION = constants.TASKS_COLLECTION


async def create_task(store: DocumentStore, fields: dict[str, Any]) -> Task:
    """Persist a new task from sanitized create fields."""
    with span("task_service.create_task"):
        document = await store.create(COLLECTION, fields)
        logger.info("Task created", extra={"task_id": document["id"]})
        return Task.model_validate(document)


async def list_tasks(store: DocumentStore, query: TaskQuery) -> list[dict[str, Any]]:
    """Return one page of tasks as stored documents, projected if the query asks for it."""
    with span("task_service.list_tasks", page=query.page, limit=query.limit):
        return await store.query(
            COLLECTION,
            filters=query.filters.as_conditions(),
            sort=query.sort,
            skip=query.skip,
            limit=query.limit,
            projection=query.fields,
        )


async def get_task(store: DocumentStore, task_id: str) -> Task | None:
    """Fetch a task by ID.

    Returns:
        The task, or None if no task has this ID

    Raises:
        CastError: If the ID is not a well-formed record ID
    """
    with span("task_service.get_task", task_id=task_id):
        document = await store.find_by_id(COLLECTION, task_id)
        return Task.model_validate(document) if document else None


async def update_task(store: DocumentStore, task_id: str, fields: dict[str, Any]) -> Task | None:
    """Apply a partial update; None if the task does not exist."""
    with span("task_service.update_task", task_id=task_id):
        document = await store.find_by_id_and_update(COLLECTION, task_id, fields)
        if document is None:
            logger.info("Task not found for update", extra={"task_id": task_id})
            return None
        logger.info("Task updated", extra={"task_id": task_id, "fields": sorted(fields)})
        return Task.model_validate(document)


async def delete_task(store: DocumentStore, task_id: str) -> Task | None:
    """Hard-delete a task and return what was removed; None if it did not exist."""
    with span("task_service.delete_task", task_id=task_id):
        document = await store.find_by_id_and_delete(COLLECTION, task_id)
        if document is None:
            logger.info("Task not found for delete", extra={"task_id": task_id})
            return None
        logger.info("Task deleted", extra={"task_id": task_id})
        return Task.model_validate(document)
