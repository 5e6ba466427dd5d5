"""Task CRUD routes."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from taskapi.core.config import Settings
from taskapi.core.db_client import DocumentStore
from taskapi.core.errors import OperationalError
from taskapi.domain.create_models import TaskCreate
from taskapi.domain.task import Task
from taskapi.domain.update_models import TaskUpdate
from taskapi.interface.validation import validated_body
from taskapi.services import task_service
from taskapi.services.task_query import parse_task_query


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])

TASK_NOT_FOUND = "Task not found"


def get_store(request: Request) -> DocumentStore:
    """Return the document store opened by the application lifespan."""
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def _task_envelope(task: Task, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(
        content={"status": "success", "data": {"task": task.model_dump(mode="json")}},
        status_code=status_code,
    )


def _not_found() -> OperationalError:
    return OperationalError(TASK_NOT_FOUND, status.HTTP_404_NOT_FOUND)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    fields: dict[str, Any] = Depends(validated_body(TaskCreate)),
    store: DocumentStore = Depends(get_store),
) -> JSONResponse:
    """Create a task."""
    task = await task_service.create_task(store, fields)
    return _task_envelope(task, status.HTTP_201_CREATED)


@router.get("")
async def list_tasks(
    request: Request,
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> JSONResponse:
    """List tasks with exact-match filters, sorting, field selection and pagination.

    Query parameters: category, priority, completed, title (filters);
    sort (comma separated, "-" prefix for descending, default deadline);
    fields (comma separated); page (default 1); limit (default 10).
    """
    query = parse_task_query(request.query_params, settings)
    tasks = await task_service.list_tasks(store, query)
    return JSONResponse(
        content={"status": "success", "results": len(tasks), "data": {"tasks": tasks}},
        status_code=status.HTTP_200_OK,
    )


@router.get("/{task_id}")
async def get_task(task_id: str, store: DocumentStore = Depends(get_store)) -> JSONResponse:
    """Fetch a single task."""
    task = await task_service.get_task(store, task_id)
    if task is None:
        raise _not_found()
    return _task_envelope(task)


@router.put("/{task_id}")
async def update_task(
    task_id: str,
    fields: dict[str, Any] = Depends(validated_body(TaskUpdate)),
    store: DocumentStore = Depends(get_store),
) -> JSONResponse:
    """Update any subset of a task's fields."""
    task = await task_service.update_task(store, task_id, fields)
    if task is None:
        raise _not_found()
    return _task_envelope(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str, store: DocumentStore = Depends(get_store)) -> Response:
    """Delete a task permanently."""
    task = await task_service.delete_task(store, task_id)
    if task is None:
        raise _not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
