"""Parse list-endpoint query parameters into a typed task query."""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from taskapi.core.config import Settings, constants
from taskapi.core.db_client import SQLITE_MAX_INTEGER, SortKey
from taskapi.core.errors import FieldError, RequestValidationFailure
from taskapi.domain.task import TaskCategory, TaskPriority
from taskapi.domain.validators import clean_category, clean_completed, clean_priority


logger = logging.getLogger(__name__)

# Fields clients may sort on or select with ?fields=
TASK_FIELDS: tuple[str, ...] = (
    "id",
    "title",
    "description",
    "category",
    "priority",
    "deadline",
    "completed",
    "createdAt",
    "updatedAt",
)


class TaskFilter(BaseModel):
    """Exact-match conditions for listing tasks. Unset fields do not filter."""

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    category: TaskCategory | None = None
    priority: TaskPriority | None = None
    completed: bool | None = None

    def as_conditions(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class TaskQuery(BaseModel):
    """Typed filter/sort/projection/pagination for the list endpoint."""

    model_config = ConfigDict(frozen=True)

    filters: TaskFilter = Field(default_factory=TaskFilter)
    sort: tuple[SortKey, ...] = (SortKey(constants.DEFAULT_SORT),)
    fields: tuple[str, ...] | None = None
    page: int = constants.DEFAULT_PAGE
    limit: int = 10

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _split_csv(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def _positive_int(raw: str | None, default: int) -> int:
    """Parse a positive integer, falling back to the default for anything else."""
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value >= 1 else default


def _parse_filters(params: Mapping[str, str], errors: list[FieldError]) -> TaskFilter:
    conditions: dict[str, Any] = {}
    parsers = {
        "title": lambda raw: raw.strip(),
        "category": lambda raw: clean_category(raw, required=False),
        "priority": lambda raw: clean_priority(raw, required=False),
        "completed": clean_completed,
    }

    for key, raw in params.items():
        if key in constants.RESERVED_QUERY_KEYS:
            continue
        parser = parsers.get(key)
        if parser is None:
            allowed = ", ".join(parsers)
            errors.append(FieldError(field=key, message=f"Cannot filter by '{key}'. Allowed filters: {allowed}"))
            continue
        try:
            conditions[key] = parser(raw)
        except ValueError as e:
            errors.append(FieldError(field=key, message=str(e)))

    return TaskFilter(**conditions)


def _parse_sort(raw: str | None, errors: list[FieldError]) -> tuple[SortKey, ...]:
    if raw is None:
        return (SortKey(constants.DEFAULT_SORT),)

    keys = []
    for term in _split_csv(raw):
        descending = term.startswith("-")
        name = term[1:] if descending else term
        if name not in TASK_FIELDS:
            errors.append(FieldError(field="sort", message=f"Cannot sort by '{name}'"))
            continue
        keys.append(SortKey(name, descending=descending))

    return tuple(keys) or (SortKey(constants.DEFAULT_SORT),)


def _parse_fields(raw: str | None, errors: list[FieldError]) -> tuple[str, ...] | None:
    if raw is None:
        return None

    selected = []
    for name in _split_csv(raw):
        if name not in TASK_FIELDS:
            errors.append(FieldError(field="fields", message=f"Unknown field '{name}'"))
            continue
        if name not in selected:
            selected.append(name)

    return tuple(selected) or None


def parse_task_query(params: Mapping[str, str], settings: Settings) -> TaskQuery:
    """Build a TaskQuery from raw query parameters.

    Reserved keys (page, sort, limit, fields) control pagination, ordering and
    projection; every other key must be a filterable task field. All problems
    are collected and reported together.

    Raises:
        RequestValidationFailure: If any filter, sort key or field name is invalid
    """
    errors: list[FieldError] = []

    filters = _parse_filters(params, errors)
    sort = _parse_sort(params.get("sort"), errors)
    fields = _parse_fields(params.get("fields"), errors)
    limit = min(_positive_int(params.get("limit"), settings.default_page_limit), settings.max_page_limit)
    # Keep (page - 1) * limit bindable as a SQLite integer
    page = min(_positive_int(params.get("page"), constants.DEFAULT_PAGE), SQLITE_MAX_INTEGER // limit + 1)

    if errors:
        logger.info("Rejected task query", extra={"errors": [error.model_dump() for error in errors]})
        raise RequestValidationFailure(errors)

    return TaskQuery(filters=filters, sort=sort, fields=fields, page=page, limit=limit)
