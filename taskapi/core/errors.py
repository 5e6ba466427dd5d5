"""Error taxonomy for the task API.

Every failure the API reports is raised as one of the exceptions below at the
point where it happens (validator, document store, route handler). Each error
knows its HTTP status, status string and message, so the central translator
only has to ask it to render itself.
"""

import traceback
from enum import StrEnum
from typing import Any

from pydantic import BaseModel


class ErrorKind(StrEnum):
    """Closed set of error kinds the API can report."""

    REQUEST_VALIDATION = "request_validation"
    MALFORMED_REQUEST_BODY = "malformed_request_body"
    MALFORMED_IDENTIFIER = "malformed_identifier"
    STORE_VALIDATION = "store_validation"
    DUPLICATE_KEY = "duplicate_key"
    OPERATIONAL = "operational"
    ROUTE_NOT_FOUND = "route_not_found"
    UNCLASSIFIED = "unclassified"


class FieldError(BaseModel):
    """A single field-level validation failure."""

    field: str
    message: str


class ErrorResponse(BaseModel):
    """Uniform JSON body for every error response."""

    status: str
    message: str
    errors: list[FieldError] | None = None
    stack: str | None = None


def status_for(status_code: int) -> str:
    """Return "fail" for client errors and "error" for everything else."""
    return "fail" if 400 <= status_code < 500 else "error"  # noqa: PLR2004


class TaskAPIError(Exception):
    """Base class for errors that carry their own HTTP rendering."""

    kind: ErrorKind = ErrorKind.UNCLASSIFIED
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def status(self) -> str:
        return status_for(self.status_code)

    def field_errors(self) -> list[FieldError] | None:
        return None


class RequestValidationFailure(TaskAPIError):
    """Request payload or query parameters failed validation."""

    kind = ErrorKind.REQUEST_VALIDATION
    status_code = 400

    def __init__(self, errors: list[FieldError]) -> None:
        super().__init__("Validation error")
        self.errors = errors

    @property
    def status(self) -> str:
        return "error"

    def field_errors(self) -> list[FieldError] | None:
        return self.errors


class MalformedRequestBody(TaskAPIError):
    """Request body is not valid JSON."""

    kind = ErrorKind.MALFORMED_REQUEST_BODY
    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid JSON: {detail}")
        self.detail = detail

    @property
    def status(self) -> str:
        return "error"


class CastError(TaskAPIError):
    """A value could not be cast to the store's type for a field (e.g. a malformed id)."""

    kind = ErrorKind.MALFORMED_IDENTIFIER
    status_code = 400

    def __init__(self, *, field: str, value: Any) -> None:
        super().__init__(f"Invalid {field}: {value}")
        self.field = field
        self.value = value


class StoreValidationError(TaskAPIError):
    """A document violated the collection schema at the storage layer."""

    kind = ErrorKind.STORE_VALIDATION
    status_code = 400

    def __init__(self, messages: list[str]) -> None:
        super().__init__(f"Invalid input data: {'. '.join(messages)}")
        self.messages = messages


class DuplicateKeyError(TaskAPIError):
    """A write collided with a unique index."""

    kind = ErrorKind.DUPLICATE_KEY
    status_code = 400

    def __init__(self, *, field: str, value: Any) -> None:
        super().__init__(f'Duplicate field value: "{value}". Please use another value.')
        self.field = field
        self.value = value


class OperationalError(TaskAPIError):
    """An expected failure raised deliberately with an explicit HTTP status."""

    kind = ErrorKind.OPERATIONAL

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class RouteNotFoundError(TaskAPIError):
    """No route matches the requested path."""

    kind = ErrorKind.ROUTE_NOT_FOUND
    status_code = 404

    def __init__(self, path: str) -> None:
        super().__init__(f"Not Found - {path}")
        self.path = path

    @property
    def status(self) -> str:
        return "error"


def build_error_response(exc: Exception, *, include_stack: bool = False) -> tuple[int, ErrorResponse]:
    """Translate any exception into an HTTP status code and error body.

    Args:
        exc: The exception that ended the request
        include_stack: Attach the formatted traceback (development only)

    Returns:
        Tuple of (status_code, ErrorResponse)
    """
    if isinstance(exc, TaskAPIError):
        status_code = exc.status_code
        body = ErrorResponse(status=exc.status, message=exc.message, errors=exc.field_errors())
    else:
        status_code = 500
        body = ErrorResponse(status="error", message="Something went wrong")

    if include_stack:
        body.stack = "".join(traceback.format_exception(exc))

    return status_code, body
