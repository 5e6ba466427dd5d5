"""taskapi - CRUD REST API for task records."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskapi import __version__
from taskapi.core.config import Settings, get_settings
from taskapi.core.errors import (
    FieldError,
    OperationalError,
    RequestValidationFailure,
    RouteNotFoundError,
    TaskAPIError,
    build_error_response,
)
from taskapi.core.logging import configure_logfire, instrument_fastapi, log_with_context
from taskapi.core.schema import create_store
from taskapi.interface.task_router import router as task_router


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the document store for the lifetime of the application."""
    settings: Settings = app.state.settings
    store = create_store(settings.database_path)
    await store.open()
    await store.init_db()
    app.state.store = store
    logger.info("Database initialized", extra={"db_path": settings.database_path})
    try:
        yield
    finally:
        await store.close()


async def handle_error(request: Request, exc: Exception) -> JSONResponse:
    """Single exit point for every failed request."""
    settings: Settings = request.app.state.settings
    status_code, body = build_error_response(exc, include_stack=settings.is_development)

    if status_code >= 500:  # noqa: PLR2004
        logger.error(
            "request_failed",
            exc_info=exc,
            extra={"method": request.method, "path": request.url.path, "status_code": status_code},
        )
    else:
        log_with_context(
            logger,
            "warning",
            "request_rejected",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            error=body.message,
        )

    return JSONResponse(content=body.model_dump(exclude_none=True), status_code=status_code)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (unmatched routes, wrong methods) in the API's error shape."""
    if exc.status_code == 404:  # noqa: PLR2004
        return await handle_error(request, RouteNotFoundError(request.url.path))
    return await handle_error(request, OperationalError(str(exc.detail), exc.status_code))


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render framework parameter validation errors as a validation failure."""
    errors = [
        FieldError(field=".".join(str(part) for part in error["loc"][1:]), message=error["msg"])
        for error in exc.errors()
    ]
    return await handle_error(request, RequestValidationFailure(errors))


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to environment-derived settings)
    """
    settings = settings or get_settings()
    configure_logfire(settings)

    app = FastAPI(
        title="taskapi",
        description="API for managing tasks with categories, priorities, and deadlines",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # Instrument FastAPI with Logfire
    instrument_fastapi(app)

    # Error translation
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(TaskAPIError, handle_error)
    app.add_exception_handler(Exception, handle_error)

    # Register routers
    app.include_router(task_router)

    @app.get("/health")
    async def health_check(request: Request) -> JSONResponse:
        """Health check endpoint."""
        store = getattr(request.app.state, "store", None)
        if store is not None and await store.ping():
            return JSONResponse(content={"status": "healthy"}, status_code=200)
        return JSONResponse(content={"status": "unhealthy"}, status_code=503)

    return app


app = create_app()
