"""Request body validation dependency."""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import Request
from pydantic import BaseModel, ValidationError

from taskapi.core.errors import FieldError, MalformedRequestBody, RequestValidationFailure
from taskapi.domain.validators import collect_field_errors


logger = logging.getLogger(__name__)


def sanitize_payload(schema: type[BaseModel], payload: Any) -> dict[str, Any]:
    """Validate a decoded payload against a schema and return the sanitized mapping.

    Raises:
        RequestValidationFailure: With every field violation found
    """
    if not isinstance(payload, dict):
        raise RequestValidationFailure([FieldError(field="", message="Request body must be a JSON object")])

    try:
        model = schema.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationFailure(collect_field_errors(e)) from e

    return model.sanitized()  # type: ignore[attr-defined]


def validated_body(schema: type[BaseModel]) -> Callable[[Request], Awaitable[dict[str, Any]]]:
    """Build a dependency that decodes and validates the JSON request body.

    The route receives the sanitized mapping (unknown keys stripped, strings
    trimmed, defaults applied) in place of the raw body. An empty body is
    validated as {}.
    """

    async def dependency(request: Request) -> dict[str, Any]:
        raw = await request.body()
        if not raw.strip():
            payload: Any = {}
        else:
            try:
                payload = json.loads(raw)
            except ValueError as e:
                logger.info("Malformed JSON body", extra={"path": request.url.path, "error": str(e)})
                raise MalformedRequestBody(str(e)) from e

        return sanitize_payload(schema, payload)

    return dependency
