"""
Application errors and their HTTP mapping.

- Validation problems are reported per field with HTTP 422.
- Storage failures are logged server-side and reported with a generic
  message and HTTP 500. Internal exception text never reaches the client.
- Unknown ids use FastAPI's HTTPException(404) directly from the services.
"""

from typing import Any, Iterable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.logging import get_logger

logger = get_logger(__name__)

# Location prefixes FastAPI adds in front of the field name
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


class EventValidationError(Exception):
    """Field-level validation failure detected outside of request parsing."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__("Validation failed")
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "EventValidationError":
        return cls({field: [message]})


class EventStorageError(Exception):
    """A database failure, reported to the client with a generic message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def format_validation_errors(errors: Iterable[dict[str, Any]]) -> dict[str, list[str]]:
    """
    Collapse pydantic error entries into {field: [messages]}.

    ("body", "name") -> "name", ("body", "categories", 0) -> "categories.0".
    """
    fields: dict[str, list[str]] = {}
    for error in errors:
        loc = list(error.get("loc", ()))
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        field = ".".join(str(part) for part in loc) or "body"
        fields.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return fields


def _validation_response(errors: dict[str, list[str]]) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={"message": "Validation failed", "errors": errors},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = format_validation_errors(exc.errors())
    logger.info("request_validation_failed", fields=sorted(errors))
    return _validation_response(errors)


async def event_validation_handler(request: Request, exc: EventValidationError) -> JSONResponse:
    logger.info("event_validation_failed", fields=sorted(exc.errors))
    return _validation_response(exc.errors)


async def storage_error_handler(request: Request, exc: EventStorageError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": exc.message},
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(EventValidationError, event_validation_handler)
    app.add_exception_handler(EventStorageError, storage_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
