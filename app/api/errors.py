import logging
from collections import defaultdict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.utils.responses import ApiResponse, default_message

logger = logging.getLogger(__name__)

VALIDATION_MESSAGE = "The given data was invalid."

_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def validation_errors_by_field(errors) -> dict:
    """
    Group pydantic error entries into a `{field: [messages]}` mapping.

    The request location prefix ("body", "query", ...) is dropped; nested
    locations are joined with dots.
    """
    grouped = defaultdict(list)
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if len(loc) > 1 and loc[0] in _LOCATIONS:
            loc = loc[1:]
        field = ".".join(loc) or "body"
        message = error.get("msg", "Invalid value")
        # pydantic prefixes messages from custom validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        grouped[field].append(message)
    return dict(grouped)


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers that answer with the standard envelope."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else default_message(exc.status_code)
        return ApiResponse.error(message, exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return ApiResponse.error(
            VALIDATION_MESSAGE,
            422,
            errors=validation_errors_by_field(exc.errors()),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return ApiResponse.error(default_message(500), 500)
