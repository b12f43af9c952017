from typing import Any, Iterable, Mapping, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.utils.pagination import Page

DEFAULT_MESSAGES = {
    200: "Operation successful",
    201: "Resource created successfully",
    204: "Resource deleted successfully",
    400: "Bad request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Resource not found",
    422: "Validation failed",
    429: "Too many requests",
    500: "Server error",
}


def default_message(status_code: int) -> str:
    """Return the default envelope message for an HTTP status code."""
    return DEFAULT_MESSAGES.get(status_code, "Unknown status")


def is_enveloped(payload: Any) -> bool:
    """Check whether a decoded body already has the standard shape."""
    return (
        isinstance(payload, dict)
        and payload.get("status_code") is not None
        and payload.get("message") is not None
        and "result" in payload
    )


def standardize(payload: Any, status_code: int) -> dict:
    """
    Normalize an arbitrary decoded JSON body into the standard envelope.

    Success bodies become the `result`. Error bodies keep their own message
    (`message`, or FastAPI's `detail` when it is a string) and structured
    `errors` move under `result.errors`. Bodies that are already enveloped are
    returned as they are.
    """
    if is_enveloped(payload):
        return payload

    if status_code < 400:
        return {
            "status_code": status_code,
            "message": default_message(status_code),
            "result": payload,
        }

    envelope = {
        "status_code": status_code,
        "message": default_message(status_code),
        "result": None,
    }
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("detail")
        if isinstance(message, str) and message:
            envelope["message"] = message
        if payload.get("errors"):
            envelope["result"] = {"errors": payload["errors"]}
    return envelope


class ApiResponse:
    """
    Builders for standardized API responses.

    Every body has the shape `{status_code, message, result}`.
    """

    @staticmethod
    def success(
        data: Any = None,
        message: str = "Operation successful",
        status_code: int = 200,
    ) -> JSONResponse:
        body = {
            "status_code": status_code,
            "message": message,
            "result": jsonable_encoder(data),
        }
        return JSONResponse(content=body, status_code=status_code)

    @staticmethod
    def error(
        message: str = "An error occurred",
        status_code: int = 400,
        errors: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> JSONResponse:
        body = {
            "status_code": status_code,
            "message": message,
            "result": {"errors": jsonable_encoder(errors)} if errors else None,
        }
        return JSONResponse(content=body, status_code=status_code, headers=headers)

    @staticmethod
    def paginate(
        page: Page,
        message: str = "Data retrieved successfully",
        status_code: int = 200,
    ) -> JSONResponse:
        result = {
            "items": page.items,
            "meta": page.meta(),
        }
        return ApiResponse.success(result, message, status_code)

    @staticmethod
    def collection(
        items: Iterable[Any],
        message: str = "Data retrieved successfully",
        status_code: int = 200,
    ) -> JSONResponse:
        result = {
            "items": list(items),
            "meta": None,
        }
        return ApiResponse.success(result, message, status_code)
