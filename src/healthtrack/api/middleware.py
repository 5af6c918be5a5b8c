"""API error handling middleware: consistent error responses.

Registers FastAPI exception handlers that convert domain exceptions into
standardised ``{"error": {"code": "...", "message": "..."}}`` JSON responses.

Status code mapping:
- ``AuthenticationError`` → 401 Unauthorized
- ``RecordNotFoundError`` → 404 Not Found
- ``RequestValidationError`` (malformed body/query) → 400 Bad Request
- ``ValueError`` → 400 Bad Request
- ``HTTPException`` → its own status code
- Any other ``Exception`` → 500 Internal Server Error
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from healthtrack.api.models import ErrorDetail, ErrorResponse
from healthtrack.auth import AuthenticationError
from healthtrack.storage import RecordNotFoundError

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    503: "SERVICE_UNAVAILABLE",
}


def _envelope(status_code: int, code: str, message: str, details: dict | None = None):
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def _handle_authentication_error(
    request: Request,
    exc: AuthenticationError,
) -> JSONResponse:
    """Return 401 when credentials are missing or rejected."""
    logger.info("Authentication failed on %s: %s", request.url.path, exc)
    response = _envelope(401, "UNAUTHORIZED", str(exc))
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


async def _handle_record_not_found(
    request: Request,
    exc: RecordNotFoundError,
) -> JSONResponse:
    """Return 404 when a reading is missing or owned by someone else."""
    logger.info("Record not found on %s: %s", request.url.path, exc)
    return _envelope(404, "RECORD_NOT_FOUND", str(exc))


async def _handle_request_validation(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Return 400 listing every rejected field."""
    fields = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    message = "; ".join(
        f"{f['field']}: {f['message']}" if f["field"] else f["message"] for f in fields
    )
    logger.info("Request validation failed: %s", message)
    return _envelope(400, "VALIDATION_ERROR", message or "Invalid request", {"fields": fields})


async def _handle_value_error(
    request: Request,
    exc: ValueError,
) -> JSONResponse:
    """Return 400 for validation / value errors."""
    logger.info("Validation error: %s", exc)
    return _envelope(400, "VALIDATION_ERROR", str(exc))


async def _handle_http_exception(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Render router-raised HTTPExceptions in the standard envelope."""
    code = _STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
    response = _envelope(exc.status_code, code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


class CatchAllErrorMiddleware(BaseHTTPMiddleware):
    """ASGI middleware that catches any unhandled exception and returns a 500.

    This sits above the Starlette exception handler layer, ensuring that
    even exceptions not caught by ``add_exception_handler`` are converted
    to the standard error envelope rather than bubbling up as raw 500s.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.error(
                "Unhandled exception on %s %s",
                request.method,
                request.url.path,
                exc_info=True,
            )
            return _envelope(500, "INTERNAL_ERROR", "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI application.

    Call this from ``create_app()`` after constructing the ``FastAPI`` instance.
    """
    app.add_exception_handler(AuthenticationError, _handle_authentication_error)  # type: ignore[arg-type]
    app.add_exception_handler(RecordNotFoundError, _handle_record_not_found)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_request_validation)  # type: ignore[arg-type]
    app.add_exception_handler(ValueError, _handle_value_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)  # type: ignore[arg-type]
    app.add_middleware(CatchAllErrorMiddleware)
