"""Error types and global exception handlers.

Every API error is rendered as::

    {"error": {"code": ..., "message": ..., "request_id": ..., "details": ...}}

``details`` is omitted when empty. Internal errors only carry details
(exception type, message, traceback) when the app runs in debug mode.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import DatabaseError, IntegrityError

from app.core.metrics import emit_error

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors.

    Attributes:
        status_code: HTTP status code
        error_code: machine-readable code, e.g. ``not_found``
        message: human-readable message
        details: optional extra payload
    """

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ):
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class BadRequestError(APIError):
    """Well-formed request that cannot be applied to the current state."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(status.HTTP_400_BAD_REQUEST, "bad_request", message, details)


class NotFoundError(APIError):
    def __init__(self, resource: str, identifier: Any = None):
        message = f"{resource} not found"
        if identifier is not None:
            message += f": {identifier}"
        super().__init__(
            status.HTTP_404_NOT_FOUND,
            "not_found",
            message,
            {
                "resource": resource,
                "identifier": None if identifier is None else str(identifier),
            },
        )


class ConflictError(APIError):
    """Duplicate of a uniquely keyed record (email, week, position name)."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(status.HTTP_409_CONFLICT, "conflict", message, details)


class UnauthorizedError(APIError):
    """Missing, invalid or expired credentials."""

    def __init__(self, message: str = "Unauthorized", error_code: str = "unauthorized"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, error_code, message)


class ForbiddenError(APIError):
    """Authenticated, but the role or church does not allow the operation."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(status.HTTP_403_FORBIDDEN, "forbidden", message)


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def _debug(request: Request) -> bool:
    return getattr(request.app.state, "debug", False)


def _render(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Emit the error metric and build the JSON error response."""
    request_id = _request_id(request)
    emit_error(
        error_code=code,
        status_code=status_code,
        path=request.url.path,
        method=request.method,
        request_id=request_id,
    )
    body: dict[str, Any] = {"code": code, "message": message, "request_id": request_id}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content={"error": body}, headers=headers)


def _log_extra(request: Request, **fields: Any) -> dict[str, Any]:
    return {
        "request_id": _request_id(request),
        "path": request.url.path,
        "method": request.method,
        **fields,
    }


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    logger.warning(
        f"API error: {exc.error_code} - {exc.message}",
        extra=_log_extra(request, error_code=exc.error_code, status_code=exc.status_code),
    )
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return _render(request, exc.status_code, exc.error_code, exc.message, exc.details, headers)


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Client mistakes, logged below warning level
    logger.info(f"Validation error: {exc}", extra=_log_extra(request))
    errors = [
        {
            "field": ".".join(str(loc) for loc in err.get("loc", [])),
            "message": err.get("msg", "Invalid value"),
            "type": err.get("type", "validation_error"),
        }
        for err in exc.errors()
    ]
    return _render(
        request,
        status.HTTP_422_UNPROCESSABLE_CONTENT,
        "validation_error",
        "Validation failed",
        {"errors": errors},
    )


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    """Unique-key races that slip past the service checks become 409s."""
    if isinstance(exc, IntegrityError):
        logger.warning(f"Integrity error: {exc.orig}", extra=_log_extra(request))
        return _render(
            request,
            status.HTTP_409_CONFLICT,
            "conflict",
            "Database integrity constraint violated",
        )

    logger.error(
        f"Database error: {exc}",
        extra=_log_extra(request, exception_type=type(exc).__name__),
        exc_info=True,
    )
    details = {"type": type(exc).__name__, "message": str(exc)} if _debug(request) else None
    return _render(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "database_error",
        "A database error occurred",
        details,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        extra=_log_extra(request, exception_type=type(exc).__name__),
        exc_info=True,
    )
    details = None
    if _debug(request):
        details = {
            "type": type(exc).__name__,
            "message": str(exc),
            "traceback": traceback.format_exc().split("\n"),
        }
    return _render(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An internal error occurred",
        details,
    )


def setup_error_handlers(app: FastAPI, debug: bool = False) -> None:
    """Register global exception handlers.

    Args:
        app: FastAPI application instance
        debug: include internal error details in 500 responses
    """
    app.state.debug = debug

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)
    app.add_exception_handler(IntegrityError, database_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
