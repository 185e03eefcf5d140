"""FastAPI middleware for request ids, security headers, logging and CORS."""

from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Callable

from fastapi import Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import settings
from app.core.metrics import emit_http_request

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_PATHS = [
    "/health",
    "/api/v1/ping",
    "/docs",
    "/openapi.json",
    "/redoc",
]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach an X-Request-ID to every request and response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"

        if settings.app_env == "production":
            response.headers[
                "Strict-Transport-Security"
            ] = "max-age=31536000; includeSubDomains"

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request/response pair as JSON and emit request metrics."""

    def __init__(self, app, exclude_paths: list[str] | None = None):
        super().__init__(app)
        self.exclude_paths = exclude_paths or DEFAULT_EXCLUDED_PATHS

    @staticmethod
    def _log(level: int, request_id: str, **fields) -> None:
        logger.log(
            level,
            json.dumps({"request_id": request_id, **fields}, default=str),
            extra={"request_id": request_id},
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if any(request.url.path.startswith(path) for path in self.exclude_paths):
            return await call_next(request)

        request_id = getattr(request.state, "request_id", "unknown")
        method, path = request.method, request.url.path
        started = time.perf_counter()
        self._log(
            logging.INFO,
            request_id,
            type="http_request",
            method=method,
            path=path,
            query_params=dict(request.query_params),
            client_host=request.client.host if request.client else None,
        )

        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            logger.error(
                f"Request processing error on {method} {path}: {type(e).__name__}: {e}",
                extra={"request_id": request_id},
                exc_info=True,
            )
            raise
        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            # Set by the auth dependency for authenticated calls
            user_id = getattr(request.state, "user_id", None)
            emit_http_request(
                method=method,
                path=path,
                status_code=status_code,
                duration_ms=duration_ms,
                request_id=request_id,
                user_id=user_id,
            )
            if status_code >= 500:
                level = logging.ERROR
            elif status_code >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO
            self._log(
                level,
                request_id,
                type="http_response",
                method=method,
                path=path,
                status_code=status_code,
                duration_ms=round(duration_ms, 2),
                user_id=user_id,
            )

        response.headers["X-Process-Time"] = f"{duration_ms:.2f}ms"
        return response


def setup_cors(app) -> None:
    if settings.cors_origins:
        cors_origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
    elif settings.app_env == "production":
        cors_origins = []
    else:
        cors_origins = [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
        ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time", "Content-Disposition"],
    )


def setup_gzip(app) -> None:
    app.add_middleware(GZipMiddleware, minimum_size=500, compresslevel=6)
