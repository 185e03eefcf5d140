"""FastAPI application: logging, middleware stack, routers and uploads."""

from __future__ import annotations

import json
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app.core.config import settings
from app.core.errors import setup_error_handlers
from app.core.middleware import (
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
    RequestLoggingMiddleware,
    setup_cors,
    setup_gzip,
)
from app.common import uploads
from app.auth.routes import router as auth_router
from app.branding.routes import router as branding_router
from app.churches.routes import router as churches_router
from app.events.routes import router as events_router
from app.members.routes import router as members_router
from app.minutes.routes import router as minutes_router
from app.notifications.routes import router as notifications_router
from app.positions.routes import router as positions_router
from app.users.routes import router as users_router
from app.weekly_attendance.routes import router as weekly_attendance_router

API_PREFIX = "/api/v1"

ROUTERS = (
    auth_router,
    users_router,
    churches_router,
    branding_router,
    members_router,
    positions_router,
    events_router,
    weekly_attendance_router,
    minutes_router,
    notifications_router,
)

NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "apscheduler", "httpx")

logger = logging.getLogger(__name__)


class JSONFormatter(logging.Formatter):
    """One JSON object per record; carries request_id when a caller passes it."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            entry["request_id"] = request_id
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def setup_logging() -> None:
    """Send every log record to stdout, as JSON unless LOG_FORMAT=text."""
    if settings.log_format == "json":
        formatter: logging.Formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root_logger.handlers = [handler]

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the hourly scheduler for the lifetime of the process when enabled."""
    logger.info(f"Starting {settings.app_name} API in {settings.app_env} mode")
    if settings.enable_scheduler:
        from app.jobs.scheduler import start_scheduler

        start_scheduler()

    yield

    if settings.enable_scheduler:
        from app.jobs.scheduler import shutdown_scheduler

        shutdown_scheduler()
    logger.info(f"Shutting down {settings.app_name} API")


setup_logging()

app = FastAPI(
    title=f"{settings.app_name} API",
    version="0.1.0",
    lifespan=lifespan,
)

setup_error_handlers(app, debug=(settings.app_env != "production"))

# Starlette runs the last added middleware first, so the stack is built
# inside out: gzip, CORS, logging, security headers, request id.
if settings.enable_gzip:
    setup_gzip(app)
setup_cors(app)
if settings.enable_request_logging:
    app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIDMiddleware)

for router in ROUTERS:
    app.include_router(router, prefix=API_PREFIX)

# Uploaded logos and minute files
app.mount(
    uploads.URL_PREFIX,
    StaticFiles(directory=str(uploads.upload_root()), check_dir=False),
    name="uploads",
)


@app.get("/health")
async def health() -> JSONResponse:
    return JSONResponse(
        {
            "status": "ok",
            "env": settings.app_env,
            "version": app.version,
        }
    )


@app.get(f"{API_PREFIX}/ping")
async def ping() -> dict:
    """Connectivity check under the API prefix."""
    return {"message": "pong"}
