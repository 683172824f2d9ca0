"""FastAPI application for revproj.

Serves the projection API, the tracked-link redirect, operator views and the
server-rendered landing pages.

Run with:
    uvicorn revproj.web.app:app
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.base import BaseHTTPMiddleware

from revproj.config import get_config
from revproj.core.logging import configure_logging
from revproj.db.connection import close_db, init_db
from revproj.exceptions import ProjectionValidationError, StorageUnavailableError
from revproj.web.dependencies import close_dependencies
from revproj.web.routes import (
    admin,
    contact,
    events,
    health,
    pages,
    projections,
    tracking,
)

logger = structlog.get_logger()


# Request Logging Middleware
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()

        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        structlog.contextvars.bind_contextvars(request_id=request_id)

        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise

        logger.info("request_completed", status_code=response.status_code)
        response.headers["X-Request-ID"] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("revproj_started")
    yield
    await close_dependencies()
    await close_db()


# Exception Handlers
async def projection_validation_handler(request: Request, exc: ProjectionValidationError):
    logger.info("projection_rejected", fields=exc.fields)
    return JSONResponse(
        status_code=400,
        content={"ok": False, "error": "Invalid projection data", "details": exc.to_list()},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part != "body") or "body",
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"ok": False, "error": "Invalid request data", "details": details},
    )


async def storage_unavailable_handler(request: Request, exc: StorageUnavailableError):
    return JSONResponse(status_code=503, content={"ok": False, "error": "Storage unavailable"})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse(status_code=500, content={"ok": False, "error": "Internal server error"})


def create_app() -> FastAPI:
    """Build the application from the current configuration."""
    config = get_config()
    configure_logging(level=config.log_level, json_logs=config.json_logs)

    app = FastAPI(
        title="LocalVR Revenue Projections",
        description="Publishes and serves homeowner revenue projection pages",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)

    # Prometheus Metrics
    if config.metrics_enabled:
        Instrumentator().instrument(app).expose(app, include_in_schema=False)

    app.add_exception_handler(ProjectionValidationError, projection_validation_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StorageUnavailableError, storage_unavailable_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Include Routers
    app.include_router(health.router)
    app.include_router(projections.router)
    app.include_router(events.router)
    app.include_router(contact.router)
    app.include_router(tracking.router)
    app.include_router(admin.router)
    app.include_router(pages.router)  # catch-all two-segment path, keep last

    return app


def __getattr__(name: str):
    # ``app`` is built on first access; importing this module reads no config.
    if name == "app":
        return create_app()
    raise AttributeError(name)
