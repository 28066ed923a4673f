"""
Main entrypoint for the EventHub API.

This module assembles the FastAPI application: logging, CORS, the
request log middleware, the exception handlers that produce the JSON
error envelope, and the routers.  ``create_app`` builds the app, which
is then instantiated at module import time as ``app``::

    uvicorn eventhub_api.app.main:app --reload

The database schema is migrated and expired sessions are purged when
the application starts.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.router import router as api_router
from .core.config import settings
from .core.db import init_db
from .core.errors import DomainError, NotFoundError, UnauthorizedError
from .core.logging_config import get_request_logger, setup_logging
from .core.responses import format_error
from .core.security import clear_session_cookie
from .core.utils import format_timestamp, utcnow
from .services.media_service import get_media_storage
from .services.session_service import SessionService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_db()
    await SessionService.delete_expired_sessions()
    get_media_storage().root.mkdir(parents=True, exist_ok=True)
    logger.info("%s %s started (%s)", settings.project_name, settings.api_version, settings.environment)
    yield


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    if location:
        return f"{'.'.join(location)}: {first.get('msg')}"
    return str(first.get("msg"))


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers that turn every failure into the error envelope."""

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        response = JSONResponse(
            status_code=exc.status_code,
            content=format_error(exc.message, exc.status_code),
        )
        if isinstance(exc, UnauthorizedError) and exc.clear_cookie:
            clear_session_cookie(response)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content=format_error(_validation_message(exc), 400))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            content = format_error("Route not found", 404, path=request.url.path)
        else:
            content = format_error(str(exc.detail), exc.status_code)
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=format_error("Internal server error", 500))


def create_app() -> FastAPI:
    """Create and configure a FastAPI application.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    request_logger = get_request_logger()

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        request_logger.info(
            "%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms
        )
        return response

    register_exception_handlers(app)

    @app.get("/", tags=["health"])
    async def health() -> dict:
        return {
            "name": "EventHub API",
            "version": settings.api_version,
            "status": "running",
            "timestamp": format_timestamp(utcnow()),
            "environment": settings.environment,
        }

    @app.get("/message", response_class=PlainTextResponse, tags=["health"])
    async def message() -> str:
        return "Welcome to EventHub!"

    @app.get(settings.media_base_url.rstrip("/") + "/{key:path}", tags=["media"])
    async def serve_media(key: str) -> FileResponse:
        """Serve a stored object, e.g. an event banner."""
        storage = get_media_storage()
        try:
            path = storage.path_for(key)
        except ValueError:
            raise NotFoundError("File not found")
        meta = storage.metadata(key)
        if meta is None:
            raise NotFoundError("File not found")
        return FileResponse(path, media_type=meta.content_type)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
