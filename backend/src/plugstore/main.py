"""Plugstore - FastAPI Application

This module creates and configures the FastAPI application for the plugin store.
"""

import traceback
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .api.auth import router as auth_router
from .api.dispatch import router as dispatch_router
from .api.files import router as files_router
from .api.health import router as health_router
from .api.plugins import router as plugins_router
from .api.releases import router as releases_router
from .api.users import router as users_router
from .core.config import get_settings_instance
from .core.database import _describe_url, close_db, get_database_url, init_db
from .core.exceptions import PlugstoreException
from .core.http_client import close_http_client
from .core.logging import get_logger, setup_logging, shutdown_logging
from .core.middleware import RequestIDMiddleware, StripAPITrailingSlashMiddleware, TimingMiddleware

logger = get_logger(__name__)
settings = get_settings_instance()


def generate_error_id() -> str:
    """Generate a unique error ID for tracking."""
    return f"ERR-{uuid.uuid4().hex[:8].upper()}"


def get_request_context(request: Request) -> dict[str, Any]:
    """Extract relevant context from request for error logging."""
    return {
        "method": request.method,
        "url": str(request.url),
        "path": request.url.path,
        "query_params": dict(request.query_params),
        "headers": {
            "user-agent": request.headers.get("user-agent"),
            "content-type": request.headers.get("content-type"),
            "x-forwarded-for": request.headers.get("x-forwarded-for"),
        },
        "client": {
            "host": request.client.host if request.client else None,
            "port": request.client.port if request.client else None,
        },
        "request_id": getattr(request.state, "request_id", None),
        "user_id": getattr(request.state, "user_id", None),
    }


def log_exception_details(exc: Exception, request: Request, error_id: str, include_traceback: bool = False) -> None:
    """Log detailed exception information."""
    exception_details = {
        "error_id": error_id,
        "exception_type": type(exc).__name__,
        "exception_message": str(exc),
        "request_context": get_request_context(request),
    }
    if include_traceback:
        exception_details["traceback"] = traceback.format_exc()
        logger.error("Unhandled exception with full details", extra=exception_details, exc_info=True)
    else:
        logger.error("Unhandled exception", extra=exception_details)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging()

    logger.info("Starting Plugstore...")
    logger.info(f"Version: {settings.version}")
    logger.info(f"Environment: {settings.environment}")

    try:
        await init_db()
        logger.info(f"Using database: {_describe_url(get_database_url())}")
    except Exception as e:
        # Health reports the database state; the app still starts.
        logger.error(f"Failed to initialize database: {e}", exc_info=True)

    logger.info("Plugstore startup complete")

    yield

    logger.info("Shutting down Plugstore...")

    try:
        await close_http_client()
        logger.info("HTTP client connections closed")
    except Exception as e:
        logger.error(f"Error closing HTTP client connections: {e}")

    await close_db()
    logger.info("Plugstore shutdown complete")
    shutdown_logging()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Plugin store API",
        version=settings.version,
        debug=settings.debug,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    setup_middleware(app)
    setup_exception_handlers(app)
    setup_routes(app)

    logger.info("Plugstore FastAPI application created successfully")
    return app


def setup_middleware(app: FastAPI) -> None:
    """Register request ID, timing, trailing-slash normalisation and CORS middleware."""
    settings = get_settings_instance()

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(TimingMiddleware)

    # Strip trailing slashes for API paths to avoid 307 redirects dropping headers
    app.add_middleware(StripAPITrailingSlashMiddleware, api_prefix=settings.api_v1_prefix)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=settings.cors_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register handlers that render every failure as ``{"error": {code, message, details}}``.

    Server errors (5xx) get an ``error_id`` that is also written to the log so
    a client report can be matched to the log line.
    """
    settings = get_settings_instance()

    @app.exception_handler(PlugstoreException)
    async def plugstore_exception_handler(request: Request, exc: PlugstoreException):
        error_id = generate_error_id() if exc.status_code >= 500 else None

        if exc.status_code >= 500:
            logger.error(
                "Plugstore server error",
                extra={
                    "error_id": error_id,
                    "error_code": exc.error_code,
                    "error_message": exc.message,
                    "details": exc.details,
                    "request_context": get_request_context(request),
                },
            )
        else:
            logger.warning(
                "Plugstore client error",
                extra={
                    "error_code": exc.error_code,
                    "error_message": exc.message,
                    "details": exc.details,
                    "request_context": get_request_context(request),
                },
            )

        error_response = {
            "error": {
                "code": exc.error_code,
                "message": exc.message,
                "details": exc.details,
            }
        }
        if error_id:
            error_response["error"]["error_id"] = error_id

        return JSONResponse(status_code=exc.status_code, content=error_response)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        error_id = generate_error_id() if exc.status_code >= 500 else None

        if exc.status_code >= 500:
            log_exception_details(exc, request, error_id, include_traceback=settings.debug)
        elif exc.status_code >= 400:
            logger.warning(
                "HTTP client error",
                extra={
                    "status_code": exc.status_code,
                    "detail": exc.detail,
                    "request_context": get_request_context(request),
                },
            )

        error_response = {
            "error": {
                "code": f"HTTP_{exc.status_code}",
                "message": exc.detail,
                "details": {},
            }
        }
        if error_id:
            error_response["error"]["error_id"] = error_id

        return JSONResponse(
            status_code=exc.status_code,
            content=error_response,
            headers=getattr(exc, "headers", None) or None,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        error_id = generate_error_id()
        include_traceback = settings.debug or settings.environment == "development"

        log_exception_details(exc, request, error_id, include_traceback)

        error_response = {
            "error": {
                "code": "INTERNAL_SERVER_ERROR",
                "message": "Internal server error",
                "error_id": error_id,
                "details": {},
            }
        }
        if include_traceback:
            error_response["error"]["details"] = {
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
                "traceback": traceback.format_exc().split("\n"),
            }

        return JSONResponse(status_code=500, content=error_response)


def setup_routes(app: FastAPI) -> None:
    """Configure application routes."""
    settings = get_settings_instance()

    # Health lives at the root so load balancers need no API prefix
    app.include_router(health_router)

    app.include_router(auth_router, prefix=settings.api_v1_prefix)
    app.include_router(users_router, prefix=settings.api_v1_prefix)
    app.include_router(plugins_router, prefix=settings.api_v1_prefix)
    app.include_router(releases_router, prefix=settings.api_v1_prefix)
    app.include_router(files_router, prefix=settings.api_v1_prefix)
    app.include_router(dispatch_router, prefix=settings.api_v1_prefix)


# Ensure logging is configured before app instantiation; the lifespan call is a no-op after this
setup_logging()

app = create_app()
