"""
Custom middleware for the Plugstore backend.

Request tracking, timing and API path normalisation.
"""

import time
import uuid
from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from .logging import get_logger

logger = get_logger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware to add unique request IDs to all requests."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class TimingMiddleware(BaseHTTPMiddleware):
    """Adds X-Response-Time and logs one line per request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        response = await call_next(request)

        duration = time.time() - start_time
        response.headers["X-Response-Time"] = f"{duration:.3f}s"

        logger.info(
            "Request processed",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 2),
                "request_id": getattr(request.state, "request_id", "unknown"),
                "user_id": getattr(request.state, "user_id", "anonymous"),
            },
        )

        return response


class StripAPITrailingSlashMiddleware(BaseHTTPMiddleware):
    """Normalize API paths to avoid 307 redirects while preserving headers.

    For all API paths, remove a trailing slash (except the exact API prefix),
    so both '/foo' and '/foo/' resolve to the same handler without redirects.
    """

    def __init__(self, app, api_prefix: str):
        super().__init__(app)
        self.api_prefix = api_prefix.rstrip("/")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.scope.get("path", "")
        if not path.startswith(self.api_prefix + "/"):
            return await call_next(request)

        if path.endswith("/"):
            normalized = path.rstrip("/")
            if normalized != self.api_prefix:
                request.scope["path"] = normalized
        return await call_next(request)
