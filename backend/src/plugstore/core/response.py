"""Response helpers for the Plugstore API.

Keeps every endpoint on one envelope: ``{"data": ...}`` on success and
``{"error": {...}}`` on failure.
"""

from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response

from .logging import get_logger

logger = get_logger(__name__)


def to_serializable(obj):
    """Recursively convert Pydantic models, lists, and dicts to serializable types."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if isinstance(obj, list):
        return [to_serializable(item) for item in obj]
    if isinstance(obj, dict):
        return {k: to_serializable(v) for k, v in obj.items()}
    return obj


class PlugstoreResponse:
    """Consistent single-envelope responses for API endpoints."""

    @staticmethod
    def success(
        data: Any, status_code: int = status.HTTP_200_OK, headers: dict[str, str] | None = None
    ) -> JSONResponse:
        """Create a successful response with single-envelope structure.

        Args:
            data: Pydantic models, dicts, or other JSON-serializable data
            status_code: HTTP status code (default: 200)
            headers: Optional response headers

        """
        response_content = jsonable_encoder({"data": to_serializable(data)})

        logger.debug(
            "Creating success response",
            extra={"status_code": status_code, "data_type": type(data).__name__},
        )

        return JSONResponse(content=response_content, status_code=status_code, headers=headers)

    @staticmethod
    def error(
        message: str,
        code: str = "API_ERROR",
        details: Any | None = None,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        headers: dict[str, str] | None = None,
    ) -> JSONResponse:
        """Create an error response with the error envelope."""
        error_content: dict[str, Any] = {"error": {"message": message, "code": code}}

        if details is not None:
            error_content["error"]["details"] = to_serializable(details)

        logger.debug(
            "Creating error response",
            extra={"status_code": status_code, "error_code": code},
        )

        return JSONResponse(content=jsonable_encoder(error_content), status_code=status_code, headers=headers)

    @staticmethod
    def created(data: Any, headers: dict[str, str] | None = None) -> JSONResponse:
        """Create a 201 Created response."""
        return PlugstoreResponse.success(data, status.HTTP_201_CREATED, headers)

    @staticmethod
    def no_content(headers: dict[str, str] | None = None) -> Response:
        """Create a 204 No Content response."""
        return Response(content=b"", status_code=status.HTTP_204_NO_CONTENT, headers=headers)
