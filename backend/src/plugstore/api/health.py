"""Health check endpoint."""

import time

from fastapi import APIRouter, status

from ..core.config import get_settings_instance
from ..core.database import check_db_connection
from ..core.response import PlugstoreResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Health check", description="Reports database connectivity.")
async def health_check():
    settings = get_settings_instance()
    connected = await check_db_connection()
    health_data = {
        "status": "healthy" if connected else "unhealthy",
        "timestamp": time.time(),
        "version": settings.version,
        "database": "connected" if connected else "disconnected",
    }
    if not connected:
        return PlugstoreResponse.success(health_data, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return PlugstoreResponse.success(health_data)
