"""
Health Check Endpoints
Liveness and API information.
"""

import logging
import time
from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from ..config import APISettings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])

_started_at = time.monotonic()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(settings: APISettings = Depends(get_settings)) -> Dict[str, Any]:
    """
    Basic health check.

    Returns:
        Status, process uptime in seconds, environment and version
    """
    return {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "uptime": round(time.monotonic() - _started_at, 3),
        "environment": settings.environment,
        "version": settings.version,
        "service": settings.service_name,
    }


@router.get("/", status_code=status.HTTP_200_OK)
async def api_info(settings: APISettings = Depends(get_settings)) -> Dict[str, Any]:
    """API information."""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "description": settings.description,
        "endpoints": {
            "health": f"{settings.api_prefix}/health",
            "docs": "/api/docs",
        },
        "timestamp": datetime.utcnow().isoformat(),
    }
