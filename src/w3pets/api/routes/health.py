"""
Health check endpoints for monitoring application status.

Provides:
- Basic health check
- Readiness check (database, Redis)
- Liveness check
"""

import time
from datetime import datetime
from typing import Dict, Any

from fastapi import APIRouter, Depends, status, Response
from sqlalchemy import text
from sqlalchemy.orm import Session

from w3pets import __version__
from w3pets.cache.redis_cache import RedisCache, get_cache
from w3pets.database.connection import get_db
from w3pets.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check() -> Dict[str, Any]:
    """
    Basic health check endpoint.

    Returns 200 if application is running.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "service": "w3pets-api",
        "version": __version__,
    }


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check(
    response: Response,
    db: Session = Depends(get_db),
    cache: RedisCache = Depends(get_cache),
) -> Dict[str, Any]:
    """
    Readiness check endpoint.

    Signup, verification and password reset need Redis as much as the
    database, so both must answer for the instance to take traffic.
    """
    checks = {
        "database": _check_database(db),
        "redis": _check_redis(cache),
    }

    all_healthy = all(check["status"] == "healthy" for check in checks.values())
    overall_status = "healthy" if all_healthy else "unhealthy"

    if not all_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {
        "status": overall_status,
        "timestamp": datetime.utcnow().isoformat(),
        "checks": checks,
    }


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> Dict[str, str]:
    """
    Liveness check endpoint.

    Returns 200 if process is running, even if dependencies are down.
    """
    return {
        "status": "alive",
        "timestamp": datetime.utcnow().isoformat(),
    }


def _check_database(db: Session) -> Dict[str, Any]:
    """Check database connectivity."""
    start_time = time.time()

    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "error": str(e)[:100],
            "response_time_ms": round((time.time() - start_time) * 1000, 2),
        }

    return {
        "status": "healthy",
        "response_time_ms": round((time.time() - start_time) * 1000, 2),
    }


def _check_redis(cache: RedisCache) -> Dict[str, Any]:
    """Check Redis connectivity."""
    start_time = time.time()

    healthy = cache.ping()

    result = {
        "status": "healthy" if healthy else "unhealthy",
        "response_time_ms": round((time.time() - start_time) * 1000, 2),
    }
    if not healthy:
        result["error"] = "PING failed"
    return result
