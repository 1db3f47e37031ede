"""Service banner and health endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter

from shram_setu import __version__

router = APIRouter(tags=["Health"])


@router.get("/")
async def root() -> dict:
    """Service banner."""
    return {
        "success": True,
        "message": "Shram Setu API v1",
        "version": __version__,
        "docs": "/docs",
    }


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Status, timestamp in ISO8601 format and database status
    """
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    try:
        from shram_setu.database import health_check as db_health_check

        db_healthy = await db_health_check()
        health_status["database"] = "healthy" if db_healthy else "unhealthy"
    except Exception:
        health_status["database"] = "unavailable"

    return health_status
