"""
Health check endpoints.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.handlers.health import check_database

router = APIRouter(prefix="/health", tags=["health"])
settings = get_settings()


@router.get("/")
async def health_check():
    """Root health check endpoint."""
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version
    }


@router.get("/live")
async def liveness():
    """Liveness endpoint."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(session: AsyncSession = Depends(get_session)):
    """Readiness endpoint. Not ready while the store is unreachable."""
    database = await check_database(session)
    if database["status"] != "healthy":
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "database": database["status"]}
        )
    return {"status": "ready", "database": database["status"]}
