"""
Analytics endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict

from app.core.database import get_session
from app.handlers.auth import require_admin
from app.handlers.reports import get_analytics_dashboard
from app.models.responses import ApiResponse

router = APIRouter(
    prefix="/analytics",
    tags=["analytics"],
    dependencies=[Depends(require_admin)]
)


@router.get("/dashboard", response_model=ApiResponse[Dict[str, Any]])
async def analytics_dashboard_endpoint(
    range_key: str = Query("30d", alias="range", description="7d, 30d or 90d; anything else covers a year"),
    session: AsyncSession = Depends(get_session)
):
    """Tenant growth, plan and status mix, and daily error rates."""
    return ApiResponse(data=await get_analytics_dashboard(session, range_key))
