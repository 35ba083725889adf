"""
Security audit endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import DEFAULT_PAGE_LIMIT, SECURITY_CATEGORY
from app.core.database import get_session
from app.handlers.auth import require_admin
from app.handlers.logs import LogFilters, query_log_events
from app.models.responses import ApiResponse, LogPage
from app.routes.monitoring import log_filters

router = APIRouter(
    prefix="/security",
    tags=["security"],
    dependencies=[Depends(require_admin)]
)


@router.get("/events", response_model=ApiResponse[LogPage])
async def security_events_endpoint(
    filters: LogFilters = Depends(log_filters),
    page: int = Query(1),
    limit: int = Query(DEFAULT_PAGE_LIMIT),
    session: AsyncSession = Depends(get_session)
):
    """Login, logout and access-denial events, newest first."""
    filters.category = SECURITY_CATEGORY
    result = await query_log_events(session, filters, page=page, limit=limit)
    return ApiResponse(data=result)
