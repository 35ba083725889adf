"""
Monitoring endpoints: log ingestion, querying, resolution, dashboard.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict, Optional
from datetime import datetime

from app.core.constants import DEFAULT_PAGE_LIMIT
from app.core.database import get_session
from app.handlers.auth import CurrentAdmin, require_admin
from app.handlers.health import run_health_checks
from app.handlers.logs import (
    LogFilters,
    distinct_categories,
    distinct_sources,
    get_log_event,
    ingest_log_event,
    query_log_events,
    resolve_log_event,
    resolve_log_events,
)
from app.handlers.reports import get_monitoring_dashboard
from app.models.log_event import (
    LogEventCreate,
    LogEventRead,
    LogLevel,
    ResolveOneRequest,
    ResolveRequest,
)
from app.models.responses import ApiResponse, LogPage, ResolveResult, SourceList

router = APIRouter(
    prefix="/monitoring",
    tags=["monitoring"],
    dependencies=[Depends(require_admin)]
)


def log_filters(
    level: Optional[LogLevel] = None,
    source: Optional[str] = None,
    tenant_id: Optional[str] = None,
    category: Optional[str] = None,
    resolved: Optional[bool] = None,
    search: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> LogFilters:
    """Log filters from query parameters."""
    return LogFilters(
        level=level,
        source=source,
        tenant_id=tenant_id,
        category=category,
        resolved=resolved,
        search=search,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/dashboard", response_model=ApiResponse[Dict[str, Any]])
async def dashboard_endpoint(
    session: AsyncSession = Depends(get_session)
):
    """Tenant counts, 24h log counts, system health, and the 7-day trend."""
    return ApiResponse(data=await get_monitoring_dashboard(session))


@router.post("/logs", response_model=ApiResponse[LogEventRead], status_code=status.HTTP_201_CREATED)
async def create_log_endpoint(
    event: LogEventCreate,
    session: AsyncSession = Depends(get_session)
):
    """Ingest a log event. The server assigns the timestamp."""
    created = await ingest_log_event(session, event)
    return ApiResponse(data=LogEventRead.from_event(created), message="Log entry created")


@router.get("/logs", response_model=ApiResponse[LogPage])
async def list_logs_endpoint(
    filters: LogFilters = Depends(log_filters),
    page: int = Query(1),
    limit: int = Query(DEFAULT_PAGE_LIMIT),
    sort: str = Query("timestamp"),
    order: str = Query("desc"),
    session: AsyncSession = Depends(get_session)
):
    """
    Filtered, paginated log listing.

    Oversized limits are capped rather than rejected.
    """
    result = await query_log_events(session, filters, page=page, limit=limit, sort=sort, order=order)
    return ApiResponse(data=result)


@router.post("/logs/resolve", response_model=ApiResponse[ResolveResult])
async def resolve_logs_endpoint(
    body: ResolveRequest,
    admin: CurrentAdmin = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Bulk-resolve events. Already-resolved and unknown ids are skipped."""
    affected = await resolve_log_events(session, body.ids, body.resolved_by or admin.email)
    return ApiResponse(
        data=ResolveResult(affected=affected),
        message=f"{affected} log entries resolved"
    )


@router.get("/logs/{log_id}", response_model=ApiResponse[LogEventRead])
async def get_log_endpoint(
    log_id: int,
    session: AsyncSession = Depends(get_session)
):
    """Get a log event by ID."""
    event = await get_log_event(session, log_id)
    return ApiResponse(data=LogEventRead.from_event(event))


@router.put("/logs/{log_id}/resolve", response_model=ApiResponse[LogEventRead])
async def resolve_log_endpoint(
    log_id: int,
    body: Optional[ResolveOneRequest] = None,
    admin: CurrentAdmin = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Resolve one event; resolving twice leaves the first resolution intact."""
    resolved_by = (body.resolved_by if body else None) or admin.email
    event = await resolve_log_event(session, log_id, resolved_by)
    return ApiResponse(data=LogEventRead.from_event(event), message="Log entry resolved")


@router.get("/sources", response_model=ApiResponse[SourceList])
async def sources_endpoint(
    session: AsyncSession = Depends(get_session)
):
    """Distinct sources and categories seen in the log store."""
    return ApiResponse(
        data=SourceList(
            sources=await distinct_sources(session),
            categories=await distinct_categories(session),
        )
    )


@router.get("/health", response_model=ApiResponse[Dict[str, Any]])
async def system_health_endpoint(
    session: AsyncSession = Depends(get_session)
):
    """Live store and error-rate checks."""
    return ApiResponse(data=await run_health_checks(session))
