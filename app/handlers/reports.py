"""
Report and aggregation handlers.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timedelta
from typing import Dict, Any, Optional

from app.core.constants import (
    ACTIVE_TENANT_WINDOW_DAYS,
    ANALYTICS_DEFAULT_DAYS,
    ANALYTICS_RANGES,
    DASHBOARD_TREND_DAYS,
)
from app.handlers.health import health_snapshot
from app.handlers.logs import count_log_events
from app.handlers.tenants import (
    count_created_between,
    count_tenants,
    count_updated_since,
    get_plan_distribution,
    get_status_distribution,
    get_tenant_counts,
    get_usage_totals,
)
from app.handlers.trends import (
    get_error_rate_trend,
    get_log_trend,
    get_registration_trend,
    get_tenant_growth_rate,
)
from app.models.log_event import LogLevel
from app.utils.time import utc_now


async def get_monitoring_dashboard(
    session: AsyncSession,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Get the monitoring overview.

    Returns:
        - tenants: total, active, pending, failed, recent_registrations (7d)
        - logs: last-24h counts by level, unresolved critical/error counts
        - system_health: score and status, recomputed from current counts
        - trends: 7-day log trend buckets
    """
    now = now or utc_now()
    one_day_ago = now - timedelta(hours=24)
    one_week_ago = now - timedelta(days=DASHBOARD_TREND_DAYS)

    tenants = await get_tenant_counts(session)
    recent_registrations = await count_created_between(session, one_week_ago)

    critical_24h = await count_log_events(session, level=LogLevel.CRITICAL, since=one_day_ago)
    error_24h = await count_log_events(session, level=LogLevel.ERROR, since=one_day_ago)
    warning_24h = await count_log_events(session, level=LogLevel.WARNING, since=one_day_ago)
    total_24h = await count_log_events(session, since=one_day_ago)
    unresolved_critical = await count_log_events(session, level=LogLevel.CRITICAL, resolved=False)
    unresolved_errors = await count_log_events(session, level=LogLevel.ERROR, resolved=False)

    health = health_snapshot(
        total_tenants=tenants["total"],
        active_tenants=tenants["active"],
        failed_tenants=tenants["failed"],
        critical_logs_24h=critical_24h,
        error_logs_24h=error_24h,
        unresolved_critical=unresolved_critical,
        unresolved_errors=unresolved_errors,
    )

    trends = await get_log_trend(session, one_week_ago, now)

    return {
        "tenants": {**tenants, "recent_registrations": recent_registrations},
        "logs": {
            "last_24h": {
                "total": total_24h,
                "critical": critical_24h,
                "error": error_24h,
                "warning": warning_24h,
            },
            "unresolved": {
                "critical": unresolved_critical,
                "error": unresolved_errors,
            },
        },
        "system_health": health.as_dict(),
        "trends": [bucket.as_dict() for bucket in trends],
        "last_updated": now.isoformat(),
    }


def range_to_days(range_key: Optional[str]) -> int:
    """7d/30d/90d map to their day counts; anything else is a year."""
    return ANALYTICS_RANGES.get(range_key or "", ANALYTICS_DEFAULT_DAYS)


async def get_analytics_dashboard(
    session: AsyncSession,
    range_key: Optional[str] = "30d",
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Get tenant growth and error-rate analytics over a range.

    Returns:
        - overview: totals, recently active tenants, growth rate
        - tenant_metrics: plan and status distributions, registration trend
        - system_health: daily error rates
    """
    now = now or utc_now()
    days = range_to_days(range_key)
    start = now - timedelta(days=days)

    total_tenants = await count_tenants(session)
    active_tenants = await count_updated_since(
        session, now - timedelta(days=ACTIVE_TENANT_WINDOW_DAYS)
    )
    total_users, total_tickets = await get_usage_totals(session)
    tenant_growth = await get_tenant_growth_rate(session, days, now)

    plans = await get_plan_distribution(session)
    plan_total = sum(count for _, count in plans)
    by_plan = [
        {
            "name": plan,
            "value": count,
            "percentage": round(count / plan_total * 100) if plan_total else 0,
        }
        for plan, count in plans
    ]
    by_status = [
        {"name": status, "value": count}
        for status, count in await get_status_distribution(session)
    ]

    return {
        "range": range_key,
        "days": days,
        "overview": {
            "total_tenants": total_tenants,
            "active_tenants": active_tenants,
            "total_users": total_users,
            "total_tickets": total_tickets,
            "tenant_growth_rate": round(tenant_growth, 2),
        },
        "tenant_metrics": {
            "by_plan": by_plan,
            "by_status": by_status,
            "registration_trend": await get_registration_trend(session, start, now),
        },
        "system_health": {
            "error_rates": await get_error_rate_trend(session, start, now),
        },
    }
