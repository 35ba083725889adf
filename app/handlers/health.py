"""
System health scoring and live collaborator checks.
"""

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import (
    CRITICAL_LOG_PENALTY,
    CRITICAL_LOG_PENALTY_CAP,
    ERROR_LOG_PENALTY,
    ERROR_LOG_PENALTY_CAP,
    ERROR_RATE_DEGRADED_BELOW,
    FAILED_TENANT_WEIGHT,
    HEALTH_EXCELLENT,
    HEALTH_FAIR,
    HEALTH_GOOD,
    UNRESOLVED_CRITICAL_PENALTY,
    UNRESOLVED_ERROR_PENALTY,
)
from app.handlers.logs import count_log_events
from app.models.log_event import LogLevel
from app.utils.time import utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HealthSnapshot:
    score: int
    status: str

    def as_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "status": self.status}


def calculate_health_score(
    total_tenants: int,
    active_tenants: int,
    failed_tenants: int,
    critical_logs_24h: int,
    error_logs_24h: int,
    unresolved_critical: int,
    unresolved_errors: int
) -> int:
    """
    Deterministic 0-100 health score.

    Penalties: failed/total tenant ratio * 30, 5 per critical log in the
    last 24h (max 25), 1 per error log (max 20), 10 per unresolved critical
    and 3 per unresolved error. Halves round up.

    active_tenants is accepted for a complete picture of the directory but
    carries no weight.
    """
    score = 100.0

    if total_tenants > 0:
        score -= (failed_tenants / total_tenants) * FAILED_TENANT_WEIGHT

    score -= min(critical_logs_24h * CRITICAL_LOG_PENALTY, CRITICAL_LOG_PENALTY_CAP)
    score -= min(error_logs_24h * ERROR_LOG_PENALTY, ERROR_LOG_PENALTY_CAP)
    score -= unresolved_critical * UNRESOLVED_CRITICAL_PENALTY
    score -= unresolved_errors * UNRESOLVED_ERROR_PENALTY

    return max(0, min(100, math.floor(score + 0.5)))


def classify_health(score: int) -> str:
    if score >= HEALTH_EXCELLENT:
        return "excellent"
    if score >= HEALTH_GOOD:
        return "good"
    if score >= HEALTH_FAIR:
        return "fair"
    return "poor"


def health_snapshot(**counts: int) -> HealthSnapshot:
    """Score and classify in one step; takes calculate_health_score's arguments."""
    score = calculate_health_score(**counts)
    return HealthSnapshot(score=score, status=classify_health(score))


async def check_database(session: AsyncSession) -> Dict[str, Any]:
    """Store reachability sub-check."""
    started = time.perf_counter()
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database health check failed: %s", e)
        await session.rollback()
        return {
            "name": "Database",
            "status": "critical",
            "message": "Database connection failed",
            "error": str(e),
        }

    return {
        "name": "Database",
        "status": "healthy",
        "message": "Database connection is working",
        "response_time_ms": round((time.perf_counter() - started) * 1000, 2),
    }


async def check_error_rate(session: AsyncSession, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Unresolved critical events in the last hour."""
    now = now or utc_now()
    try:
        recent_critical = await count_log_events(
            session,
            level=LogLevel.CRITICAL,
            since=now - timedelta(hours=1),
            resolved=False,
        )
    except SQLAlchemyError as e:
        logger.error("Error rate health check failed: %s", e)
        await session.rollback()
        return {
            "name": "Error Rate",
            "status": "unknown",
            "message": "Unable to check error rate",
            "error": str(e),
        }

    if recent_critical == 0:
        status = "healthy"
    elif recent_critical < ERROR_RATE_DEGRADED_BELOW:
        status = "degraded"
    else:
        status = "critical"

    return {
        "name": "Error Rate",
        "status": status,
        "message": f"{recent_critical} unresolved critical errors in the last hour",
        "count": recent_critical,
    }


def overall_status(checks: List[Dict[str, Any]]) -> str:
    if all(check["status"] == "healthy" for check in checks):
        return "healthy"
    if any(check["status"] == "critical" for check in checks):
        return "critical"
    return "degraded"


async def run_health_checks(session: AsyncSession, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Aggregate live health. A failing sub-check degrades the result, never raises."""
    now = now or utc_now()
    checks = [
        await check_database(session),
        await check_error_rate(session, now),
    ]
    return {
        "status": overall_status(checks),
        "checks": checks,
        "timestamp": now.isoformat(),
    }
