"""
Read-only queries against the tenant directory.
"""

from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.tenant import ProvisioningStatus, Tenant


async def count_tenants(session: AsyncSession, *conditions) -> int:
    """Count tenants matching all given conditions."""
    result = await session.execute(select(func.count(Tenant.id)).where(*conditions))
    return result.scalar() or 0


async def get_tenant_counts(session: AsyncSession) -> Dict[str, int]:
    """
    Tenant counts used by the dashboard and health score.

    active means provisioned and email-verified; pending covers both
    pending and in-progress provisioning.
    """
    return {
        "total": await count_tenants(session),
        "active": await count_tenants(
            session,
            Tenant.provisioning_status == ProvisioningStatus.COMPLETED,
            Tenant.email_verified == True  # noqa: E712
        ),
        "pending": await count_tenants(
            session,
            Tenant.provisioning_status.in_(
                [ProvisioningStatus.PENDING, ProvisioningStatus.IN_PROGRESS]
            )
        ),
        "failed": await count_tenants(
            session,
            Tenant.provisioning_status == ProvisioningStatus.FAILED
        ),
    }


async def count_created_between(
    session: AsyncSession,
    start: datetime,
    end: Optional[datetime] = None
) -> int:
    """Tenants created in [start, end)."""
    conditions = [Tenant.created_at >= start]
    if end is not None:
        conditions.append(Tenant.created_at < end)
    return await count_tenants(session, *conditions)


async def count_updated_since(session: AsyncSession, since: datetime) -> int:
    return await count_tenants(session, Tenant.updated_at >= since)


async def get_creation_timestamps(
    session: AsyncSession,
    start: datetime,
    end: datetime
) -> List[datetime]:
    """Creation timestamps within [start, end], ascending."""
    result = await session.execute(
        select(Tenant.created_at)
        .where(Tenant.created_at >= start, Tenant.created_at <= end)
        .order_by(Tenant.created_at)
    )
    return list(result.scalars().all())


async def get_plan_distribution(session: AsyncSession) -> List[Tuple[str, int]]:
    result = await session.execute(
        select(Tenant.plan, func.count(Tenant.id)).group_by(Tenant.plan)
    )
    return [(plan.value, count) for plan, count in result.all()]


async def get_status_distribution(session: AsyncSession) -> List[Tuple[str, int]]:
    result = await session.execute(
        select(Tenant.provisioning_status, func.count(Tenant.id))
        .group_by(Tenant.provisioning_status)
    )
    return [(status.value, count) for status, count in result.all()]


async def get_usage_totals(session: AsyncSession) -> Tuple[int, int]:
    """Sum of user and ticket counts across all tenants."""
    result = await session.execute(
        select(func.sum(Tenant.user_count), func.sum(Tenant.ticket_count))
    )
    users, tickets = result.one()
    return users or 0, tickets or 0
