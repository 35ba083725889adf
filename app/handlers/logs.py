"""
Log store handler: ingestion, filtered queries, and the resolution workflow.
"""

import math
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, SORTABLE_LOG_FIELDS
from app.core.errors import NotFound, ValidationError
from app.models.log_event import LogEvent, LogEventCreate, LogEventRead, LogLevel
from app.models.responses import LogPage, Pagination
from app.utils.time import to_naive_utc, utc_now


@dataclass
class LogFilters:
    """Independently optional, conjunctive log filters."""
    level: Optional[LogLevel] = None
    source: Optional[str] = None
    tenant_id: Optional[str] = None
    category: Optional[str] = None
    resolved: Optional[bool] = None
    search: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    def conditions(self) -> list:
        """SQL conditions for every filter that is set."""
        conditions = []
        if self.level is not None:
            conditions.append(LogEvent.level == self.level)
        if self.source:
            conditions.append(LogEvent.source == self.source)
        if self.tenant_id:
            conditions.append(LogEvent.tenant_id == self.tenant_id)
        if self.category:
            conditions.append(LogEvent.category == self.category)
        if self.resolved is not None:
            conditions.append(LogEvent.resolved == self.resolved)
        if self.search:
            conditions.append(
                LogEvent.message.icontains(self.search, autoescape=True)
            )
        if self.start_date is not None:
            conditions.append(LogEvent.timestamp >= to_naive_utc(self.start_date))
        if self.end_date is not None:
            conditions.append(LogEvent.timestamp <= to_naive_utc(self.end_date))
        return conditions

    def applied(self) -> Dict[str, Any]:
        """Echo of the filters that were set, JSON friendly."""
        out: Dict[str, Any] = {}
        for key, value in asdict(self).items():
            if value is None or value == "":
                continue
            if isinstance(value, LogLevel):
                value = value.value
            elif isinstance(value, datetime):
                value = value.isoformat()
            out[key] = value
        return out


def clamp_limit(limit: Optional[int]) -> int:
    """Requested page size bounded to [1, MAX_PAGE_LIMIT]."""
    if not limit:
        return DEFAULT_PAGE_LIMIT
    return max(1, min(limit, MAX_PAGE_LIMIT))


def page_count(total: int, limit: int) -> int:
    """ceil(total / limit); zero results means zero pages."""
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


async def ingest_log_event(
    session: AsyncSession,
    data: LogEventCreate,
    now: Optional[datetime] = None
) -> LogEvent:
    """
    Persist a log event with a server-assigned timestamp.

    Raises:
        ValidationError: if level, message, or source is missing
    """
    missing = [
        name for name in ("level", "message", "source")
        if getattr(data, name) is None or not str(getattr(data, name)).strip()
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    event = LogEvent(
        level=data.level,
        message=data.message,
        source=data.source.strip(),
        category=(data.category or None),
        tenant_id=(data.tenant_id or None),
        metadata_json=dict(data.metadata),
        timestamp=now or utc_now(),
    )
    session.add(event)
    await session.commit()
    await session.refresh(event)

    return event


async def get_log_event(session: AsyncSession, event_id: int) -> LogEvent:
    """Get log event by ID."""
    event = await session.get(LogEvent, event_id)
    if not event:
        raise NotFound(f"Log entry {event_id} not found")
    return event


async def query_log_events(
    session: AsyncSession,
    filters: LogFilters,
    page: int = 1,
    limit: Optional[int] = DEFAULT_PAGE_LIMIT,
    sort: str = "timestamp",
    order: str = "desc"
) -> LogPage:
    """
    Filtered, sorted, offset-paginated log query.

    Unknown sort keys fall back to timestamp; limit is capped at
    MAX_PAGE_LIMIT whatever the caller asks for.
    """
    limit = clamp_limit(limit)
    page = max(page or 1, 1)
    conditions = filters.conditions()

    sort_column = getattr(LogEvent, sort) if sort in SORTABLE_LOG_FIELDS else LogEvent.timestamp
    descending = (order or "desc").lower() != "asc"
    ordering = (
        [sort_column.desc(), LogEvent.id.desc()]
        if descending
        else [sort_column.asc(), LogEvent.id.asc()]
    )

    statement = (
        select(LogEvent)
        .where(*conditions)
        .order_by(*ordering)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    result = await session.execute(statement)
    events = list(result.scalars().all())

    total_result = await session.execute(
        select(func.count(LogEvent.id)).where(*conditions)
    )
    total = total_result.scalar() or 0

    return LogPage(
        logs=[LogEventRead.from_event(e) for e in events],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=page_count(total, limit)
        ),
        filters=filters.applied(),
    )


async def resolve_log_events(
    session: AsyncSession,
    event_ids: Iterable[int],
    resolved_by: str,
    now: Optional[datetime] = None
) -> int:
    """
    Mark events resolved. Returns the number of events that changed.

    Each id is an independent atomic update: already-resolved and unknown
    ids are skipped without error, so re-running is a no-op.
    """
    now = now or utc_now()
    affected = 0

    for event_id in dict.fromkeys(event_ids):
        result = await session.execute(
            update(LogEvent)
            .where(LogEvent.id == event_id, LogEvent.resolved == False)  # noqa: E712
            .values(resolved=True, resolved_by=resolved_by, resolved_at=now)
        )
        await session.commit()
        affected += result.rowcount or 0

    return affected


async def resolve_log_event(
    session: AsyncSession,
    event_id: int,
    resolved_by: str,
    now: Optional[datetime] = None
) -> LogEvent:
    """Resolve a single event; unknown ids raise NotFound."""
    event = await get_log_event(session, event_id)
    await resolve_log_events(session, [event_id], resolved_by, now)
    await session.refresh(event)
    return event


async def _distinct(session: AsyncSession, column) -> List[str]:
    result = await session.execute(
        select(column).where(column.is_not(None), column != "").distinct()
    )
    return sorted(value for value in result.scalars().all() if value)


async def distinct_sources(session: AsyncSession) -> List[str]:
    """Observed non-empty sources, sorted."""
    return await _distinct(session, LogEvent.source)


async def distinct_categories(session: AsyncSession) -> List[str]:
    """Observed non-empty categories, sorted."""
    return await _distinct(session, LogEvent.category)


async def count_log_events(
    session: AsyncSession,
    level: Optional[LogLevel] = None,
    since: Optional[datetime] = None,
    resolved: Optional[bool] = None
) -> int:
    """Count events matching an optional level, lower time bound, and state."""
    filters = LogFilters(level=level, resolved=resolved, start_date=since)
    result = await session.execute(
        select(func.count(LogEvent.id)).where(*filters.conditions())
    )
    return result.scalar() or 0
