"""
Day-granularity trend series for dashboards.

Series are sparse: days without records are not synthesized.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.handlers.tenants import count_created_between, get_creation_timestamps
from app.models.log_event import LogEvent, LogLevel
from app.utils.time import to_naive_utc, utc_now


@dataclass
class TrendBucket:
    """Per-level event counts for one UTC calendar day."""
    day: date
    levels: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.levels.values())

    def as_dict(self) -> Dict[str, Any]:
        return {"date": self.day.isoformat(), "levels": dict(self.levels), "total": self.total}


def _utc_day(ts: datetime) -> date:
    return to_naive_utc(ts).date()


def bucket_by_day(rows: Iterable[Tuple[datetime, str]]) -> List[TrendBucket]:
    """Group (timestamp, level) pairs into day buckets, ascending by date."""
    buckets: Dict[date, TrendBucket] = {}
    for ts, level in rows:
        day = _utc_day(ts)
        bucket = buckets.setdefault(day, TrendBucket(day=day))
        key = level.value if isinstance(level, LogLevel) else str(level)
        bucket.levels[key] = bucket.levels.get(key, 0) + 1
    return [buckets[day] for day in sorted(buckets)]


def count_by_day(timestamps: Iterable[datetime]) -> List[Tuple[date, int]]:
    """Per-day record counts, ascending by date."""
    counts: Dict[date, int] = {}
    for ts in timestamps:
        day = _utc_day(ts)
        counts[day] = counts.get(day, 0) + 1
    return sorted(counts.items())


def cumulative_series(daily: Iterable[Tuple[date, int]]) -> List[Dict[str, Any]]:
    """
    Attach a running total to per-day counts.

    Input is sorted (stable) ascending first, so cumulative[i] is always
    cumulative[i-1] + count[i] in date order.
    """
    running = 0
    series = []
    for day, count in sorted(daily, key=lambda item: item[0]):
        running += count
        series.append({"date": day.isoformat(), "count": count, "cumulative": running})
    return series


def growth_rate(current: int, previous: int) -> float:
    """Percent change from the previous window; growth from nothing is 100%."""
    if previous > 0:
        return ((current - previous) / previous) * 100
    return 100.0 if current > 0 else 0.0


async def get_log_trend(
    session: AsyncSession,
    start: datetime,
    end: datetime
) -> List[TrendBucket]:
    """Log events in [start, end] bucketed by UTC day and level."""
    result = await session.execute(
        select(LogEvent.timestamp, LogEvent.level).where(
            LogEvent.timestamp >= to_naive_utc(start),
            LogEvent.timestamp <= to_naive_utc(end)
        )
    )
    return bucket_by_day(result.all())


async def get_error_rate_trend(
    session: AsyncSession,
    start: datetime,
    end: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    """Daily critical/error/warning counts since start."""
    buckets = await get_log_trend(session, start, end or utc_now())
    rates = []
    for bucket in buckets:
        critical = bucket.levels.get(LogLevel.CRITICAL.value, 0)
        errors = bucket.levels.get(LogLevel.ERROR.value, 0)
        warnings = bucket.levels.get(LogLevel.WARNING.value, 0)
        if critical or errors or warnings:
            rates.append({
                "date": bucket.day.isoformat(),
                "critical": critical,
                "errors": errors,
                "warnings": warnings,
            })
    return rates


async def get_registration_trend(
    session: AsyncSession,
    start: datetime,
    end: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    """Tenant registrations per day with a cumulative column."""
    timestamps = await get_creation_timestamps(session, to_naive_utc(start), to_naive_utc(end or utc_now()))
    return cumulative_series(count_by_day(timestamps))


async def get_tenant_growth_rate(
    session: AsyncSession,
    days: int,
    now: Optional[datetime] = None
) -> float:
    """Growth of registrations in [now-N, now) versus [now-2N, now-N)."""
    now = now or utc_now()
    window_start = now - timedelta(days=days)
    previous_start = window_start - timedelta(days=days)
    current = await count_created_between(session, window_start, now)
    previous = await count_created_between(session, previous_start, window_start)
    return growth_rate(current, previous)
