"""
Log event model - operational events ingested from tenants and the platform.
"""

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, JSON
from pydantic import BaseModel
from typing import Any, Dict, List, Optional, Union
from datetime import datetime
from enum import Enum

from app.utils.time import utc_now

Scalar = Union[bool, int, float, str, None]


class LogLevel(str, Enum):
    """Log event severity."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class LogEvent(SQLModel, table=True):
    """
    Log event database table.

    timestamp is assigned by the server at ingestion and never changes.
    resolved_at is set if and only if resolved is true.
    """
    __tablename__ = "system_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    level: LogLevel = Field(..., index=True)
    message: str = Field(..., description="Human-readable event message")
    source: str = Field(..., index=True, description="Tenant name or 'system'")
    category: Optional[str] = Field(default=None, index=True)
    tenant_id: Optional[str] = Field(
        default=None,
        index=True,
        description="Unvalidated reference into the tenant directory"
    )
    timestamp: datetime = Field(default_factory=utc_now, index=True, sa_type=DateTime)
    metadata_json: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
    resolved: bool = Field(default=False, index=True)
    resolved_by: Optional[str] = Field(default=None)
    resolved_at: Optional[datetime] = Field(default=None, sa_type=DateTime)


class LogEventCreate(BaseModel):
    """
    Schema for ingesting a log event.

    Required fields are optional here so that the store reports them
    together as a single validation error. Caller timestamps are ignored.
    """
    level: Optional[LogLevel] = None
    message: Optional[str] = None
    source: Optional[str] = None
    category: Optional[str] = None
    tenant_id: Optional[str] = None
    metadata: Dict[str, Scalar] = {}


class LogEventRead(BaseModel):
    """Schema for reading a log event."""
    id: int
    level: LogLevel
    message: str
    source: str
    category: Optional[str] = None
    tenant_id: Optional[str] = None
    timestamp: datetime
    metadata: Dict[str, Any] = {}
    resolved: bool
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None

    @classmethod
    def from_event(cls, event: LogEvent) -> "LogEventRead":
        return cls(
            id=event.id,
            level=event.level,
            message=event.message,
            source=event.source,
            category=event.category,
            tenant_id=event.tenant_id,
            timestamp=event.timestamp,
            metadata=event.metadata_json or {},
            resolved=event.resolved,
            resolved_by=event.resolved_by,
            resolved_at=event.resolved_at,
        )


class ResolveRequest(BaseModel):
    """Schema for bulk resolution."""
    ids: List[int] = []
    resolved_by: Optional[str] = None


class ResolveOneRequest(BaseModel):
    """Optional body for single-event resolution."""
    resolved_by: Optional[str] = None
