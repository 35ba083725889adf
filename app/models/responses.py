"""
Response envelope shared by every endpoint.
"""

from pydantic import BaseModel
from typing import Any, Dict, Generic, List, Optional, TypeVar

from app.models.log_event import LogEventRead

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: ``{"success": true, "data": ..., "message": ...}``."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class LogPage(BaseModel):
    """One page of log events plus the filters that produced it."""
    logs: List[LogEventRead]
    pagination: Pagination
    filters: Dict[str, Any] = {}


class ResolveResult(BaseModel):
    affected: int


class SourceList(BaseModel):
    sources: List[str]
    categories: List[str]
