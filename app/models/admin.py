"""
Admin identity model - operator accounts pinned to authorized network origins.
"""

from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime, UniqueConstraint
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from app.utils.time import utc_now


class AdminIdentity(SQLModel, table=True):
    """Admin user database table. Created on first successful code redemption."""
    __tablename__ = "admin_users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(..., unique=True, index=True, description="Lowercased email address")
    last_activity_at: datetime = Field(default_factory=utc_now, index=True, sa_type=DateTime)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)


class AdminAddress(SQLModel, table=True):
    """Authorized source address of an admin. Append-only; one row per address."""
    __tablename__ = "admin_addresses"
    __table_args__ = (UniqueConstraint("admin_id", "address", name="uq_admin_address"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    admin_id: int = Field(..., foreign_key="admin_users.id", index=True)
    address: str = Field(..., description="Network address the admin authenticated from")
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)


class AdminSession(SQLModel, table=True):
    """
    Server-side session record. The cookie carries only the token.

    admin_id is a plain reference (no foreign key): the identity may be
    removed out-of-band while sessions still point at it.
    """
    __tablename__ = "admin_sessions"

    token: str = Field(..., primary_key=True)
    admin_id: int = Field(..., index=True)
    email: str
    authenticated: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)
    expires_at: datetime = Field(..., index=True, sa_type=DateTime)


class SessionRead(BaseModel):
    """Schema for the current-session endpoint."""
    is_authenticated: bool
    email: Optional[str] = None
    last_activity_at: Optional[datetime] = None
    authorized_addresses: List[str] = []
