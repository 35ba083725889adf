"""
Tenant model - read-only mirror of the external tenant directory.

The console never writes these rows; they are provisioned by the hosting
platform (and by the development seed script).
"""

from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime
from typing import Optional
from datetime import datetime
from enum import Enum

from app.utils.time import utc_now


class TenantPlan(str, Enum):
    FREE = "free"
    PREMIUM = "premium"


class ProvisioningStatus(str, Enum):
    """Tenant provisioning lifecycle."""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    FAILED = "failed"


class Tenant(SQLModel, table=True):
    """Tenant directory table."""
    __tablename__ = "tenants"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(..., unique=True, index=True)
    custom_domain: str = Field(..., unique=True)
    admin_email: str = Field(..., index=True)
    plan: TenantPlan = Field(default=TenantPlan.FREE, index=True)
    email_verified: bool = Field(default=False, index=True)
    provisioning_status: ProvisioningStatus = Field(default=ProvisioningStatus.PENDING, index=True)
    user_count: int = Field(default=0, ge=0)
    ticket_count: int = Field(default=0, ge=0)
    region: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now, index=True, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)
