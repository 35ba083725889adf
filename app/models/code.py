"""
Verification code model - one-time email codes for admin login.
"""

from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.utils.time import utc_now


class VerificationCode(SQLModel, table=True):
    """Verification code database table. Stores only the code digest."""
    __tablename__ = "email_codes"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(..., index=True)
    code_hash: str = Field(..., index=True, description="SHA-256 of email:code")
    expires_at: datetime = Field(..., index=True, sa_type=DateTime)
    used: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime)


class CodeRequest(BaseModel):
    """Schema for requesting a verification code."""
    email: Optional[str] = None


class LoginRequest(BaseModel):
    """Schema for redeeming a verification code."""
    email: Optional[str] = None
    code: Optional[str] = None
