"""
Security events, recorded as log events in the "security" category.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.constants import SECURITY_CATEGORY, SYSTEM_SOURCE
from app.handlers.logs import ingest_log_event
from app.models.log_event import LogEventCreate, LogLevel

logger = logging.getLogger(__name__)

CODE_REQUESTED = "code_requested"
LOGIN_SUCCESS = "login_success"
LOGIN_FAILURE = "login_failure"
LOGOUT = "logout"
INVALID_SESSION = "invalid_session"
UNAUTHORIZED_ACCESS = "unauthorized_access"


async def record_security_event(
    session: AsyncSession,
    event: str,
    message: str,
    level: LogLevel = LogLevel.INFO,
    email: Optional[str] = None,
    address: Optional[str] = None
) -> None:
    """Append a security event to the log store. Failures are logged, not raised."""
    metadata = {"event": event}
    if email:
        metadata["email"] = email
    if address:
        metadata["address"] = address

    try:
        await ingest_log_event(
            session,
            LogEventCreate(
                level=level,
                message=message,
                source=SYSTEM_SOURCE,
                category=SECURITY_CATEGORY,
                metadata=metadata,
            ),
        )
    except SQLAlchemyError:
        logger.warning("Failed to record security event %s", event, exc_info=True)
        await session.rollback()
