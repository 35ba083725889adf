"""
Auth guard: session validity and address pinning for protected endpoints.

Per request: no session -> AuthenticationRequired; session whose identity is
gone -> InvalidSession (and the session is deleted); identity reached from an
address outside its authorized set -> AddressNotAuthorized. Only then is the
admin attached to the request.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from fastapi import Depends, Request
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import AddressNotAuthorized, AuthenticationRequired, InvalidSession
from app.handlers import security_events
from app.handlers.sessions import add_address, delete_session, get_addresses, load_session
from app.models.admin import AdminIdentity
from app.models.log_event import LogLevel
from app.utils.time import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentAdmin:
    """Snapshot of the authenticated admin attached to a request."""
    id: int
    email: str
    last_activity_at: datetime
    authorized_addresses: Tuple[str, ...]
    session_token: str


def client_address(request: Request) -> str:
    """Source address of a request; honours X-Forwarded-For behind a trusted proxy."""
    if settings.trust_proxy:
        forwarded = request.headers.get("x-forwarded-for", "")
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else "unknown"


async def authorize(
    session: AsyncSession,
    token: Optional[str],
    address: str,
    now: Optional[datetime] = None
) -> CurrentAdmin:
    """
    Run the guard checks in order, short-circuiting on the first failure.

    Raises:
        AuthenticationRequired: no session, or session not authenticated
        InvalidSession: session references a deleted identity
        AddressNotAuthorized: address not in the identity's authorized set
    """
    if not token:
        raise AuthenticationRequired()

    record = await load_session(session, token, now)
    if record is None or not record.authenticated:
        raise AuthenticationRequired()

    admin = await session.get(AdminIdentity, record.admin_id)
    if admin is None:
        await delete_session(session, token)
        raise InvalidSession()

    addresses = await get_addresses(session, admin.id)
    if not addresses or address not in addresses:
        raise AddressNotAuthorized()

    return CurrentAdmin(
        id=admin.id,
        email=admin.email,
        last_activity_at=admin.last_activity_at,
        authorized_addresses=tuple(addresses),
        session_token=token,
    )


async def update_activity(
    session: AsyncSession,
    admin_id: int,
    address: str,
    now: Optional[datetime] = None
) -> None:
    """Refresh last activity (monotonic) and union the address into the set."""
    now = now or utc_now()
    await session.execute(
        update(AdminIdentity)
        .where(AdminIdentity.id == admin_id, AdminIdentity.last_activity_at < now)
        .values(last_activity_at=now)
    )
    await add_address(session, admin_id, address)
    await session.commit()


async def require_admin(
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> CurrentAdmin:
    """Dependency guarding every protected endpoint."""
    address = client_address(request)
    token = request.cookies.get(settings.session_cookie_name)

    try:
        admin = await authorize(session, token, address)
    except AuthenticationRequired as e:
        logger.warning(
            "Access denied (%s): %s %s from %s",
            e.code, request.method, request.url.path, address
        )
        if isinstance(e, InvalidSession):
            await security_events.record_security_event(
                session, security_events.INVALID_SESSION,
                "Session referenced a missing admin identity",
                level=LogLevel.WARNING, address=address,
            )
        elif isinstance(e, AddressNotAuthorized):
            await security_events.record_security_event(
                session, security_events.UNAUTHORIZED_ACCESS,
                f"Session used from unauthorized address {address}",
                level=LogLevel.WARNING, address=address,
            )
        raise

    try:
        await update_activity(session, admin.id, address)
    except Exception:
        # Best-effort: never fail the primary request
        logger.warning("Activity update failed for %s", admin.email, exc_info=True)
        await session.rollback()

    request.state.admin = admin
    return admin


async def optional_admin(
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> Optional[CurrentAdmin]:
    """Like require_admin, but returns None instead of raising."""
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    try:
        return await authorize(session, token, client_address(request))
    except AuthenticationRequired:
        return None
