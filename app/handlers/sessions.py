"""
Session store and verification code issuer.

Codes are issued per email, stored as digests, and redeemed at most once.
A successful redemption creates (or loads) the admin identity, pins the
requesting address, and opens a server-side session.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import delete, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.errors import ExpiredCode, InvalidCode, ValidationError
from app.handlers.email import send_verification_code
from app.models.admin import AdminAddress, AdminIdentity, AdminSession
from app.models.code import VerificationCode
from app.utils.hashing import generate_code, generate_session_token, hash_code
from app.utils.time import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO NOTHING
_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def normalize_email(email: Optional[str]) -> str:
    """Lowercase and trim an email address; reject obviously malformed input."""
    value = (email or "").strip().lower()
    local, _, domain = value.partition("@")
    if not local or not domain or " " in value:
        raise ValidationError("A valid email address is required")
    return value


async def request_code(
    session: AsyncSession,
    email: Optional[str],
    now: Optional[datetime] = None
) -> Optional[str]:
    """
    Issue a verification code and hand it to email delivery.

    Callers always report success: an address outside the admin allowlist
    gets no code, but the outcome is indistinguishable to the requester.
    Earlier outstanding codes for the same email stay valid.

    Returns:
        The issued code, or None when the address is not provisioned
    """
    email = normalize_email(email)
    allowlist = settings.admin_email_allowlist
    if allowlist and email not in allowlist:
        logger.info("Code requested for unprovisioned address %s", email)
        return None

    now = now or utc_now()
    code = generate_code()
    session.add(VerificationCode(
        email=email,
        code_hash=hash_code(email, code),
        expires_at=now + timedelta(minutes=settings.code_ttl_minutes),
        created_at=now,
    ))
    await session.commit()
    logger.info("Issued verification code for %s", email)

    try:
        await send_verification_code(email, code)
    except Exception:
        # Best-effort: the code is issued either way
        logger.warning("Verification code delivery to %s failed", email, exc_info=True)
    return code


async def get_admin_by_email(session: AsyncSession, email: str) -> Optional[AdminIdentity]:
    result = await session.execute(
        select(AdminIdentity).where(AdminIdentity.email == email)
    )
    return result.scalars().first()


async def get_addresses(session: AsyncSession, admin_id: int) -> List[str]:
    """Authorized addresses of an admin, sorted."""
    result = await session.execute(
        select(AdminAddress.address).where(AdminAddress.admin_id == admin_id)
    )
    return sorted(result.scalars().all())


async def add_address(session: AsyncSession, admin_id: int, address: str) -> bool:
    """
    Union an address into the admin's authorized set (not committed).

    Concurrent first requests from the same origin are safe: the insert
    ignores a conflicting (admin_id, address) row instead of failing.

    Returns:
        True if the address was new
    """
    dialect = session.get_bind().dialect.name
    if dialect in _UPSERT_INSERTS:
        statement = (
            _UPSERT_INSERTS[dialect](AdminAddress.__table__)
            .values(admin_id=admin_id, address=address, created_at=utc_now())
            .on_conflict_do_nothing(index_elements=["admin_id", "address"])
        )
        result = await session.execute(statement)
        return result.rowcount == 1

    existing = await session.execute(
        select(AdminAddress.id).where(
            AdminAddress.admin_id == admin_id,
            AdminAddress.address == address
        )
    )
    if existing.first() is not None:
        return False

    session.add(AdminAddress(admin_id=admin_id, address=address))
    await session.flush()
    return True


async def redeem_code(
    session: AsyncSession,
    email: Optional[str],
    code: Optional[str],
    address: str,
    now: Optional[datetime] = None
) -> Tuple[AdminIdentity, AdminSession]:
    """
    Redeem a verification code and open a session.

    Raises:
        ValidationError: if email or code is missing
        InvalidCode: no matching unused code (including a second redemption)
        ExpiredCode: the matching code is past its expiry
    """
    email = normalize_email(email)
    code = (code or "").strip()
    if not code:
        raise ValidationError("Email and code are required")

    now = now or utc_now()
    result = await session.execute(
        select(VerificationCode).where(
            VerificationCode.email == email,
            VerificationCode.code_hash == hash_code(email, code),
            VerificationCode.used == False  # noqa: E712
        ).order_by(VerificationCode.created_at.desc())
    )
    record = result.scalars().first()
    if not record:
        raise InvalidCode()
    if now > record.expires_at:
        raise ExpiredCode()

    # Conditional claim: only one concurrent redemption can flip used
    claimed = await session.execute(
        update(VerificationCode)
        .where(VerificationCode.id == record.id, VerificationCode.used == False)  # noqa: E712
        .values(used=True)
    )
    if claimed.rowcount != 1:
        await session.rollback()
        raise InvalidCode()

    admin = await get_admin_by_email(session, email)
    if admin is None:
        admin = AdminIdentity(email=email, created_at=now, last_activity_at=now)
        session.add(admin)
        await session.flush()
        logger.info("Created admin identity for %s", email)
    else:
        admin.last_activity_at = now

    if await add_address(session, admin.id, address):
        logger.info("Authorized new address %s for %s", address, email)

    admin_session = AdminSession(
        token=generate_session_token(),
        admin_id=admin.id,
        email=email,
        authenticated=True,
        created_at=now,
        expires_at=now + timedelta(hours=settings.session_ttl_hours),
    )
    session.add(admin_session)
    await session.commit()
    await session.refresh(admin)

    return admin, admin_session


async def load_session(
    session: AsyncSession,
    token: str,
    now: Optional[datetime] = None
) -> Optional[AdminSession]:
    """Unexpired session record for a token, if any."""
    now = now or utc_now()
    result = await session.execute(
        select(AdminSession).where(
            AdminSession.token == token,
            AdminSession.expires_at > now
        )
    )
    return result.scalars().first()


async def delete_session(session: AsyncSession, token: str) -> None:
    """Invalidate a session."""
    await session.execute(delete(AdminSession).where(AdminSession.token == token))
    await session.commit()


async def purge_expired(session: AsyncSession, now: Optional[datetime] = None) -> Tuple[int, int]:
    """
    Delete expired sessions and verification codes.

    Returns:
        (sessions removed, codes removed)
    """
    now = now or utc_now()
    sessions = await session.execute(
        delete(AdminSession).where(AdminSession.expires_at <= now)
    )
    codes = await session.execute(
        delete(VerificationCode).where(VerificationCode.expires_at <= now)
    )
    await session.commit()
    return sessions.rowcount or 0, codes.rowcount or 0
