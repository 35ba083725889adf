"""
Authentication endpoints: email code login, session, logout.
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import ExpiredCode, InvalidCode
from app.handlers import security_events
from app.handlers.auth import CurrentAdmin, client_address, optional_admin, require_admin
from app.handlers.sessions import delete_session, get_addresses, normalize_email, redeem_code, request_code
from app.models.admin import SessionRead
from app.models.code import CodeRequest, LoginRequest
from app.models.log_event import LogLevel
from app.models.responses import ApiResponse

router = APIRouter(prefix="/auth", tags=["auth"])
settings = get_settings()


@router.post("/code", response_model=ApiResponse[None])
async def request_code_endpoint(
    body: CodeRequest,
    request: Request,
    session: AsyncSession = Depends(get_session)
):
    """
    Request a one-time login code by email.

    Always succeeds for a well-formed address, whether or not it belongs
    to a provisioned admin.
    """
    address = client_address(request)
    await request_code(session, body.email)
    await security_events.record_security_event(
        session, security_events.CODE_REQUESTED,
        "Verification code requested",
        email=normalize_email(body.email), address=address,
    )
    return ApiResponse(message="If the address is registered, a verification code has been sent")


@router.post("/login", response_model=ApiResponse[SessionRead])
async def login_endpoint(
    body: LoginRequest,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_session)
):
    """Redeem a code, pin the request address, and open a session."""
    address = client_address(request)
    try:
        admin, admin_session = await redeem_code(session, body.email, body.code, address)
    except (InvalidCode, ExpiredCode) as e:
        await security_events.record_security_event(
            session, security_events.LOGIN_FAILURE,
            f"Login failed: {e.message}",
            level=LogLevel.WARNING, email=(body.email or "").strip().lower(), address=address,
        )
        raise

    response.set_cookie(
        key=settings.session_cookie_name,
        value=admin_session.token,
        max_age=settings.session_ttl_hours * 3600,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )

    addresses = await get_addresses(session, admin.id)
    await security_events.record_security_event(
        session, security_events.LOGIN_SUCCESS,
        "Admin logged in",
        email=admin.email, address=address,
    )
    return ApiResponse(
        data=SessionRead(
            is_authenticated=True,
            email=admin.email,
            last_activity_at=admin.last_activity_at,
            authorized_addresses=addresses,
        ),
        message="Logged in",
    )


@router.get("/session", response_model=ApiResponse[SessionRead])
async def session_endpoint(
    admin: Optional[CurrentAdmin] = Depends(optional_admin)
):
    """Current identity, or an unauthenticated marker. Never 401."""
    if admin is None:
        return ApiResponse(data=SessionRead(is_authenticated=False))
    return ApiResponse(
        data=SessionRead(
            is_authenticated=True,
            email=admin.email,
            last_activity_at=admin.last_activity_at,
            authorized_addresses=list(admin.authorized_addresses),
        )
    )


@router.post("/logout", response_model=ApiResponse[None])
async def logout_endpoint(
    request: Request,
    response: Response,
    admin: CurrentAdmin = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Invalidate the current session."""
    await delete_session(session, admin.session_token)
    response.delete_cookie(settings.session_cookie_name)
    await security_events.record_security_event(
        session, security_events.LOGOUT,
        "Admin logged out",
        email=admin.email, address=client_address(request),
    )
    return ApiResponse(message="Logged out")
