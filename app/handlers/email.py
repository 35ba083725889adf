"""
Email delivery handler for verification codes.
"""

import logging

import httpx

from app.core.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


async def send_verification_code(email: str, code: str) -> bool:
    """
    Deliver a verification code through the configured HTTP email relay.

    Fire-and-forget from the caller's point of view: delivery failures are
    logged and reported as ``False``, never raised.

    Args:
        email: Recipient address
        code: Numeric code to deliver

    Returns:
        True if the relay accepted the message (or no relay is configured)
    """
    if not settings.email_api_url:
        # Development channel: no relay configured
        logger.info("Verification code for %s: %s", email, code)
        return True

    payload = {
        "from": settings.email_from,
        "to": email,
        "subject": f"{settings.app_name} login code",
        "text": (
            f"Your {settings.app_name} login code is {code}. "
            f"It expires in {settings.code_ttl_minutes} minutes."
        ),
    }
    headers = {}
    if settings.email_api_key:
        headers["Authorization"] = f"Bearer {settings.email_api_key}"

    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.post(settings.email_api_url, json=payload, headers=headers)
            response.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning("Failed to deliver verification code to %s: %s", email, e)
        return False

    return True
