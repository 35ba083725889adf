"""
Hashing utilities for verification codes and session tokens.
"""

import hashlib
import secrets

from app.core.constants import CODE_DIGITS


def hash_code(email: str, code: str) -> str:
    """
    SHA-256 digest of a verification code bound to its email.

    Codes are stored only as this digest.

    Args:
        email: Normalized (lowercased) email address
        code: Numeric code as issued

    Returns:
        Hexadecimal SHA-256 hash string
    """
    payload = f"{email}:{code}"
    return hashlib.sha256(payload.encode()).hexdigest()


def generate_code() -> str:
    """Cryptographically random zero-padded numeric code."""
    return f"{secrets.randbelow(10 ** CODE_DIGITS):0{CODE_DIGITS}d}"


def generate_session_token() -> str:
    """Opaque session identifier for the session cookie."""
    return secrets.token_urlsafe(32)
