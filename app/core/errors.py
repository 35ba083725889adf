"""
Error taxonomy shared by handlers and routes.

Every failure surfaced to a caller is a ``ConsoleError`` carrying a stable
``code`` and an HTTP status. The exception handlers in ``main.py`` turn them
into ``{"success": false, "error": code, "message": ...}`` bodies.
"""

from fastapi import status


class ConsoleError(Exception):
    """Base class for errors with a stable classification."""

    code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ConsoleError):
    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class AuthenticationRequired(ConsoleError):
    code = "authentication_required"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class InvalidSession(AuthenticationRequired):
    """Session points at an identity that no longer exists."""

    code = "invalid_session"
    default_message = "Invalid session"


class AddressNotAuthorized(AuthenticationRequired):
    """Valid session used from an origin outside the identity's address set."""

    code = "address_not_authorized"
    default_message = "IP address not authorized"


class InvalidCode(ConsoleError):
    code = "invalid_code"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid verification code"


class ExpiredCode(ConsoleError):
    code = "expired_code"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Verification code has expired"


class NotFound(ConsoleError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class StoreUnavailable(ConsoleError):
    code = "store_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Storage is unavailable"
