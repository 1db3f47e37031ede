"""Application error taxonomy.

Every operational failure raised by the services is an ``AppError`` carrying
the HTTP status it maps to. The API layer turns these into the standard
``{success: false, message, errors?}`` envelope.
"""

from typing import List, Optional


class AppError(Exception):
    """Base class for operational errors mapped to HTTP responses."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        errors: Optional[List[str]] = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors


class BadRequestError(AppError):
    """Malformed or invalid request (400)."""

    status_code = 400
    default_message = "Bad request"


class ConflictError(BadRequestError):
    """A unique value is already taken (400, matching the public API)."""

    default_message = "Duplicate value"


class NotFoundError(AppError):
    """Requested resource does not exist (404)."""

    status_code = 404
    default_message = "Resource not found"


class AuthenticationError(AppError):
    """Identity could not be established (401)."""

    status_code = 401
    default_message = "Not authorized. Please log in."


class TokenExpiredError(AuthenticationError):
    """Token is past its TTL. Recoverable for access tokens via refresh."""

    default_message = "Token expired"


class TokenMalformedError(AuthenticationError):
    """Signature, structure, type or subject claim is invalid."""

    default_message = "Invalid token"


class RefreshStaleError(AuthenticationError):
    """Presented refresh token no longer matches the stored slot."""

    default_message = "Invalid refresh token. Please log in again."


class AccountMissingError(AuthenticationError):
    """Token subject no longer resolves to an account."""

    default_message = "User no longer exists."


class AccountBlockedError(AppError):
    """Account has been blocked by an admin (403)."""

    status_code = 403
    default_message = "Your account has been blocked. Contact admin."


class PermissionDeniedError(AppError):
    """Role is not allowed to perform the operation (403)."""

    status_code = 403
    default_message = "Access denied"


class SessionExpiredError(AuthenticationError):
    """Client side: the session could not be refreshed and was cleared."""

    default_message = "Session expired. Please log in again."
