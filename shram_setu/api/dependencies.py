"""FastAPI dependencies for authentication and authorization."""

from typing import Awaitable, Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from shram_setu.errors import AuthenticationError, TokenExpiredError, TokenMalformedError
from shram_setu.models.user import Account
from shram_setu.services.permissions import Operation, authorize
from shram_setu.services.session_service import SessionService

# auto_error is off so a missing header produces the standard envelope
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Account:
    """Extract and validate the current account from a Bearer access token.

    Returns:
        Authenticated Account model

    Raises:
        AuthenticationError: Header missing, token expired or invalid,
            or account gone
        AccountBlockedError: The account has been blocked
    """
    if credentials is None:
        raise AuthenticationError("Not authorized. Please log in.")

    session_service = SessionService()
    try:
        return await session_service.authenticate(credentials.credentials)
    except TokenExpiredError:
        raise TokenExpiredError("Token expired. Please refresh your token.")
    except TokenMalformedError:
        raise TokenMalformedError("Not authorized. Invalid token.")


def require_capability(operation: Operation) -> Callable[..., Awaitable[Account]]:
    """Build a dependency that authenticates and then checks ``operation``.

    Args:
        operation: Operation looked up in the capability table

    Returns:
        Dependency resolving to the authorized Account
    """

    async def dependency(account: Account = Depends(get_current_account)) -> Account:
        authorize(account, operation)
        return account

    return dependency
