"""Authentication and profile endpoints."""

import structlog
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from shram_setu.api.dependencies import require_capability
from shram_setu.api.responses import ERROR_RESPONSES, success_response
from shram_setu.config import get_settings
from shram_setu.errors import (
    AccountBlockedError,
    AuthenticationError,
    BadRequestError,
    NotFoundError,
)
from shram_setu.models.auth import (
    AccountSummary,
    AuthPayload,
    LoginRequest,
    RegisterRequest,
    TokenPair,
    UpdatePasswordRequest,
    UpdateProfileRequest,
)
from shram_setu.models.user import Account
from shram_setu.services.account_service import AccountService
from shram_setu.services.auth_service import AuthService
from shram_setu.services.permissions import Operation
from shram_setu.services.session_service import SessionService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"], responses=ERROR_RESPONSES)


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    """Put the refresh token in an HttpOnly, same-site-only cookie."""
    settings = get_settings()
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=refresh_token,
        max_age=settings.refresh_token_max_age,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def clear_refresh_cookie(response: Response) -> None:
    """Expire the refresh cookie immediately."""
    settings = get_settings()
    response.delete_cookie(
        key=settings.refresh_cookie_name,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="strict",
    )


def _auth_response(
    message: str,
    pair: TokenPair,
    account: Account | None = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Access token in the payload, refresh token only in the cookie."""
    payload = AuthPayload(
        access_token=pair.access_token,
        expires_in=pair.expires_in,
        user=AccountSummary.from_account(account) if account else None,
    )
    response = success_response(
        message,
        data=payload.model_dump(mode="json", exclude_none=True),
        status_code=status_code,
    )
    set_refresh_cookie(response, pair.refresh_token)
    return response


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest) -> JSONResponse:
    """Register a worker or hirer and start their first session.

    Raises:
        ConflictError: If the email is already registered
    """
    account_service = AccountService()
    session_service = SessionService()

    account = await account_service.create_account(request)
    pair = await session_service.register(account.id)

    logger.info("account_registered", account_id=str(account.id), role=account.role.value)
    return _auth_response(
        "Registration successful", pair, account, status_code=status.HTTP_201_CREATED
    )


@router.post("/login")
async def login(request: LoginRequest) -> JSONResponse:
    """Login with email and password.

    Raises:
        AuthenticationError: If credentials are invalid
        AccountBlockedError: If the account is blocked
    """
    account_service = AccountService()
    auth_service = AuthService()

    result = await account_service.get_by_email(request.email)
    if result is None:
        raise AuthenticationError("Invalid email or password.")

    account, password_hash = result

    if not auth_service.verify_password(request.password, password_hash):
        raise AuthenticationError("Invalid email or password.")

    if account.is_blocked:
        raise AccountBlockedError()

    pair = await SessionService().login(account.id)

    logger.info("user_logged_in", account_id=str(account.id))
    return _auth_response("Login successful", pair, account)


@router.post("/refresh-token")
async def refresh_token(request: Request) -> JSONResponse:
    """Exchange the refresh cookie for a new access token and cookie.

    The presented refresh token is consumed; replaying it fails.

    Raises:
        AuthenticationError: Cookie absent, malformed, expired or stale
    """
    presented = request.cookies.get(get_settings().refresh_cookie_name)
    if not presented:
        raise AuthenticationError("No refresh token provided.")

    try:
        pair = await SessionService().refresh(presented)
    except AuthenticationError as e:
        logger.warning("refresh_rejected", reason=type(e).__name__)
        raise AuthenticationError("Invalid refresh token. Please log in again.") from e

    return _auth_response("Token refreshed", pair)


@router.post("/logout")
async def logout(
    account: Account = Depends(require_capability(Operation.LOGOUT)),
) -> JSONResponse:
    """Forget the stored refresh token and expire the cookie.

    Access tokens already issued stay valid until they expire.
    """
    await SessionService().logout(account.id)

    response = success_response("Logged out successfully")
    clear_refresh_cookie(response)
    logger.info("user_logged_out", account_id=str(account.id))
    return response


@router.get("/profile")
async def get_profile(
    account: Account = Depends(require_capability(Operation.VIEW_PROFILE)),
) -> JSONResponse:
    """Full profile of the current account."""
    return success_response("Profile fetched", data={"user": account})


@router.put("/profile")
async def update_profile(
    request: UpdateProfileRequest,
    account: Account = Depends(require_capability(Operation.UPDATE_PROFILE)),
) -> JSONResponse:
    """Update common profile fields and the caller's role-specific fields."""
    updated = await AccountService().update_profile(account, request)
    return success_response("Profile updated", data={"user": updated})


@router.put("/update-password")
async def update_password(
    request: UpdatePasswordRequest,
    account: Account = Depends(require_capability(Operation.UPDATE_PASSWORD)),
) -> JSONResponse:
    """Change the password and re-issue the token pair.

    The previous refresh token stops working immediately.

    Raises:
        BadRequestError: If the current password is wrong
    """
    account_service = AccountService()
    auth_service = AuthService()

    password_hash = await account_service.get_password_hash(account.id)
    if password_hash is None:
        raise NotFoundError("User not found.")

    if not auth_service.verify_password(request.current_password, password_hash):
        raise BadRequestError("Current password is incorrect.")

    await account_service.update_password(account.id, request.new_password)
    pair = await SessionService().login(account.id)

    return _auth_response("Password updated successfully", pair)
