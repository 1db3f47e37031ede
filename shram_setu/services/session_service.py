"""Session lifecycle: issuing, rotating and revoking token pairs.

Per account the refresh slot moves ``NONE -> ISSUED`` on login or
registration, stays ``ISSUED`` (with a new value) on every refresh, and
returns to ``NONE`` on logout. Expiry is never an explicit transition; it is
detected lazily when a token is verified.

Logout only empties the refresh slot. Access tokens that were already
handed out stay valid until their own expiry.
"""

from typing import Optional
from uuid import UUID

import structlog

from shram_setu.errors import (
    AccountBlockedError,
    AccountMissingError,
    RefreshStaleError,
    TokenMalformedError,
)
from shram_setu.models.auth import TokenPair
from shram_setu.models.user import Account
from shram_setu.services.account_service import AccountService
from shram_setu.services.refresh_store import RefreshStore, get_refresh_store
from shram_setu.services.token_service import TokenCodec, TokenKind

logger = structlog.get_logger(__name__)


class SessionService:
    """Issues token pairs and enforces single-use refresh tokens."""

    def __init__(
        self,
        codec: Optional[TokenCodec] = None,
        store: Optional[RefreshStore] = None,
        accounts: Optional[AccountService] = None,
    ):
        self.codec = codec or TokenCodec()
        self.store = store or get_refresh_store()
        self.accounts = accounts or AccountService()

    @property
    def access_token_lifetime(self) -> int:
        """Access token lifetime in seconds."""
        return int(self.codec.lifetime(TokenKind.ACCESS).total_seconds())

    def _issue_pair(self, account_id: UUID) -> TokenPair:
        return TokenPair(
            access_token=self.codec.issue_access(str(account_id)),
            refresh_token=self.codec.issue_refresh(str(account_id)),
            expires_in=self.access_token_lifetime,
        )

    async def login(self, account_id: UUID) -> TokenPair:
        """Issue a fresh pair and make its refresh token the only valid one."""
        pair = self._issue_pair(account_id)
        await self.store.set(account_id, pair.refresh_token)
        logger.info("session_started", account_id=str(account_id))
        return pair

    async def register(self, account_id: UUID) -> TokenPair:
        """Start the first session of a newly created account."""
        return await self.login(account_id)

    async def _resolve(self, subject_id: str) -> Account:
        try:
            account_id = UUID(subject_id)
        except ValueError:
            raise TokenMalformedError("Invalid token: malformed subject")

        account = await self.accounts.get_by_id(account_id)
        if account is None:
            logger.warning("session_account_missing", account_id=subject_id)
            raise AccountMissingError()
        if account.is_blocked:
            raise AccountBlockedError()
        return account

    async def refresh(self, presented: str) -> TokenPair:
        """Exchange a refresh token for a new pair, consuming the old one.

        Raises:
            TokenExpiredError: ``presented`` is past its TTL
            TokenMalformedError: ``presented`` is not a valid refresh token
            AccountMissingError: The token's account no longer exists
            AccountBlockedError: The account has been blocked
            RefreshStaleError: ``presented`` is not the stored token, either
                because it was already rotated or the account logged out,
                or because a concurrent refresh rotated it first
        """
        subject_id = self.codec.verify(presented, TokenKind.REFRESH)
        account = await self._resolve(subject_id)

        if not await self.store.matches(account.id, presented):
            logger.warning("refresh_token_stale", account_id=str(account.id))
            raise RefreshStaleError()

        pair = self._issue_pair(account.id)

        if not await self.store.rotate(account.id, presented, pair.refresh_token):
            logger.warning("refresh_token_rotation_lost", account_id=str(account.id))
            raise RefreshStaleError()

        logger.info("refresh_token_rotated", account_id=str(account.id))
        return pair

    async def logout(self, account_id: UUID) -> None:
        """Empty the refresh slot. Issued access tokens are not revoked."""
        await self.store.clear(account_id)
        logger.info("session_ended", account_id=str(account_id))

    async def authenticate(self, access_token: str) -> Account:
        """Resolve the account behind an access token.

        Raises:
            TokenExpiredError: The access token is past its TTL
            TokenMalformedError: The access token is invalid
            AccountMissingError: The account no longer exists
            AccountBlockedError: The account has been blocked
        """
        subject_id = self.codec.verify(access_token, TokenKind.ACCESS)
        return await self._resolve(subject_id)
