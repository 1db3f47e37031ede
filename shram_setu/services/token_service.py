"""Signing and verification of access and refresh JWTs."""

from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional
from uuid import uuid4

import jwt
import structlog

from shram_setu.config import Settings, get_settings
from shram_setu.errors import TokenExpiredError, TokenMalformedError

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"


class TokenKind(str, Enum):
    """The two classes of bearer token."""

    ACCESS = "access"
    REFRESH = "refresh"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """Issues and verifies access and refresh tokens.

    Each kind is signed with its own secret and carries a ``type`` claim, so
    a refresh token can never pass as an access token or the other way
    round. Every token gets a fresh ``jti``; two tokens issued for the same
    account within the same second are still distinct.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings or get_settings()
        self._clock = clock

    def _secret(self, kind: TokenKind) -> str:
        if kind is TokenKind.ACCESS:
            return self.settings.jwt_access_secret
        return self.settings.jwt_refresh_secret

    def lifetime(self, kind: TokenKind) -> timedelta:
        """Time-to-live for tokens of ``kind``."""
        if kind is TokenKind.ACCESS:
            return timedelta(minutes=self.settings.access_token_expire_minutes)
        return timedelta(days=self.settings.refresh_token_expire_days)

    def _issue(self, subject_id: str, kind: TokenKind) -> str:
        now = self._clock()
        payload = {
            "sub": str(subject_id),
            "type": kind.value,
            "jti": uuid4().hex,
            "iat": now,
            "exp": now + self.lifetime(kind),
        }
        token = jwt.encode(payload, self._secret(kind), algorithm=JWT_ALGORITHM)
        logger.debug("token_issued", kind=kind.value, subject_id=str(subject_id))
        return token

    def issue_access(self, subject_id: str) -> str:
        """Create a signed short-lived access token for ``subject_id``."""
        return self._issue(subject_id, TokenKind.ACCESS)

    def issue_refresh(self, subject_id: str) -> str:
        """Create a signed long-lived refresh token for ``subject_id``."""
        return self._issue(subject_id, TokenKind.REFRESH)

    def verify(self, token: str, kind: TokenKind) -> str:
        """Verify ``token`` as a ``kind`` token and return its subject id.

        Raises:
            TokenExpiredError: The token is validly signed but past its TTL
            TokenMalformedError: Bad signature or structure, wrong token
                type, or missing subject
        """
        try:
            payload = jwt.decode(
                token,
                self._secret(kind),
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError(f"{kind.value.capitalize()} token has expired")
        except jwt.InvalidTokenError as e:
            raise TokenMalformedError(f"Invalid {kind.value} token: {e}")

        if payload.get("type") != kind.value:
            raise TokenMalformedError(f"Invalid {kind.value} token: wrong token type")

        subject_id = payload.get("sub")
        if not subject_id:
            raise TokenMalformedError(f"Invalid {kind.value} token: missing subject")

        return subject_id
