"""Client-side session state."""

from typing import Any, Dict, Optional


class SessionState:
    """Access token and cached account of the signed-in user.

    The refresh token is never stored here; it lives in the HTTP client's
    cookie jar, like an HttpOnly cookie in a browser.
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        user: Optional[Dict[str, Any]] = None,
    ):
        self.access_token = access_token
        self.user = user

    @property
    def authenticated(self) -> bool:
        return bool(self.access_token)

    def clear(self) -> None:
        self.access_token = None
        self.user = None
