"""High-level async client for the Shram Setu API."""

from typing import Any, Dict, Optional

import httpx
import structlog

from shram_setu.client.coordinator import RequestCoordinator, SessionExpiredCallback
from shram_setu.client.session import SessionState
from shram_setu.config import get_settings

logger = structlog.get_logger(__name__)


class ShramSetuClient:
    """API client that keeps the user signed in across access-token expiry.

    Usage::

        async with ShramSetuClient() as api:
            await api.login("asha@example.com", "secret123")
            profile = await api.profile()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[SessionState] = None,
        on_session_expired: Optional[SessionExpiredCallback] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.api_base_url,
            timeout=httpx.Timeout(timeout or settings.client_timeout_seconds),
            transport=transport,
            headers={"Content-Type": "application/json"},
        )
        self.session = session or SessionState()
        self.coordinator = RequestCoordinator(
            self._http,
            self.session,
            on_session_expired=on_session_expired,
        )

    async def __aenter__(self) -> "ShramSetuClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        url: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> Dict[str, Any]:
        """Send a request and return the decoded response envelope.

        Args:
            method: HTTP method
            url: Path relative to the API base URL
            json: Optional JSON body
            params: Optional query parameters
            authenticated: Route through the refresh coordinator; False for
                login and registration, where a 401 means bad credentials

        Raises:
            httpx.HTTPStatusError: For any non-2xx final response
            SessionExpiredError: If the session could not be refreshed
        """
        request = self._http.build_request(method, url, json=json, params=params)

        if authenticated:
            response = await self.coordinator.schedule_with_auth(request)
        else:
            response = await self._http.send(request)

        response.raise_for_status()
        return response.json()

    def _start_session(self, data: Dict[str, Any]) -> None:
        self.session.access_token = data["access_token"]
        self.session.user = data.get("user")

    async def register(self, **fields: Any) -> Dict[str, Any]:
        """Register a worker or hirer and sign in as them."""
        body = await self.request("POST", "/auth/register", json=fields, authenticated=False)
        self._start_session(body["data"])
        return body["data"]

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        """Sign in; the refresh cookie is kept in the client's cookie jar."""
        body = await self.request(
            "POST",
            "/auth/login",
            json={"email": email, "password": password},
            authenticated=False,
        )
        self._start_session(body["data"])
        logger.info("client_logged_in")
        return body["data"]

    async def logout(self) -> None:
        """Sign out on the server, then forget the local session either way."""
        try:
            await self.request("POST", "/auth/logout")
        finally:
            self.session.clear()
            self._http.cookies.clear()

    async def profile(self) -> Dict[str, Any]:
        body = await self.request("GET", "/auth/profile")
        return body["data"]["user"]
