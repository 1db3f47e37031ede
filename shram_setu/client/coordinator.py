"""Coordinates access-token refresh across concurrent requests.

When the access token expires, every in-flight request comes back with a
401 at roughly the same time. The first one starts a single refresh call;
the rest wait for its outcome and then retry with the new token (or fail
with the same error). A request is retried at most once.
"""

import asyncio
import inspect
from typing import Awaitable, Callable, List, Optional, Union

import httpx
import structlog

from shram_setu.client.session import SessionState
from shram_setu.errors import SessionExpiredError

logger = structlog.get_logger(__name__)

AUTH_RETRIED = "shram_setu.auth_retried"
REFRESH_PATH = "/auth/refresh-token"

SessionExpiredCallback = Callable[[], Union[None, Awaitable[None]]]


def _bearer(token: Optional[str]) -> Optional[str]:
    return f"Bearer {token}" if token else None


class RequestCoordinator:
    """Sends requests with the current access token and refreshes it on 401.

    Create one per client process. All state (the ``refreshing`` flag and
    the queue of waiting requests) lives on the instance.

    Args:
        client: HTTP client whose cookie jar carries the refresh cookie
        session: Holder of the current access token
        refresh_path: URL of the refresh endpoint, relative to the client base URL
        on_session_expired: Called after a failed refresh has cleared the
            session; the place to send the user back to login
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        session: Optional[SessionState] = None,
        refresh_path: str = REFRESH_PATH,
        on_session_expired: Optional[SessionExpiredCallback] = None,
    ):
        self._client = client
        self.session = session or SessionState()
        self._refresh_path = refresh_path
        self._on_session_expired = on_session_expired
        self._refreshing = False
        self._pending: List[asyncio.Future] = []

    @property
    def refreshing(self) -> bool:
        """True while a refresh call is in flight."""
        return self._refreshing

    @property
    def pending(self) -> int:
        """Number of requests waiting on the in-flight refresh."""
        return len(self._pending)

    async def schedule_with_auth(self, request: httpx.Request) -> httpx.Response:
        """Send ``request`` with the access token, refreshing once on 401.

        Returns:
            The response of the original or retried request; non-401
            statuses are returned as they are

        Raises:
            SessionExpiredError: The refresh failed; the session is cleared
            httpx.HTTPStatusError: The retried request was rejected with 401 again
        """
        return await self._dispatch(request, self.session.access_token)

    async def _dispatch(self, request: httpx.Request, token: Optional[str]) -> httpx.Response:
        if token:
            request.headers["Authorization"] = _bearer(token)

        response = await self._client.send(request)
        if response.status_code != 401:
            return response

        if request.extensions.get(AUTH_RETRIED):
            logger.warning("auth_retry_rejected", method=request.method, url=str(request.url))
            response.raise_for_status()

        request.extensions[AUTH_RETRIED] = True
        new_token = await self._token_after_unauthorized(token)
        return await self._dispatch(request, new_token)

    async def _token_after_unauthorized(self, sent_token: Optional[str]) -> str:
        if self._refreshing:
            return await self._wait_for_refresh()

        # A refresh finished while this request was in flight
        current = self.session.access_token
        if current and current != sent_token:
            return current

        return await self._refresh()

    async def _wait_for_refresh(self) -> str:
        future = asyncio.get_running_loop().create_future()
        self._pending.append(future)
        logger.debug("request_queued_for_refresh", pending=len(self._pending))
        return await future

    async def _refresh(self) -> str:
        self._refreshing = True
        try:
            token = await self._request_new_token()
        except SessionExpiredError as e:
            logger.warning("session_refresh_failed", detail=e.message)
            self.session.clear()
            self._client.cookies.clear()
            try:
                await self._notify_session_expired()
            finally:
                # 401s that arrived while the callback ran share this outcome
                self._refreshing = False
                self._settle(error=e)
            raise
        except asyncio.CancelledError:
            self._refreshing = False
            self._cancel_pending()
            raise

        self._refreshing = False
        self.session.access_token = token
        self._settle(token=token)
        logger.info("session_refreshed")
        return token

    async def _request_new_token(self) -> str:
        try:
            response = await self._client.post(self._refresh_path)
        except httpx.HTTPError as e:
            raise SessionExpiredError(f"Token refresh failed: {e}") from e

        if response.status_code != 200:
            raise SessionExpiredError(_envelope_message(response))

        try:
            return response.json()["data"]["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            raise SessionExpiredError("Token refresh returned no access token") from e

    def _settle(self, token: Optional[str] = None, error: Optional[BaseException] = None) -> None:
        pending, self._pending = self._pending, []
        for future in pending:
            if future.done():
                continue
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(token)

    def _cancel_pending(self) -> None:
        pending, self._pending = self._pending, []
        for future in pending:
            future.cancel()

    async def _notify_session_expired(self) -> None:
        if self._on_session_expired is None:
            return
        result = self._on_session_expired()
        if inspect.isawaitable(result):
            await result


def _envelope_message(response: httpx.Response) -> str:
    """``message`` of an error envelope, or a generic text for other bodies."""
    try:
        message = response.json().get("message")
    except (ValueError, AttributeError):
        message = None
    return message or f"Token refresh failed with status {response.status_code}"
