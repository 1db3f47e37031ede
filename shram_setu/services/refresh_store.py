"""Single-slot storage of each account's current refresh token."""

import asyncio
from functools import lru_cache
from typing import Dict, Optional, Protocol
from uuid import UUID

import structlog

from shram_setu.config import get_settings
from shram_setu.database import get_pool

logger = structlog.get_logger(__name__)


class RefreshStore(Protocol):
    """Per-account slot holding the one refresh token that is currently valid."""

    async def set(self, account_id: UUID, token: str) -> None:
        ...

    async def get(self, account_id: UUID) -> Optional[str]:
        ...

    async def matches(self, account_id: UUID, presented: str) -> bool:
        ...

    async def rotate(self, account_id: UUID, presented: str, new_token: str) -> bool:
        ...

    async def clear(self, account_id: UUID) -> None:
        ...


class PostgresRefreshStore:
    """Refresh slot kept in ``users.refresh_token``.

    ``rotate`` is a single conditional UPDATE, so of two concurrent rotations
    presenting the same token only one can succeed.
    """

    async def set(self, account_id: UUID, token: str) -> None:
        """Overwrite the slot unconditionally."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE users
                SET refresh_token = $2, updated_at = NOW()
                WHERE id = $1
                """,
                account_id,
                token,
            )

    async def get(self, account_id: UUID) -> Optional[str]:
        pool = await get_pool()

        async with pool.acquire() as conn:
            return await conn.fetchval(
                "SELECT refresh_token FROM users WHERE id = $1",
                account_id,
            )

    async def matches(self, account_id: UUID, presented: str) -> bool:
        """True if ``presented`` is exactly the stored token."""
        if not presented:
            return False
        return await self.get(account_id) == presented

    async def rotate(self, account_id: UUID, presented: str, new_token: str) -> bool:
        """Replace ``presented`` with ``new_token`` only if it is still current.

        Returns:
            True if the slot was rotated, False if it held something else
        """
        pool = await get_pool()

        async with pool.acquire() as conn:
            result = await conn.execute(
                """
                UPDATE users
                SET refresh_token = $3, updated_at = NOW()
                WHERE id = $1 AND refresh_token = $2
                """,
                account_id,
                presented,
                new_token,
            )

        return result == "UPDATE 1"

    async def clear(self, account_id: UUID) -> None:
        """Empty the slot (logout)."""
        pool = await get_pool()

        async with pool.acquire() as conn:
            await conn.execute(
                """
                UPDATE users
                SET refresh_token = NULL, updated_at = NOW()
                WHERE id = $1
                """,
                account_id,
            )


class InMemoryRefreshStore:
    """Process-local refresh slots for development and tests.

    The read-compare-write in ``rotate`` happens under one lock, which gives
    the same compare-and-swap behaviour as the Postgres store.
    """

    def __init__(self):
        self._slots: Dict[UUID, str] = {}
        self._lock = asyncio.Lock()

    async def set(self, account_id: UUID, token: str) -> None:
        async with self._lock:
            self._slots[account_id] = token

    async def get(self, account_id: UUID) -> Optional[str]:
        async with self._lock:
            return self._slots.get(account_id)

    async def matches(self, account_id: UUID, presented: str) -> bool:
        if not presented:
            return False
        return await self.get(account_id) == presented

    async def rotate(self, account_id: UUID, presented: str, new_token: str) -> bool:
        async with self._lock:
            if not presented or self._slots.get(account_id) != presented:
                return False
            self._slots[account_id] = new_token
            return True

    async def clear(self, account_id: UUID) -> None:
        async with self._lock:
            self._slots.pop(account_id, None)


@lru_cache
def get_refresh_store() -> RefreshStore:
    """Return the process-wide refresh store for the configured backend."""
    backend = get_settings().refresh_store_backend.lower()
    if backend == "memory":
        logger.info("refresh_store_selected", backend="memory")
        return InMemoryRefreshStore()
    if backend != "postgres":
        raise ValueError(f"Unknown refresh store backend: {backend}")
    return PostgresRefreshStore()
