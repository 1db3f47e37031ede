"""Postgres pool lifecycle and schema migrations."""

from pathlib import Path
from typing import Optional

import asyncpg
import structlog

from shram_setu.config import get_settings

logger = structlog.get_logger(__name__)

_pool: Optional[asyncpg.Pool] = None

MIGRATIONS_DIR = Path(__file__).parent.parent / "migrations"

# Arbitrary key for pg_advisory_lock; serialises migrations across workers
MIGRATION_LOCK_KEY = 0x5348_5241


async def get_pool() -> asyncpg.Pool:
    """Return the shared pool.

    Raises:
        RuntimeError: If ``init_database`` has not run
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_database() first.")
    return _pool


async def init_database() -> asyncpg.Pool:
    """Create the shared pool, sized from settings. Safe to call twice."""
    global _pool

    if _pool is not None:
        return _pool

    settings = get_settings()

    try:
        _pool = await asyncpg.create_pool(
            settings.postgres_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
        )
    except (OSError, asyncpg.PostgresError) as e:
        logger.error("database_pool_creation_failed", error=str(e))
        raise

    logger.info(
        "database_pool_created",
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )
    return _pool


async def close_database() -> None:
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("database_pool_closed")


async def run_migrations() -> list[str]:
    """Apply pending ``migrations/*.sql`` files in name order.

    Applied file names are recorded in ``schema_migrations``; each file runs
    in its own transaction together with its bookkeeping row. Concurrent
    callers wait on an advisory lock, so only one of them applies anything.

    Returns:
        Names of the files applied by this call
    """
    if not MIGRATIONS_DIR.exists():
        logger.warning("migrations_directory_not_found", path=str(MIGRATIONS_DIR))
        return []

    pool = await get_pool()
    applied: list[str] = []

    async with pool.acquire() as conn:
        await conn.execute("SELECT pg_advisory_lock($1)", MIGRATION_LOCK_KEY)
        try:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    migration_id TEXT PRIMARY KEY,
                    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
                """
            )
            done = {
                row["migration_id"]
                for row in await conn.fetch("SELECT migration_id FROM schema_migrations")
            }

            for migration_file in sorted(MIGRATIONS_DIR.glob("*.sql")):
                if migration_file.name in done:
                    continue
                try:
                    async with conn.transaction():
                        await conn.execute(migration_file.read_text())
                        await conn.execute(
                            "INSERT INTO schema_migrations (migration_id) VALUES ($1)",
                            migration_file.name,
                        )
                except asyncpg.PostgresError as e:
                    logger.error("migration_failed", file=migration_file.name, error=str(e))
                    raise
                applied.append(migration_file.name)
                logger.info("migration_applied", file=migration_file.name)
        finally:
            await conn.execute("SELECT pg_advisory_unlock($1)", MIGRATION_LOCK_KEY)

    if not applied:
        logger.info("migrations_up_to_date")
    return applied


async def health_check() -> bool:
    """True if a pooled connection answers ``SELECT 1``."""
    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            return await conn.fetchval("SELECT 1") == 1
    except (RuntimeError, OSError, asyncpg.PostgresError) as e:
        logger.error("database_health_check_failed", error=str(e))
        return False
