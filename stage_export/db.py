"""Async database connection pool with a transactional context manager.

- `get_pool()` lazily creates a process-wide asyncpg pool.
- `transaction()` acquires a pooled connection wrapped in a transaction,
  so a claim or a status write commits atomically or not at all.
"""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import asyncpg

from stage_export.config import DB_COMMAND_TIMEOUT_S, DB_POOL_MAX

logger = logging.getLogger(__name__)

_pool: asyncpg.Pool | None = None


class DatabaseConfig:
    """Builds connection strings based on detected environment."""

    @staticmethod
    def get_connection_string() -> str:
        # Priority 1: Explicit override
        if url := os.environ.get("DATABASE_URL"):
            return url

        # Priority 2: Cloud Run job/service -> managed AlloyDB
        if os.environ.get("K_SERVICE") or os.environ.get("CLOUD_RUN_JOB"):
            host = os.environ.get("ALLOYDB_HOST")
            db = os.environ.get("ALLOYDB_DB", "stage")
            user = os.environ.get("ALLOYDB_USER", "stage_export")
            password = os.environ.get("ALLOYDB_PASSWORD", "")
            return f"postgresql://{user}:{password}@{host}/{db}"

        # Priority 3: Local dev
        sslmode = os.environ.get("DB_SSLMODE", "disable")
        return (
            f"postgresql://{os.environ.get('DB_USER', 'stage_export')}:"
            f"{os.environ.get('DB_PASSWORD', 'stage_export')}@"
            f"{os.environ.get('DB_HOST', 'localhost')}:"
            f"{os.environ.get('DB_PORT', '5432')}/"
            f"{os.environ.get('DB_NAME', 'stage')}?sslmode={sslmode}"
        )

    @classmethod
    def get_migration_url(cls) -> str:
        """Same DSN as the pool, with the psycopg2 driver Alembic runs on."""
        url = cls.get_connection_string()
        for scheme in ("postgresql://", "postgres://"):
            if url.startswith(scheme):
                return "postgresql+psycopg2://" + url[len(scheme) :]
        return url


async def get_pool() -> asyncpg.Pool:
    """Return the singleton connection pool, creating it if necessary."""
    global _pool  # noqa: PLW0603
    if _pool is None:
        dsn = DatabaseConfig.get_connection_string()
        logger.info("Creating database pool (host hidden for security)")
        _pool = await asyncpg.create_pool(
            dsn=dsn,
            min_size=1,
            max_size=DB_POOL_MAX,
            command_timeout=DB_COMMAND_TIMEOUT_S,
        )
    return _pool


async def close_pool() -> None:
    """Gracefully close the connection pool."""
    global _pool  # noqa: PLW0603
    if _pool is not None:
        await _pool.close()
        _pool = None
        logger.info("Database pool closed")


@asynccontextmanager
async def transaction() -> AsyncIterator[asyncpg.Connection]:
    """Acquire a pooled connection inside a transaction.

    The transaction commits when the block exits normally and rolls back if
    it raises.
    """
    pool = await get_pool()
    async with pool.acquire() as conn, conn.transaction():
        yield conn
