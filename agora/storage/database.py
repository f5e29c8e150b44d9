"""
PostgreSQL access for the feedback board.

``Database`` owns the asyncpg pool. Service operations never use it for
queries directly: they open one ``unit_of_work`` and bind their
repositories to the transaction's connection. The query helpers on
``Database`` serve one-off statements such as schema creation and the
health check.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from types import TracebackType
from typing import Any

import asyncpg

from agora.config.settings import get_settings
from agora.errors import StoreError

logger = logging.getLogger(__name__)


class Database:
    """
    Pooled connection manager.

    Usage:
        async with Database() as db:
            async with db.transaction() as conn:
                await FeedbackRepository(conn).update(feedback)
    """

    def __init__(
        self,
        database_url: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
    ):
        """
        Args:
            database_url: Overrides ``DATABASE_URL``
            min_size: Overrides ``DB_POOL_MIN_SIZE``
            max_size: Overrides ``DB_POOL_MAX_SIZE``
        """
        settings = get_settings()

        self._dsn = database_url or str(settings.database_url)
        self._pool_bounds = (
            min_size or settings.db_pool_min_size,
            max_size or settings.db_pool_max_size,
        )
        self._command_timeout = settings.db_command_timeout
        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Open the pool. A second call is a no-op."""
        if self._pool is not None:
            return

        low, high = self._pool_bounds
        try:
            self._pool = await asyncpg.create_pool(
                self._dsn,
                min_size=low,
                max_size=high,
                command_timeout=self._command_timeout,
            )
        except (OSError, asyncpg.PostgresError) as e:
            logger.error("Could not open database pool: %s", e)
            raise
        logger.info("Database pool open (%d-%d connections)", low, high)

    async def close(self) -> None:
        if self._pool is None:
            return
        await self._pool.close()
        self._pool = None
        logger.info("Database pool closed")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._pool

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Yield a pooled connection inside a transaction.

        Commits when the block exits normally and rolls back when it raises.
        The connection has the same ``execute``/``fetch``/``fetchrow``/
        ``fetchval`` surface as ``Database``, so repositories accept either.
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                yield conn

    # Single statements on a pooled connection, outside any transaction.

    async def execute(self, query: str, *args: Any) -> str:
        async with self.pool.acquire() as conn:
            return await conn.execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        async with self.pool.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        async with self.pool.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        async with self.pool.acquire() as conn:
            return await conn.fetchval(query, *args)

    async def health_check(self) -> bool:
        """True when ``SELECT 1`` round-trips."""
        try:
            return await self.fetchval("SELECT 1") == 1
        except Exception as e:
            logger.warning("Database health check failed: %s", e)
            return False


# Repositories accept either the pooled Database or a transaction-bound connection.
Executor = Database | asyncpg.Connection

# Driver-level failures; anything else (domain errors included) passes through.
STORE_EXCEPTIONS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
)


@asynccontextmanager
async def unit_of_work(database: Database) -> AsyncIterator[asyncpg.Connection]:
    """Run one service operation in a single transaction.

    Store failures are logged and re-raised once as ``StoreError``; the
    transaction has already rolled back by then.
    """
    try:
        async with database.transaction() as conn:
            yield conn
    except STORE_EXCEPTIONS as e:
        logger.error("Store operation failed: %s", e)
        raise StoreError("Store operation failed") from e
