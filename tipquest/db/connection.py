"""
PostgreSQL pool for the progress store

Every pooled connection returns rows as dicts. Schema statements passed to
the Database are applied once when the pool opens, so a host application
gets a ready progress table from a single init_pool() call.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional, Sequence

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from tipquest.config import DATABASE_URL
from tipquest.exceptions import DatabaseError

logger = logging.getLogger(__name__)


async def _configure_connection(conn: psycopg.AsyncConnection) -> None:
    """Pool hook run once per new connection"""
    conn.row_factory = dict_row


class Database:
    """Connection pool manager for the progress store"""

    def __init__(
        self,
        connection_string: str = DATABASE_URL,
        min_size: int = 1,
        max_size: int = 5,
        schema: Sequence[str] = ()
    ):
        self.connection_string = connection_string
        self.min_size = min_size
        self.max_size = max_size
        self.schema = tuple(schema)
        self._pool: Optional[AsyncConnectionPool] = None

    @property
    def is_initialized(self) -> bool:
        return self._pool is not None

    async def init_pool(self) -> None:
        """Open the pool and apply the configured schema"""
        logger.info(f"Opening progress store pool (min={self.min_size}, max={self.max_size})")
        self._pool = AsyncConnectionPool(
            self.connection_string,
            min_size=self.min_size,
            max_size=self.max_size,
            configure=_configure_connection,
            open=False
        )
        await self._pool.open()

        if self.schema:
            await self.apply_schema(self.schema)

    async def close_pool(self) -> None:
        if self._pool:
            logger.info("Closing progress store pool")
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """Borrow a dict-row connection from the pool"""
        if not self._pool:
            raise DatabaseError(
                "Database pool not initialized; call init_pool() first",
                operation="connection"
            )

        async with self._pool.connection() as conn:
            yield conn

    async def apply_schema(self, statements: Sequence[str]) -> None:
        """Run idempotent DDL statements in one transaction"""
        async with self.connection() as conn:
            async with conn.cursor() as cur:
                for statement in statements:
                    await cur.execute(statement)
            await conn.commit()
        logger.info(f"Applied {len(statements)} schema statement(s)")


# Global database instance
db = Database()
