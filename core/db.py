import asyncio
import pathlib
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, create_async_engine

from core.config import DATABASE_URL, DB_POOL_SIZE, DB_TIMEOUT
from core.exceptions import DatabaseConnectionError, QueryError
from core.logger import logging

T = TypeVar("T")


class Database:
    """Process-wide handle on the connection pool"""

    def __init__(
        self,
        url: str = DATABASE_URL,
        pool_size: int = DB_POOL_SIZE,
        timeout: float = DB_TIMEOUT,
    ):
        self.url = make_url(url)
        self.timeout = timeout

        engine_options = {}
        if self.url.get_backend_name() == "sqlite":
            if self.url.database and self.url.database != ":memory:":
                pathlib.Path(self.url.database).parent.mkdir(parents=True, exist_ok=True)
                engine_options.update(pool_size=pool_size, max_overflow=0, pool_timeout=timeout)
        else:
            engine_options.update(pool_size=pool_size, max_overflow=0, pool_timeout=timeout)

        self.engine = create_async_engine(self.url, **engine_options)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[AsyncConnection]:
        """Borrow one pooled connection; it goes back to the pool on every exit path"""
        conn = self.engine.connect()
        try:
            await asyncio.wait_for(conn.start(), self.timeout)
        except (asyncio.TimeoutError, SQLAlchemyError, OSError) as e:
            raise DatabaseConnectionError(f"Could not open a database connection: {e}") from e

        try:
            yield conn
        finally:
            await conn.close()

    async def with_connection(
        self, operation: Callable[[AsyncConnection], Awaitable[T]]
    ) -> T:
        """Run ``operation`` with a connection and release it before returning"""
        async with self.connection() as conn:
            return await operation(conn)

    async def execute(self, conn: AsyncConnection, statement) -> Any:
        """
        Execute one parameterized statement.
        Returns:
            the list of rows for queries, the affected row count for mutations
        """
        try:
            result = await asyncio.wait_for(conn.execute(statement), self.timeout)
            if result.returns_rows:
                return result.all()
            await conn.commit()
            return result.rowcount
        except asyncio.TimeoutError as e:
            raise QueryError("Statement timed out", e) from e
        except SQLAlchemyError as e:
            await self._rollback(conn)
            raise QueryError(f"Statement failed: {e.__class__.__name__}", e) from e

    async def run_sync(self, conn: AsyncConnection, fn: Callable[..., T]) -> T:
        """Run a synchronous callable (DDL) against the connection and commit"""
        try:
            result = await asyncio.wait_for(conn.run_sync(fn), self.timeout)
            await conn.commit()
            return result
        except asyncio.TimeoutError as e:
            raise QueryError("Statement timed out", e) from e
        except SQLAlchemyError as e:
            await self._rollback(conn)
            raise QueryError(f"Statement failed: {e.__class__.__name__}", e) from e

    async def _rollback(self, conn: AsyncConnection):
        try:
            await conn.rollback()
        except SQLAlchemyError as e:
            logging.warning(f"Rollback failed: {e}")

    async def dispose(self):
        """Close every pooled connection"""
        await self.engine.dispose()
        logging.info("Database connection pool closed")
