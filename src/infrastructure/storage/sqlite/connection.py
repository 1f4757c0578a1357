"""
Async SQLite connection pool and unit of work.

Receipts and restocks run inside ``transaction(immediate=True)``: the write
lock is taken before the first SELECT, so the rows a transaction chooses
cannot be taken by a concurrent writer before it commits. Readers such as
the sales report use ``acquire()`` and see the last committed snapshot.
"""

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import aiosqlite

from src.config import get_logger, get_settings

logger = get_logger(__name__)

CONNECTION_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
)


def casefold(value: str | None) -> str | None:
    """Unicode case folding for SQL; the built-in lower() only folds ASCII."""
    return value.casefold() if value is not None else None


@dataclass
class PoolStats:
    """Point-in-time view of the pool, reported by the health endpoint."""

    size: int
    available: int
    commits: int
    rollbacks: int

    @property
    def in_use(self) -> int:
        return self.size - self.available


class ConnectionPool:
    """
    Fixed-size pool of aiosqlite connections.

    Connections are opened lazily on first use and shared round-robin
    through an asyncio queue; a caller waits when all are checked out.
    """

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
    ):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout  # ms a writer waits for the lock

        self._pool: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._connections: list[aiosqlite.Connection] = []
        self._initialized = False
        self._lock = asyncio.Lock()
        self._commits = 0
        self._rollbacks = 0

    async def initialize(self) -> None:
        """Open ``pool_size`` connections. Safe to call more than once."""
        async with self._lock:
            if self._initialized:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            for _ in range(self.pool_size):
                conn = await self._create_connection()
                self._connections.append(conn)
                self._pool.put_nowait(conn)

            self._initialized = True
            logger.info(
                "connection_pool_initialized",
                db_path=str(self.db_path),
                pool_size=self.pool_size,
                busy_timeout_ms=self.busy_timeout,
            )

    async def _create_connection(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        for pragma in CONNECTION_PRAGMAS:
            await conn.execute(pragma)
        await conn.execute(f"PRAGMA busy_timeout={int(self.busy_timeout)}")
        await conn.create_function("casefold", 1, casefold, deterministic=True)
        conn.row_factory = aiosqlite.Row
        return conn

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Check a connection out for the duration of the block."""
        if not self._initialized:
            await self.initialize()

        conn = await self._pool.get()
        try:
            yield conn
        finally:
            # close() may have run meanwhile; its connections must not re-enter the new queue
            if conn in self._connections:
                self._pool.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self, immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """
        Run the block as one unit of work.

        Commits when the block exits normally and rolls back on any
        exception, cancellation included, then re-raises. With ``immediate``
        the block starts with BEGIN IMMEDIATE; waiting for the write lock is
        bounded by ``busy_timeout``.
        """
        async with self.acquire() as conn:
            if immediate:
                started = time.perf_counter()
                await conn.execute("BEGIN IMMEDIATE")
                logger.debug(
                    "write_lock_acquired",
                    waited_ms=round((time.perf_counter() - started) * 1000, 2),
                )
            try:
                yield conn
            except BaseException as e:
                await conn.rollback()
                self._rollbacks += 1
                logger.debug("transaction_rolled_back", error_type=type(e).__name__)
                raise
            await conn.commit()
            self._commits += 1

    def stats(self) -> PoolStats:
        return PoolStats(
            size=len(self._connections),
            available=self._pool.qsize(),
            commits=self._commits,
            rollbacks=self._rollbacks,
        )

    async def close(self) -> None:
        """Close every connection; the pool reopens on next use."""
        async with self._lock:
            for conn in self._connections:
                await conn.close()
            self._connections.clear()
            self._pool = asyncio.Queue(maxsize=self.pool_size)
            self._initialized = False
            logger.info(
                "connection_pool_closed",
                commits=self._commits,
                rollbacks=self._rollbacks,
            )


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Return the process-wide pool, built from storage settings on first use."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(
            db_path=storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None


@asynccontextmanager
async def get_connection() -> AsyncIterator[aiosqlite.Connection]:
    """Pooled connection for read-only queries."""
    pool = await get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def get_transaction(immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
    """Pooled connection wrapped in ``ConnectionPool.transaction``."""
    pool = await get_pool()
    async with pool.transaction(immediate=immediate) as conn:
        yield conn
