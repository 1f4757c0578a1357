"""Health check endpoints."""

import time

import aiosqlite
from fastapi import APIRouter

from src.application.dto.responses import DatabaseHealthResponse, HealthResponse
from src.config import get_logger, get_settings
from src.core.exceptions import StorageError

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

_start_time = time.monotonic()


def _uptime() -> float:
    return time.monotonic() - _start_time


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness: the process is up and serving requests."""
    return HealthResponse(
        status="healthy",
        version=get_settings().app_version,
        uptime_seconds=_uptime(),
    )


@router.get("/db", response_model=HealthResponse)
async def db_health() -> HealthResponse:
    """
    Readiness: the store answers a query.

    Reports round-trip latency, the applied schema version and how many
    pooled connections are checked out. An unreachable store is reported
    as ``unhealthy`` rather than raised.
    """
    from src.infrastructure.storage.sqlite import get_connection_pool
    from src.infrastructure.storage.sqlite.migrations.migrator import get_current_version

    try:
        pool = await get_connection_pool()
        started = time.perf_counter()
        async with pool.acquire() as conn:
            await conn.execute("SELECT 1")
            latency_ms = (time.perf_counter() - started) * 1000
            version = await get_current_version(conn)
        stats = pool.stats()
        database = DatabaseHealthResponse(
            available=True,
            latency_ms=round(latency_ms, 2),
            schema_version=version,
            pool_size=stats.size,
            connections_in_use=stats.in_use,
        )
    except (aiosqlite.Error, OSError, StorageError) as e:
        logger.warning("database_health_failed", error=str(e))
        database = DatabaseHealthResponse(available=False, error=str(e))

    return HealthResponse(
        status="healthy" if database.available else "unhealthy",
        version=get_settings().app_version,
        uptime_seconds=_uptime(),
        database=database,
    )
