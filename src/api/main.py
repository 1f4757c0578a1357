"""
FastAPI application factory for the replenishment engine.

Run with ``uvicorn src.api.main:app`` or ``python manage.py serve``.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from src.api.middleware.error_handler import setup_exception_handlers
from src.api.routes import (
    batches_router,
    health_router,
    inventory_router,
    purchases_router,
    reports_router,
)
from src.config import configure_logging, get_logger, get_settings
from src.core.exceptions import ConfigurationError

logger = get_logger(__name__)


async def _prepare_store() -> None:
    from src.infrastructure.storage.sqlite import get_connection_pool
    from src.infrastructure.storage.sqlite.migrations.migrator import run_migrations

    results = await run_migrations()
    failed = [r for r in results if not r.success]
    if failed:
        # Serving against a half-migrated schema would fail on first use
        raise ConfigurationError(
            f"Migration v{failed[0].version} failed: {failed[0].error}",
            code="MIGRATION_FAILED",
            details={"version": failed[0].version},
        )
    logger.info("database_migrated", applied=[r.version for r in results])

    pool = await get_connection_pool()
    logger.info("connection_pool_ready", pool_size=pool.pool_size)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Migrate and open the pool on startup; close the pool on shutdown."""
    settings = get_settings()
    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        environment=settings.environment,
        db_path=str(settings.storage.db_path),
    )

    try:
        await _prepare_store()
    except Exception as e:
        logger.error("database_init_failed", error=str(e))
        raise

    logger.info("application_started")
    yield
    logger.info("application_stopping")

    from src.infrastructure.storage.sqlite import close_connection_pool

    await close_connection_pool()
    logger.info("application_stopped")


def create_app() -> FastAPI:
    """Build the application: middleware, error handlers and routers."""
    settings = get_settings()
    configure_logging()

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Purchase receipts, automatic restocking and sales-performance reports",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Added last runs first: request ids are bound before errors are handled
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LoggingMiddleware)
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    setup_exception_handlers(app)

    for router in (
        health_router,
        purchases_router,
        inventory_router,
        batches_router,
        reports_router,
    ):
        app.include_router(router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs" if settings.api.debug else "disabled",
        }

    # Container liveness probe
    @app.get("/health", include_in_schema=False)
    async def root_health() -> dict[str, str]:
        return {"status": "healthy", "version": settings.app_version}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
