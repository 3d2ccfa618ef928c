"""FastAPI application: composition root and dependency wiring."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import asyncpg
import structlog
from fastapi import FastAPI

from tgcd import __version__
from tgcd.config import Settings, get_settings
from tgcd.gateway.postgres_gateway import PostgresTagStore
from tgcd.handler.health_handler import router as health_router
from tgcd.handler.tag_handler import register_error_handlers
from tgcd.handler.tag_handler import router as tag_router
from tgcd.infra.migrations import run_migrations
from tgcd.port.tag_store_port import TagStorePort
from tgcd.utils.logging import configure_logging

logger = structlog.get_logger(__name__)


async def create_pool(settings: Settings) -> asyncpg.Pool:
    return await asyncpg.create_pool(
        dsn=settings.postgres_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_size,
        command_timeout=settings.db_command_timeout,
        server_settings={"application_name": "tgcd"},
    )


def _lifespan(settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Open the pool, migrate the schema, and wire the store before serving."""
        logger.info("Starting tgcd", host=settings.host, port=settings.port, pool_size=settings.pool_size)

        pool = await create_pool(settings)
        try:
            await run_migrations(pool)
            app.state.tag_store = PostgresTagStore(
                pool, batch_concurrency=min(settings.batch_concurrency, settings.pool_size)
            )
            logger.info("tgcd started successfully")

            yield

            logger.info("Shutting down tgcd")
        finally:
            await pool.close()
            logger.info("tgcd stopped")

    return lifespan


def create_app(
    settings: Settings | None = None,
    *,
    tag_store_override: TagStorePort | None = None,
) -> FastAPI:
    """Create the application.

    Args:
        settings: Explicit settings; read from the environment when omitted.
        tag_store_override: Pre-built store for tests. Skips the pool,
            migrations and lifespan entirely.
    """
    if tag_store_override is None:
        settings = settings or get_settings()
        configure_logging(log_level=settings.log_level, log_format=settings.log_format)

    app = FastAPI(
        title="tgcd",
        description="Content-addressed tag store",
        version=__version__,
        lifespan=_lifespan(settings) if tag_store_override is None else None,
    )
    if tag_store_override is not None:
        app.state.tag_store = tag_store_override

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(tag_router)

    return app


def run() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "tgcd.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_config=None,
    )


if __name__ == "__main__":
    run()
