"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures routes and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from psycopg_pool import ConnectionPool

from src.adapters.repository.memory import InMemoryWaitlistRegistry
from src.adapters.repository.postgres import PostgresWaitlistRegistry, run_migrations
from src.api.dependencies import create_dispatcher, create_limiter, create_notification_sender
from src.api.error_handlers import register_error_handlers
from src.api.v1 import router as v1_router
from src.config.settings import get_settings
from src.domain.exceptions import StorageUnavailable

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Waitlist Registration API v1 - Join the waitlist and look up positions",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates the registry (connection pool + migrations for Postgres)
    - Creates the admission limiter and notification dispatcher
    - Drains the dispatcher, closing its notification transports, and
      closes the pool on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")

    pool = None
    if settings.storage_backend == "postgres":
        logger.info("Connecting to database...")
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
        )

        logger.info("Running database migrations...")
        run_migrations(pool)
        app.state.registry = PostgresWaitlistRegistry(pool)
    else:
        logger.warning("Using in-memory registry - entries are lost on restart")
        app.state.registry = InMemoryWaitlistRegistry()

    app.state.limiter = create_limiter(settings)
    app.state.dispatcher = create_dispatcher(settings, create_notification_sender(settings))

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    app.state.dispatcher.shutdown(wait=True)
    logger.info("Notification dispatcher stopped")
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


app = FastAPI(
    title="waitlist",
    description="Waitlist Registration API - FIFO sign-up positions with duplicate protection",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

register_error_handlers(app)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with registry validation.

    Returns 200 OK if application and registry are healthy.
    """
    try:
        request.app.state.registry.count_all()
    except StorageUnavailable:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Registry unavailable",
        ) from None

    return {"status": "healthy"}
