"""FastAPI application entry point for the offer service.

Lifecycle:
    1. Startup: Initialize logging and the database, create tables (dev mode).
    2. Running: Serve the REST API on a single Uvicorn process.
    3. Shutdown: Close database connections gracefully.

Run with:
    uv run uvicorn farmgate_offers.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from farmgate_offers.config import get_settings
from farmgate_offers.logging_config import get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    settings = get_settings()

    setup_logging(
        log_level=settings.app_log_level,
        json_logs=not settings.is_development,
    )
    logger = get_logger(__name__)
    logger.info("app.starting", env=settings.app_env, debug=settings.app_debug)

    from farmgate_offers.infrastructure.database.engine import close_db, init_db

    await init_db()
    logger.info("app.started", host=settings.app_host, port=settings.app_port)

    yield

    logger.info("app.shutting_down")
    await close_db()
    logger.info("app.stopped")


def create_app() -> FastAPI:
    """Application factory — creates and configures the FastAPI app."""
    settings = get_settings()

    app = FastAPI(
        title="Farmgate Offers",
        description=(
            "Offer lifecycle service for a peer-to-peer agricultural marketplace: "
            "accept, ship or hand over, confirm, cancel."
        ),
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.app_debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    from farmgate_offers.api.middleware import setup_middleware

    setup_middleware(app)

    from farmgate_offers.api.routes.health import router as health_router
    from farmgate_offers.api.routes.offers import router as offers_router

    app.include_router(health_router)
    app.include_router(offers_router)

    return app


# The app instance used by Uvicorn
app = create_app()
