"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from luckylottery.api.middleware import setup_middleware
from luckylottery.core.config import Settings
from luckylottery.core.database import close_pool, init_pool
from luckylottery.core.logging import setup_logging
from luckylottery.services.container import build_container

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = Settings()

    if not settings.is_testing:
        setup_logging(level=settings.log_level, log_format=settings.log_format)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting Lucky Lottery API (env=%s)", settings.app_env)
        if not settings.is_testing:
            try:
                pool = await init_pool(settings)
            except Exception:
                logger.warning(
                    "Could not connect to Oracle; API will start without DB. "
                    "Run scripts/migrations.py once Oracle is ready."
                )
                app.state.db_pool = None
                app.state.services = None
            else:
                app.state.db_pool = pool
                app.state.services = build_container(settings, pool)
                logger.info("Database pool ready")
        yield
        logger.info("Shutting down Lucky Lottery API")
        if not settings.is_testing:
            await close_pool()

    application = FastAPI(
        title="Lucky Lottery API",
        description="Lottery storefront: UPI wallet, tickets and the daily draw",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.state.settings = settings
    application.state.db_pool = None
    application.state.services = None

    setup_middleware(application)
    _register_routes(application)
    return application


def _register_routes(app: FastAPI) -> None:
    """Register all API route modules."""
    from luckylottery.api.routes.admin import router as admin_router
    from luckylottery.api.routes.auth import router as auth_router
    from luckylottery.api.routes.draws import router as draws_router
    from luckylottery.api.routes.health import router as health_router
    from luckylottery.api.routes.me import router as me_router
    from luckylottery.api.routes.tickets import router as tickets_router
    from luckylottery.api.routes.wallet import router as wallet_router

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(me_router)
    app.include_router(wallet_router)
    app.include_router(tickets_router)
    app.include_router(draws_router)
    app.include_router(admin_router)


# Module-level app instance for uvicorn (uvicorn luckylottery.main:app)
app = create_app()
