"""FastAPI application factory."""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import accounts_router, tasks_router, telegram_router
from .. import __version__
from ..config.settings import AppSettings, get_settings
from ..container import configure_from_settings, get_container

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Run the notification bus and the Telegram poll loop alongside the app."""
    container = get_container()
    if not container.is_configured:
        configure_from_settings(container)

    bus = container.notification_bus
    if bus is not None:
        bus.start()

    gateway = container.gateway
    poll_task = None
    if gateway is not None:
        poll_task = asyncio.create_task(gateway.run_polling(), name="telegram-polling")

    yield

    if gateway is not None:
        gateway.stop()
    if poll_task is not None:
        # Cancel an in-flight long poll instead of waiting out its timeout.
        poll_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await poll_task
    if bus is not None:
        await bus.stop(timeout=10.0)
    if gateway is not None:
        await gateway.aclose()


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Build the API around the global container.

    CORS is enabled only for the origins listed in ``CORS_ORIGINS``, which
    is where the board frontend is served from.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Task Tracker API",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PATCH", "DELETE"],
            allow_headers=["Content-Type", "X-Username"],
        )

    for router in (accounts_router, tasks_router, telegram_router):
        app.include_router(router)

    @app.get("/health")
    async def health_check() -> dict:
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()
